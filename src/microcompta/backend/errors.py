"""Exceptions raised by the financial computation engine.

Callers catch by type: configuration problems (bad bracket tables) are not
the user's fault and map to a different response than malformed input, and
fixed-point violations abort a computation instead of truncating.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from microcompta.backend.config.schema import ConfigurationError


class InputError(ValueError):
    """Raised for negative incomes, malformed ranges, or inconsistent records.

    ``details`` lists the offending fields when the error comes from payload
    validation, as ``{"field": ..., "message": ...}`` mappings.
    """

    def __init__(self, message: str, details: Iterable[Mapping[str, str]] = ()) -> None:
        super().__init__(message)
        self.details = tuple(dict(entry) for entry in details)


class MonetaryOverflowError(ArithmeticError):
    """Raised when a monetary value falls outside the supported fixed-point range."""


class MonetaryPrecisionError(MonetaryOverflowError):
    """Raised when a value carries more fractional digits than its scale allows."""


__all__ = [
    "ConfigurationError",
    "InputError",
    "MonetaryOverflowError",
    "MonetaryPrecisionError",
]
