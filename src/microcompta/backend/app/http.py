"""Problem payloads returned by the error handlers and blueprints."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from flask import jsonify


@dataclass(frozen=True)
class ProblemResponse:
    """RFC 7807-style error body.

    ``details`` carries one ``{"field", "message"}`` entry per rejected
    payload field so that forms can highlight them; it is omitted when empty.
    """

    error: str
    status: int
    message: str | None = None
    details: Sequence[Mapping[str, str]] = ()

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "status": self.status}
        if self.message:
            payload["message"] = self.message
        if self.details:
            payload["details"] = [dict(entry) for entry in self.details]
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    details: Sequence[Mapping[str, str]] = (),
) -> ProblemResponse:
    return ProblemResponse(error=error, status=status, message=message, details=tuple(details))


__all__ = ["ProblemResponse", "problem_response"]
