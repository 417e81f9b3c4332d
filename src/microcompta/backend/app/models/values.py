"""Fixed-point value objects used by every financial computation.

``Money`` stores an integer number of cents and ``Percentage`` an integer
number of hundredths of a percent, so sums are exact and reproducible.
Conversion from decimal text happens only at the system boundary through
``Money.of`` / ``Percentage.of``; binary floats are refused outright.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, Union

from microcompta.backend.errors import (
    InputError,
    MonetaryOverflowError,
    MonetaryPrecisionError,
)

MONEY_SCALE = 2
PERCENTAGE_SCALE = 2

# numeric(12, 2): ten integer digits and two fractional digits.
MAX_MINOR_UNITS = 10**12
# numeric(5, 2): up to 999.99 %.
MAX_BASIS_POINTS = 10**5
HUNDRED_PERCENT = 10_000

DecimalLike = Union[Decimal, str, int]


def _as_decimal(value: DecimalLike, kind: str) -> Decimal:
    if isinstance(value, bool):
        raise TypeError(f"{kind} cannot be built from a boolean")
    if isinstance(value, float):
        raise TypeError(f"{kind} cannot be built from a float; pass a string or Decimal")
    if isinstance(value, Decimal):
        decimal_value = value
    elif isinstance(value, int):
        decimal_value = Decimal(value)
    elif isinstance(value, str):
        try:
            decimal_value = Decimal(value.strip())
        except InvalidOperation as exc:
            raise InputError(f"Invalid {kind} value: {value!r}") from exc
    else:
        raise TypeError(f"{kind} cannot be built from {type(value).__name__}")

    if not decimal_value.is_finite():
        raise InputError(f"{kind} must be a finite number")
    return decimal_value


def _to_scaled_int(value: Decimal, scale: int, kind: str) -> int:
    scaled = value.scaleb(scale)
    if scaled != scaled.to_integral_value():
        raise MonetaryPrecisionError(
            f"{kind} {value} has more than {scale} fractional digits"
        )
    return int(scaled)


def _divide_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounding half away from zero."""

    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return -quotient if numerator < 0 else quotient


def _format_scaled(units: int, scale: int) -> str:
    return format(Decimal(units).scaleb(-scale), "f")


@dataclass(frozen=True, slots=True, order=True)
class Percentage:
    """Rate with two-decimal precision, e.g. ``Percentage.of("11.00")``."""

    basis_points: int

    def __post_init__(self) -> None:
        if not isinstance(self.basis_points, int) or isinstance(self.basis_points, bool):
            raise TypeError("Percentage basis points must be an integer")
        if self.basis_points < 0:
            raise InputError("Percentages cannot be negative")
        if self.basis_points >= MAX_BASIS_POINTS:
            raise MonetaryOverflowError(
                f"Percentage {_format_scaled(self.basis_points, PERCENTAGE_SCALE)} "
                "exceeds 999.99"
            )

    @classmethod
    def of(cls, value: DecimalLike | Percentage) -> Percentage:
        if isinstance(value, Percentage):
            return value
        decimal_value = _as_decimal(value, "percentage")
        return cls(_to_scaled_int(decimal_value, PERCENTAGE_SCALE, "percentage"))

    @classmethod
    def zero(cls) -> Percentage:
        return cls(0)

    @classmethod
    def from_ratio(cls, part: Money, whole: Money) -> Percentage:
        """Return ``part / whole`` as a percentage, rounded half-up; zero for a zero base."""

        if whole.cents == 0:
            return cls.zero()
        return cls(_divide_half_up(part.cents * HUNDRED_PERCENT, whole.cents))

    def complement(self) -> Percentage:
        """Return ``100% - self``."""

        if self.basis_points > HUNDRED_PERCENT:
            raise InputError("Cannot take the complement of a rate above 100%")
        return Percentage(HUNDRED_PERCENT - self.basis_points)

    def as_decimal(self) -> Decimal:
        return Decimal(self.basis_points).scaleb(-PERCENTAGE_SCALE)

    @property
    def is_zero(self) -> bool:
        return self.basis_points == 0

    def __str__(self) -> str:
        return _format_scaled(self.basis_points, PERCENTAGE_SCALE)


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """Monetary amount held as an exact integer number of cents."""

    cents: int

    def __post_init__(self) -> None:
        if not isinstance(self.cents, int) or isinstance(self.cents, bool):
            raise TypeError("Money must be built from an integer number of cents")
        if abs(self.cents) >= MAX_MINOR_UNITS:
            raise MonetaryOverflowError(
                f"Amount {_format_scaled(self.cents, MONEY_SCALE)} exceeds the supported range"
            )

    @classmethod
    def of(cls, value: DecimalLike | Money) -> Money:
        """Parse ``value`` exactly; more than two decimals is an error, never a rounding."""

        if isinstance(value, Money):
            return value
        decimal_value = _as_decimal(value, "amount")
        return cls(_to_scaled_int(decimal_value, MONEY_SCALE, "amount"))

    @classmethod
    def zero(cls) -> Money:
        return cls(0)

    @classmethod
    def total(cls, amounts: Iterable[Money]) -> Money:
        result = cls.zero()
        for amount in amounts:
            result = result + amount
        return result

    @property
    def is_zero(self) -> bool:
        return self.cents == 0

    @property
    def is_negative(self) -> bool:
        return self.cents < 0

    @property
    def is_positive(self) -> bool:
        return self.cents > 0

    def apply_rate(self, rate: Percentage) -> Money:
        """Return ``self * rate / 100`` rounded half-up to the cent."""

        return Money(_divide_half_up(self.cents * rate.basis_points, HUNDRED_PERCENT))

    def times(self, count: int) -> Money:
        return Money(self.cents * count)

    def rounded_to_unit(self) -> Money:
        """Return the amount rounded half away from zero to a whole euro."""

        return Money(_divide_half_up(self.cents, 10**MONEY_SCALE) * 10**MONEY_SCALE)

    def as_decimal(self) -> Decimal:
        return Decimal(self.cents).scaleb(-MONEY_SCALE)

    def __add__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents + other.cents)

    def __sub__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents - other.cents)

    def __neg__(self) -> Money:
        return Money(-self.cents)

    def __str__(self) -> str:
        return _format_scaled(self.cents, MONEY_SCALE)


__all__ = [
    "HUNDRED_PERCENT",
    "MAX_BASIS_POINTS",
    "MAX_MINOR_UNITS",
    "Money",
    "Percentage",
]
