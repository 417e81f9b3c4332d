"""Immutable record snapshots handed to the computation engine.

The persistence collaborator owns these records; the engine only reads them.
Each record checks its own internal consistency on construction so that a
computation never starts from a contradictory snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType

from microcompta.backend.errors import ConfigurationError, InputError

from .values import Money, Percentage


class BracketScope(str, Enum):
    DEFAULT = "default"
    USER = "user"


class RecurrencePeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class ObligationKind(str, Enum):
    TVA = "tva"
    URSSAF = "urssaf"
    INCOME_TAX = "income_tax"


class ObligationStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class TaxBracket:
    """Income range ``[min_income, max_income)`` taxed at ``rate``.

    ``max_income`` of ``None`` marks the unbounded top bracket.
    """

    year: int
    min_income: Money
    max_income: Money | None
    rate: Percentage
    scope: BracketScope = BracketScope.DEFAULT

    def __post_init__(self) -> None:
        if self.min_income.is_negative:
            raise ConfigurationError("Bracket lower bounds must be non-negative")
        if self.max_income is not None and self.max_income <= self.min_income:
            raise ConfigurationError(
                f"Bracket upper bound {self.max_income} must exceed lower bound {self.min_income}"
            )
        if self.rate.basis_points > 10_000:
            raise ConfigurationError("Bracket rates cannot exceed 100%")

    @property
    def is_unbounded(self) -> bool:
        return self.max_income is None

    def as_dict(self) -> dict[str, object]:
        return {
            "year": self.year,
            "scope": self.scope.value,
            "min_income": str(self.min_income),
            "max_income": None if self.max_income is None else str(self.max_income),
            "rate": str(self.rate),
        }


@dataclass(frozen=True)
class BracketTable:
    """Bracket sets keyed by ``(year, scope)``, each sorted by lower bound."""

    entries: Mapping[tuple[int, BracketScope], tuple[TaxBracket, ...]] = field(
        default_factory=dict
    )

    def __post_init__(self) -> None:
        ordered = {
            key: tuple(sorted(brackets, key=lambda bracket: bracket.min_income))
            for key, brackets in self.entries.items()
        }
        object.__setattr__(self, "entries", MappingProxyType(ordered))

    @classmethod
    def from_brackets(cls, brackets: Iterable[TaxBracket]) -> BracketTable:
        grouped: dict[tuple[int, BracketScope], list[TaxBracket]] = {}
        for bracket in brackets:
            grouped.setdefault((bracket.year, bracket.scope), []).append(bracket)
        return cls({key: tuple(value) for key, value in grouped.items()})

    def with_brackets(self, brackets: Iterable[TaxBracket]) -> BracketTable:
        """Return a new table where the supplied sets replace existing ones."""

        merged = dict(self.entries)
        merged.update(BracketTable.from_brackets(brackets).entries)
        return BracketTable(merged)

    def get(self, year: int, scope: BracketScope) -> tuple[TaxBracket, ...]:
        return self.entries.get((year, scope), ())

    def resolve(self, year: int) -> tuple[TaxBracket, ...]:
        """Return the user's brackets for ``year`` when present, else the defaults."""

        custom = self.get(year, BracketScope.USER)
        if custom:
            return custom
        defaults = self.get(year, BracketScope.DEFAULT)
        if defaults:
            return defaults
        raise ConfigurationError(f"No income tax brackets configured for {year}")

    def is_custom(self, year: int) -> bool:
        return bool(self.get(year, BracketScope.USER))


@dataclass(frozen=True, slots=True)
class RevenueRecord:
    """Invoice snapshot. ``amount_ttc`` is the value stored at creation time."""

    amount_ht: Money
    amount_ttc: Money
    tax_rate: Percentage
    invoice_date: date
    payment_date: date | None = None
    canceled: bool = False

    def __post_init__(self) -> None:
        if self.payment_date is not None and self.payment_date < self.invoice_date:
            raise InputError(
                f"Invoice paid on {self.payment_date.isoformat()} "
                f"before being issued on {self.invoice_date.isoformat()}"
            )

    @property
    def is_collected(self) -> bool:
        return self.payment_date is not None

    def as_dict(self) -> dict[str, object]:
        return {
            "amount_ht": str(self.amount_ht),
            "amount_ttc": str(self.amount_ttc),
            "tax_rate": str(self.tax_rate),
            "invoice_date": self.invoice_date.isoformat(),
            "payment_date": None if self.payment_date is None else self.payment_date.isoformat(),
        }


def compute_ttc(amount_ht: Money, tax_rate: Percentage) -> Money:
    """Return the tax-inclusive amount for a new invoice.

    Only meant for record creation; aggregations use the stored value.
    """

    return amount_ht + amount_ht.apply_rate(tax_rate)


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    period: RecurrencePeriod
    start_month: date
    end_month: date | None = None

    def __post_init__(self) -> None:
        if self.end_month is not None and self.end_month < self.start_month:
            raise InputError("Recurring expense ends before it starts")

    def applies_to(self, month_start: date) -> bool:
        """Return whether the expense falls due in the month beginning ``month_start``."""

        first = self.start_month.replace(day=1)
        if month_start < first:
            return False
        if self.end_month is not None and month_start > self.end_month:
            return False
        if self.period is RecurrencePeriod.MONTHLY:
            return True
        if self.period is RecurrencePeriod.QUARTERLY:
            return (month_start.month - first.month) % 3 == 0
        return month_start.month == first.month


@dataclass(frozen=True, slots=True)
class ExpenseRecord:
    amount_ht: Money
    date: date
    tax_amount: Money = Money(0)
    tax_recovery_rate: Percentage = Percentage(10_000)
    recurrence: RecurrenceRule | None = None
    intra_eu: bool = False

    def __post_init__(self) -> None:
        if self.amount_ht.is_negative or self.tax_amount.is_negative:
            raise InputError("Expense amounts cannot be negative")
        if self.tax_recovery_rate.basis_points > 10_000:
            raise InputError("Tax recovery rate cannot exceed 100%")

    @property
    def recoverable_tax(self) -> Money:
        return self.tax_amount.apply_rate(self.tax_recovery_rate)

    def as_dict(self) -> dict[str, object]:
        return {
            "amount_ht": str(self.amount_ht),
            "date": self.date.isoformat(),
            "tax_amount": str(self.tax_amount),
            "tax_recovery_rate": str(self.tax_recovery_rate),
            "recurring": self.recurrence is not None,
            "intra_eu": self.intra_eu,
        }


@dataclass(frozen=True, slots=True)
class ObligationRecord:
    """A TVA, URSSAF, or income tax payment; ``period_end`` is its due date."""

    kind: ObligationKind
    amount: Money
    status: ObligationStatus
    period_start: date
    period_end: date
    payment_date: date | None = None
    reference: str | None = None

    def __post_init__(self) -> None:
        if self.period_end < self.period_start:
            raise InputError("Obligation period ends before it starts")
        if self.amount.is_negative:
            raise InputError("Obligation amounts cannot be negative")

    @property
    def is_pending(self) -> bool:
        return self.status is ObligationStatus.PENDING

    @property
    def is_paid(self) -> bool:
        return self.status is ObligationStatus.PAID

    def as_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "amount": str(self.amount),
            "status": self.status.value,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "payment_date": None if self.payment_date is None else self.payment_date.isoformat(),
            "reference": self.reference,
        }


@dataclass(frozen=True, slots=True)
class Settings:
    urssaf_rate: Percentage
    estimated_tax_rate: Percentage
    revenue_deduction_rate: Percentage
    monthly_salary: Money
    additional_taxable_income: Money = Money(0)

    def __post_init__(self) -> None:
        for label, rate in (
            ("urssaf_rate", self.urssaf_rate),
            ("estimated_tax_rate", self.estimated_tax_rate),
            ("revenue_deduction_rate", self.revenue_deduction_rate),
        ):
            if rate.basis_points > 10_000:
                raise InputError(f"{label} cannot exceed 100%")
        if self.monthly_salary.is_negative:
            raise InputError("Monthly salary cannot be negative")


@dataclass(frozen=True, slots=True)
class AccountBalance:
    balance: Money
    updated_at: datetime | None = None


__all__ = [
    "AccountBalance",
    "BracketScope",
    "BracketTable",
    "ExpenseRecord",
    "ObligationKind",
    "ObligationRecord",
    "ObligationStatus",
    "RecurrencePeriod",
    "RecurrenceRule",
    "RevenueRecord",
    "Settings",
    "TaxBracket",
    "compute_ttc",
]
