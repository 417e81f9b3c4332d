"""Pydantic models describing the public API surface."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

__all__ = [
    "AccountSummaryRequest",
    "BracketInput",
    "DashboardRequest",
    "ExpenseInput",
    "IncomeTaxEstimateRequest",
    "IncomeTaxSummaryRequest",
    "MoneyValue",
    "ObligationInput",
    "PercentageValue",
    "RecurrenceInput",
    "RevenueInput",
    "SettingsInput",
    "TvaDeclarationRequest",
    "TvaMonthlyRequest",
    "TvaSummaryRequest",
    "UrssafSummaryRequest",
    "YearlyDashboardRequest",
    "format_validation_error",
    "validation_issues",
]


# numeric(12,2): ten integer digits and two decimals.
MoneyValue = Annotated[Decimal, Field(max_digits=12, decimal_places=2)]
PositiveMoney = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]
PercentageValue = Annotated[Decimal, Field(ge=0, le=100, max_digits=5, decimal_places=2)]
TaxYear = Annotated[int, Field(ge=2000, le=2100)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class RevenueInput(_Payload):
    """An invoice as stored by the bookkeeping application."""

    amount_ht: MoneyValue
    amount_ttc: MoneyValue | None = None
    tax_rate: PercentageValue = Decimal("20.00")
    invoice_date: date
    payment_date: date | None = None
    canceled: bool = False

    @model_validator(mode="after")
    def _check_payment_order(self) -> "RevenueInput":
        if self.payment_date is not None and self.payment_date < self.invoice_date:
            raise ValueError("payment_date cannot precede invoice_date")
        return self


class RecurrenceInput(_Payload):
    period: Literal["monthly", "quarterly", "yearly"]
    start_month: date
    end_month: date | None = None


class ExpenseInput(_Payload):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    amount_ht: PositiveMoney
    expense_date: date = Field(alias="date")
    tax_amount: PositiveMoney = Decimal("0")
    tax_recovery_rate: PercentageValue = Decimal("100")
    recurrence: RecurrenceInput | None = None
    intra_eu: bool = False


class ObligationInput(_Payload):
    """A TVA, URSSAF or income tax payment, paid or still pending."""

    kind: Literal["tva", "urssaf", "income_tax"]
    amount: PositiveMoney
    status: Literal["pending", "paid"] = "pending"
    period_start: date
    period_end: date
    payment_date: date | None = None
    reference: str | None = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def _check_period(self) -> "ObligationInput":
        if self.period_end < self.period_start:
            raise ValueError("period_end cannot precede period_start")
        return self


class SettingsInput(_Payload):
    """User overrides; omitted values fall back to the year's defaults."""

    urssaf_rate: PercentageValue | None = None
    estimated_tax_rate: PercentageValue | None = None
    revenue_deduction_rate: PercentageValue | None = None
    monthly_salary: PositiveMoney | None = None
    additional_taxable_income: PositiveMoney | None = None


class BracketInput(_Payload):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    min_income: PositiveMoney = Field(alias="min")
    max_income: PositiveMoney | None = Field(default=None, alias="max")
    rate: PercentageValue


class _RecordsPayload(_Payload):
    revenues: list[RevenueInput] = Field(default_factory=list)
    expenses: list[ExpenseInput] = Field(default_factory=list)
    obligations: list[ObligationInput] = Field(default_factory=list)
    settings: SettingsInput = Field(default_factory=SettingsInput)
    as_of: date | None = None


def _reject_empty_brackets(value: list[BracketInput] | None) -> list[BracketInput] | None:
    if value is not None and not value:
        raise ValueError("custom bracket list cannot be empty")
    return value


class IncomeTaxSummaryRequest(_RecordsPayload):
    year: TaxYear
    brackets: list[BracketInput] | None = None

    check_brackets = field_validator("brackets")(_reject_empty_brackets)


class IncomeTaxEstimateRequest(_Payload):
    """Estimate tax on a declared annual revenue without invoice records."""

    year: TaxYear
    annual_revenue: PositiveMoney
    settings: SettingsInput = Field(default_factory=SettingsInput)
    brackets: list[BracketInput] | None = None

    check_brackets = field_validator("brackets")(_reject_empty_brackets)


class DashboardRequest(_RecordsPayload):
    year: TaxYear
    month: int = Field(ge=1, le=12)


class YearlyDashboardRequest(_RecordsPayload):
    year: TaxYear


class AccountSummaryRequest(_Payload):
    balance: MoneyValue
    updated_at: datetime | None = None
    obligations: list[ObligationInput] = Field(default_factory=list)
    settings: SettingsInput = Field(default_factory=SettingsInput)
    as_of: date | None = None


class TvaSummaryRequest(_RecordsPayload):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_range(self) -> "TvaSummaryRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot precede start_date")
        return self


class TvaMonthlyRequest(_RecordsPayload):
    year: TaxYear


class TvaDeclarationRequest(_RecordsPayload):
    """Records needed to fill one month's CA3 return."""

    year: TaxYear
    month: int = Field(ge=1, le=12)


class UrssafSummaryRequest(_RecordsPayload):
    year: TaxYear


def validation_issues(error: ValidationError) -> list[dict[str, str]]:
    """Return one ``{"field", "message"}`` entry per validation issue."""

    issues: list[dict[str, str]] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if "decimal places" in message.lower():
            message = "at most two decimal places are allowed"
        issues.append({"field": location, "message": message})
    return issues


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages = [
        f"{issue['field']}: {issue['message']}" if issue["field"] else issue["message"]
        for issue in validation_issues(error)
    ]
    details = "; ".join(messages) if messages else str(error)
    return f"Invalid request payload: {details}"
