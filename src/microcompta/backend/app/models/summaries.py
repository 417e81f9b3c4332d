"""Derived values returned by the computation engine.

Summaries are recomputed on demand and never persisted. ``as_dict`` renders
them with decimal strings for money and rates and ISO dates, ready for JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .records import ExpenseRecord, ObligationKind, ObligationRecord, RevenueRecord
from .values import Money, Percentage


@dataclass(frozen=True, slots=True)
class BracketAllocation:
    min_income: Money
    max_income: Money | None
    rate: Percentage
    taxable_amount: Money
    tax_amount: Money

    def as_dict(self) -> dict[str, object]:
        return {
            "min_income": str(self.min_income),
            "max_income": None if self.max_income is None else str(self.max_income),
            "rate": str(self.rate),
            "taxable_amount": str(self.taxable_amount),
            "tax_amount": str(self.tax_amount),
        }


@dataclass(frozen=True, slots=True)
class AllocationResult:
    taxable_income: Money
    total_tax: Money
    breakdown: tuple[BracketAllocation, ...]


@dataclass(frozen=True, slots=True)
class BasisTotals:
    """Tax-exclusive and tax-inclusive sums on one accounting basis."""

    ht: Money = Money(0)
    ttc: Money = Money(0)

    @property
    def tax(self) -> Money:
        return self.ttc - self.ht

    def as_dict(self) -> dict[str, str]:
        return {"ht": str(self.ht), "ttc": str(self.ttc)}


@dataclass(frozen=True, slots=True)
class ExpenseTotals:
    ht: Money = Money(0)
    tax_recoverable: Money = Money(0)


@dataclass(frozen=True, slots=True)
class RevenueTotals:
    """Revenue over a period on both bases.

    ``issued`` buckets invoices by issue date (accrual); ``collected`` by
    payment date (cash). Social contributions are assessed on ``collected``.
    """

    issued: BasisTotals
    collected: BasisTotals
    expenses: ExpenseTotals = ExpenseTotals()

    @property
    def issued_ht(self) -> Money:
        return self.issued.ht

    @property
    def issued_ttc(self) -> Money:
        return self.issued.ttc

    @property
    def collected_ht(self) -> Money:
        return self.collected.ht

    @property
    def collected_ttc(self) -> Money:
        return self.collected.ttc

    @property
    def tva_collected(self) -> Money:
        return self.collected.tax

    @property
    def tva_recoverable(self) -> Money:
        return self.expenses.tax_recoverable

    @property
    def expenses_ht(self) -> Money:
        return self.expenses.ht

    def as_dict(self) -> dict[str, object]:
        return {
            "issued_ht": str(self.issued_ht),
            "issued_ttc": str(self.issued_ttc),
            "collected_ht": str(self.collected_ht),
            "collected_ttc": str(self.collected_ttc),
            "tva_collected": str(self.tva_collected),
            "tva_recoverable": str(self.tva_recoverable),
            "expenses_ht": str(self.expenses_ht),
        }


@dataclass(frozen=True, slots=True)
class ObligationTotals:
    pending: Money
    paid: Money
    overdue: tuple[ObligationRecord, ...]

    @classmethod
    def empty(cls) -> ObligationTotals:
        return cls(pending=Money.zero(), paid=Money.zero(), overdue=())

    def as_dict(self) -> dict[str, object]:
        return {
            "pending": str(self.pending),
            "paid": str(self.paid),
            "overdue": [record.as_dict() for record in self.overdue],
        }


@dataclass(frozen=True, slots=True)
class IncomeTaxSummary:
    year: int
    total_revenue: Money
    deduction_rate: Percentage
    additional_taxable_income: Money
    taxable_income: Money
    estimated_tax: Money
    effective_rate: Percentage
    total_paid: Money
    total_pending: Money
    remaining: Money
    brackets: tuple[BracketAllocation, ...]
    custom_brackets: bool = False

    @property
    def is_refund_due(self) -> bool:
        return self.remaining.is_negative

    def as_dict(self) -> dict[str, object]:
        return {
            "year": self.year,
            "total_revenue": str(self.total_revenue),
            "deduction_rate": str(self.deduction_rate),
            "additional_taxable_income": str(self.additional_taxable_income),
            "taxable_income": str(self.taxable_income),
            "estimated_tax": str(self.estimated_tax),
            "effective_rate": str(self.effective_rate),
            "total_paid": str(self.total_paid),
            "total_pending": str(self.total_pending),
            "remaining": str(self.remaining),
            "refund_due": self.is_refund_due,
            "custom_brackets": self.custom_brackets,
            "brackets": [entry.as_dict() for entry in self.brackets],
        }


@dataclass(frozen=True, slots=True)
class UpcomingPayment:
    kind: ObligationKind
    amount: Money
    due_date: date
    description: str

    def as_dict(self) -> dict[str, object]:
        return {
            "type": self.kind.value,
            "amount": str(self.amount),
            "due_date": self.due_date.isoformat(),
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    month: int
    year: int
    revenue_ht: Money
    revenue_ttc: Money
    collected_ht: Money
    tva_collected: Money
    tva_recoverable: Money
    net_tva: Money
    urssaf_estimate: Money
    income_tax_estimate: Money
    expenses_ht: Money
    net_remaining: Money
    pending_tva: Money
    pending_urssaf: Money
    pending_income_tax: Money
    upcoming_payments: tuple[UpcomingPayment, ...] = ()
    overdue: tuple[ObligationRecord, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "month": self.month,
            "year": self.year,
            "revenue_ht": str(self.revenue_ht),
            "revenue_ttc": str(self.revenue_ttc),
            "collected_ht": str(self.collected_ht),
            "tva_collected": str(self.tva_collected),
            "tva_recoverable": str(self.tva_recoverable),
            "net_tva": str(self.net_tva),
            "urssaf_estimate": str(self.urssaf_estimate),
            "income_tax_estimate": str(self.income_tax_estimate),
            "expenses_ht": str(self.expenses_ht),
            "net_remaining": str(self.net_remaining),
            "pending_tva": str(self.pending_tva),
            "pending_urssaf": str(self.pending_urssaf),
            "pending_income_tax": str(self.pending_income_tax),
            "upcoming_payments": [entry.as_dict() for entry in self.upcoming_payments],
            "overdue": [record.as_dict() for record in self.overdue],
        }


@dataclass(frozen=True, slots=True)
class MonthlyDashboardRow:
    month: int
    revenue: Money
    expenses_ht: Money
    urssaf: Money
    urssaf_is_paid: bool
    income_tax: Money
    tva: Money
    tva_is_paid: bool
    remaining: Money

    def as_dict(self) -> dict[str, object]:
        return {
            "month": self.month,
            "revenue": str(self.revenue),
            "expenses_ht": str(self.expenses_ht),
            "urssaf": str(self.urssaf),
            "urssaf_is_paid": self.urssaf_is_paid,
            "income_tax": str(self.income_tax),
            "tva": str(self.tva),
            "tva_is_paid": self.tva_is_paid,
            "remaining": str(self.remaining),
        }


@dataclass(frozen=True, slots=True)
class YearlyKpis:
    total_revenue: Money
    total_urssaf_paid: Money
    total_urssaf_estimated: Money
    total_income_tax_paid: Money
    total_income_tax_estimated: Money
    total_tva_paid: Money
    total_tva_estimated: Money
    total_remaining: Money

    @property
    def total_urssaf(self) -> Money:
        return self.total_urssaf_paid + self.total_urssaf_estimated

    def as_dict(self) -> dict[str, str]:
        return {
            "total_revenue": str(self.total_revenue),
            "total_urssaf_paid": str(self.total_urssaf_paid),
            "total_urssaf_estimated": str(self.total_urssaf_estimated),
            "total_urssaf": str(self.total_urssaf),
            "total_income_tax_paid": str(self.total_income_tax_paid),
            "total_income_tax_estimated": str(self.total_income_tax_estimated),
            "total_tva_paid": str(self.total_tva_paid),
            "total_tva_estimated": str(self.total_tva_estimated),
            "total_remaining": str(self.total_remaining),
        }


@dataclass(frozen=True, slots=True)
class YearlyDashboard:
    year: int
    current_month: int | None
    kpis: YearlyKpis
    months: tuple[MonthlyDashboardRow, ...]

    def as_dict(self) -> dict[str, object]:
        return {
            "year": self.year,
            "current_month": self.current_month,
            "kpis": self.kpis.as_dict(),
            "months": [row.as_dict() for row in self.months],
        }


@dataclass(frozen=True, slots=True)
class TvaSummary:
    start_date: date
    end_date: date
    tva_collected: Money
    tva_recoverable: Money
    net_tva: Money
    total_paid: Money
    total_pending: Money
    balance: Money

    def as_dict(self) -> dict[str, object]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "tva_collected": str(self.tva_collected),
            "tva_recoverable": str(self.tva_recoverable),
            "net_tva": str(self.net_tva),
            "total_paid": str(self.total_paid),
            "total_pending": str(self.total_pending),
            "balance": str(self.balance),
        }


@dataclass(frozen=True, slots=True)
class TvaMonth:
    month: int
    year: int
    tva_collected: Money
    tva_recoverable: Money
    net_tva: Money
    paid_amount: Money
    pending_amount: Money
    due_date: date
    payment_status: str

    def as_dict(self) -> dict[str, object]:
        return {
            "month": self.month,
            "year": self.year,
            "tva_collected": str(self.tva_collected),
            "tva_recoverable": str(self.tva_recoverable),
            "net_tva": str(self.net_tva),
            "paid_amount": str(self.paid_amount),
            "pending_amount": str(self.pending_amount),
            "due_date": self.due_date.isoformat(),
            "payment_status": self.payment_status,
        }


@dataclass(frozen=True, slots=True)
class TvaDeclaration:
    """Monthly CA3 return. Box amounts are rounded to whole euros."""

    year: int
    month: int
    a1: Money
    b2: Money
    box_08: Money
    box_17: Money
    box_19: Money
    box_20: Money
    tva_collected: Money
    tva_deductible: Money
    tva_net: Money
    invoices_paid: tuple[RevenueRecord, ...] = ()
    expenses_intra_eu: tuple[ExpenseRecord, ...] = ()
    expenses_over_threshold: tuple[ExpenseRecord, ...] = ()
    expenses_with_tva: tuple[ExpenseRecord, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "month": f"{self.year:04d}-{self.month:02d}",
            "cases": {
                "A1": str(self.a1),
                "B2": str(self.b2),
                "case08": str(self.box_08),
                "case17": str(self.box_17),
                "case19": str(self.box_19),
                "case20": str(self.box_20),
            },
            "summary": {
                "tva_collected": str(self.tva_collected),
                "tva_deductible": str(self.tva_deductible),
                "tva_net": str(self.tva_net),
            },
            "details": {
                "invoices_paid": [record.as_dict() for record in self.invoices_paid],
                "expenses_intra_eu": [record.as_dict() for record in self.expenses_intra_eu],
                "expenses_over_500": [
                    record.as_dict() for record in self.expenses_over_threshold
                ],
                "expenses_with_tva": [record.as_dict() for record in self.expenses_with_tva],
            },
        }


@dataclass(frozen=True, slots=True)
class UrssafTrimester:
    trimester: int
    start_date: date
    end_date: date
    actual_revenue: Money
    estimated_amount: Money
    payments: tuple[ObligationRecord, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "trimester": self.trimester,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "actual_revenue": str(self.actual_revenue),
            "estimated_amount": str(self.estimated_amount),
            "payments": [payment.as_dict() for payment in self.payments],
        }


@dataclass(frozen=True, slots=True)
class UrssafSummary:
    year: int
    urssaf_rate: Percentage
    trimesters: tuple[UrssafTrimester, ...]
    total_revenue: Money
    total_estimated: Money
    total_amount: Money
    total_paid: Money
    total_pending: Money

    def as_dict(self) -> dict[str, object]:
        return {
            "year": self.year,
            "urssaf_rate": str(self.urssaf_rate),
            "trimesters": [entry.as_dict() for entry in self.trimesters],
            "totals": {
                "total_revenue": str(self.total_revenue),
                "total_estimated": str(self.total_estimated),
                "total_amount": str(self.total_amount),
                "total_paid": str(self.total_paid),
                "total_pending": str(self.total_pending),
            },
        }


@dataclass(frozen=True, slots=True)
class AccountSummary:
    current_balance: Money
    pending_tva: Money
    pending_urssaf: Money
    pending_income_tax: Money
    next_month_salary: Money
    available_funds: Money
    overdue: tuple[ObligationRecord, ...] = ()

    @property
    def total_obligations(self) -> Money:
        return self.pending_tva + self.pending_urssaf + self.pending_income_tax

    @property
    def at_risk(self) -> bool:
        return self.available_funds.is_negative

    def as_dict(self) -> dict[str, object]:
        return {
            "current_balance": str(self.current_balance),
            "pending_tva": str(self.pending_tva),
            "pending_urssaf": str(self.pending_urssaf),
            "pending_income_tax": str(self.pending_income_tax),
            "total_obligations": str(self.total_obligations),
            "next_month_salary": str(self.next_month_salary),
            "available_funds": str(self.available_funds),
            "at_risk": self.at_risk,
            "overdue": [record.as_dict() for record in self.overdue],
        }


__all__ = [
    "AccountSummary",
    "AllocationResult",
    "BasisTotals",
    "BracketAllocation",
    "DashboardSummary",
    "ExpenseTotals",
    "IncomeTaxSummary",
    "MonthlyDashboardRow",
    "ObligationTotals",
    "RevenueTotals",
    "TvaDeclaration",
    "TvaMonth",
    "TvaSummary",
    "UpcomingPayment",
    "UrssafSummary",
    "UrssafTrimester",
    "YearlyDashboard",
    "YearlyKpis",
]
