"""Compose period summaries from aggregated totals and user settings.

The monthly dashboard and income tax estimate read revenue on the accrual
basis (invoices issued); URSSAF contributions and TVA collected read the cash
basis (invoices paid). Each composer returns a fully built value or raises.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from microcompta.backend.app.models.records import (
    ExpenseRecord,
    ObligationKind,
    ObligationRecord,
    RevenueRecord,
    Settings,
    TaxBracket,
)
from microcompta.backend.app.models.summaries import (
    DashboardSummary,
    IncomeTaxSummary,
    MonthlyDashboardRow,
    ObligationTotals,
    RevenueTotals,
    TvaDeclaration,
    TvaMonth,
    TvaSummary,
    UpcomingPayment,
    UrssafSummary,
    UrssafTrimester,
    YearlyDashboard,
    YearlyKpis,
)
from microcompta.backend.app.models.values import Money, Percentage
from microcompta.backend.errors import InputError

from .brackets import allocate, effective_rate
from .expenses import occurrences
from .periods import DateRange, month_range, trimester_range, tva_due_date
from .revenue import aggregate


# Standard rate used for the CA3 base; purchases above the threshold are
# declared as fixed assets (box 19).
DECLARATION_TVA_RATE = Percentage.of("20")
FIXED_ASSET_THRESHOLD = Money.of("500")


def _records_starting_in(
    records: Sequence[ObligationRecord], period: DateRange
) -> list[ObligationRecord]:
    first = period.start.replace(day=1)
    return [record for record in records if first <= record.period_start <= period.end]


def _sum_amounts(records: Sequence[ObligationRecord], *, paid: bool) -> Money:
    return Money.total(record.amount for record in records if record.is_paid is paid)


def compose_income_tax_summary(
    year: int,
    revenue_totals: RevenueTotals,
    settings: Settings,
    brackets: Sequence[TaxBracket],
    payments: ObligationTotals | None = None,
    *,
    custom_brackets: bool = False,
) -> IncomeTaxSummary:
    """Estimate the year's income tax under the flat-deduction regime.

    ``remaining`` is left negative when payments exceed the estimate so the
    caller can surface the refund.
    """

    payments = payments or ObligationTotals.empty()
    total_revenue = revenue_totals.issued_ht
    after_deduction = total_revenue.apply_rate(settings.revenue_deduction_rate.complement())
    taxable_income = after_deduction + settings.additional_taxable_income

    allocation = allocate(taxable_income, brackets)

    return IncomeTaxSummary(
        year=year,
        total_revenue=total_revenue,
        deduction_rate=settings.revenue_deduction_rate,
        additional_taxable_income=settings.additional_taxable_income,
        taxable_income=taxable_income,
        estimated_tax=allocation.total_tax,
        effective_rate=effective_rate(allocation.total_tax, taxable_income),
        total_paid=payments.paid,
        total_pending=payments.pending,
        remaining=allocation.total_tax - payments.paid,
        brackets=allocation.breakdown,
        custom_brackets=custom_brackets,
    )


def compose_dashboard_summary(
    month: int,
    year: int,
    revenue_totals: RevenueTotals,
    obligation_totals: Mapping[ObligationKind, ObligationTotals],
    settings: Settings,
    upcoming_payments: Sequence[UpcomingPayment] = (),
) -> DashboardSummary:
    if month < 1 or month > 12:
        raise InputError(f"Month must be between 1 and 12, got {month}")

    revenue_ht = revenue_totals.issued_ht
    urssaf_estimate = revenue_totals.collected_ht.apply_rate(settings.urssaf_rate)
    income_tax_estimate = revenue_ht.apply_rate(settings.estimated_tax_rate)
    expenses_ht = revenue_totals.expenses_ht

    def _totals(kind: ObligationKind) -> ObligationTotals:
        return obligation_totals.get(kind) or ObligationTotals.empty()

    tva = _totals(ObligationKind.TVA)
    urssaf = _totals(ObligationKind.URSSAF)
    income_tax = _totals(ObligationKind.INCOME_TAX)

    return DashboardSummary(
        month=month,
        year=year,
        revenue_ht=revenue_ht,
        revenue_ttc=revenue_totals.issued_ttc,
        collected_ht=revenue_totals.collected_ht,
        tva_collected=revenue_totals.tva_collected,
        tva_recoverable=revenue_totals.tva_recoverable,
        net_tva=revenue_totals.tva_collected - revenue_totals.tva_recoverable,
        urssaf_estimate=urssaf_estimate,
        income_tax_estimate=income_tax_estimate,
        expenses_ht=expenses_ht,
        net_remaining=revenue_ht - expenses_ht - urssaf_estimate - income_tax_estimate,
        pending_tva=tva.pending,
        pending_urssaf=urssaf.pending,
        pending_income_tax=income_tax.pending,
        upcoming_payments=tuple(upcoming_payments),
        overdue=tva.overdue + urssaf.overdue + income_tax.overdue,
    )


def compose_yearly_dashboard(
    year: int,
    revenues: Sequence[RevenueRecord],
    expenses: Sequence[ExpenseRecord],
    obligations: Sequence[ObligationRecord],
    settings: Settings,
    as_of: date,
) -> YearlyDashboard:
    """Build the month-by-month view of ``year`` up to ``as_of``'s month."""

    is_current_year = as_of.year == year
    last_month = as_of.month if is_current_year else 12

    urssaf_records = [record for record in obligations if record.kind is ObligationKind.URSSAF]
    tva_records = [record for record in obligations if record.kind is ObligationKind.TVA]
    income_tax_records = [
        record
        for record in obligations
        if record.kind is ObligationKind.INCOME_TAX and record.period_start.year == year
    ]

    rows: list[MonthlyDashboardRow] = []
    revenue_total = Money.zero()
    urssaf_paid = Money.zero()
    urssaf_estimated = Money.zero()
    income_tax_estimated = Money.zero()
    tva_paid = Money.zero()
    tva_estimated = Money.zero()
    remaining_total = Money.zero()

    for month in range(1, last_month + 1):
        period = month_range(year, month)
        totals = aggregate(revenues, period, expenses)

        revenue_ht = totals.issued_ht
        urssaf_estimate = totals.collected_ht.apply_rate(settings.urssaf_rate)
        income_tax_estimate = revenue_ht.apply_rate(settings.estimated_tax_rate)
        net_tva = totals.tva_collected - totals.tva_recoverable

        trimester_payments = _records_starting_in(
            urssaf_records, trimester_range(year, (month - 1) // 3 + 1)
        )
        urssaf_is_paid = bool(trimester_payments) and all(
            record.is_paid for record in trimester_payments
        )

        month_tva_paid = [record for record in _records_starting_in(tva_records, period) if record.is_paid]
        tva_is_paid = bool(month_tva_paid)
        tva_display = Money.total(record.amount for record in month_tva_paid) if tva_is_paid else net_tva

        remaining = revenue_ht - totals.expenses_ht - urssaf_estimate - income_tax_estimate

        rows.append(
            MonthlyDashboardRow(
                month=month,
                revenue=revenue_ht,
                expenses_ht=totals.expenses_ht,
                urssaf=urssaf_estimate,
                urssaf_is_paid=urssaf_is_paid,
                income_tax=income_tax_estimate,
                tva=tva_display,
                tva_is_paid=tva_is_paid,
                remaining=remaining,
            )
        )

        revenue_total = revenue_total + revenue_ht
        if urssaf_is_paid:
            urssaf_paid = urssaf_paid + urssaf_estimate
        else:
            urssaf_estimated = urssaf_estimated + urssaf_estimate
        income_tax_estimated = income_tax_estimated + income_tax_estimate
        if tva_is_paid:
            tva_paid = tva_paid + tva_display
        else:
            tva_estimated = tva_estimated + net_tva
        remaining_total = remaining_total + remaining

    kpis = YearlyKpis(
        total_revenue=revenue_total,
        total_urssaf_paid=urssaf_paid,
        total_urssaf_estimated=urssaf_estimated,
        total_income_tax_paid=_sum_amounts(income_tax_records, paid=True),
        total_income_tax_estimated=income_tax_estimated,
        total_tva_paid=tva_paid,
        total_tva_estimated=tva_estimated,
        total_remaining=remaining_total,
    )

    return YearlyDashboard(
        year=year,
        current_month=as_of.month if is_current_year else None,
        kpis=kpis,
        months=tuple(rows),
    )


def compose_tva_summary(
    period: DateRange,
    revenue_totals: RevenueTotals,
    tva_obligations: Sequence[ObligationRecord],
) -> TvaSummary:
    net_tva = revenue_totals.tva_collected - revenue_totals.tva_recoverable
    in_period = _records_starting_in(tva_obligations, period)
    total_paid = _sum_amounts(in_period, paid=True)

    return TvaSummary(
        start_date=period.start,
        end_date=period.end,
        tva_collected=revenue_totals.tva_collected,
        tva_recoverable=revenue_totals.tva_recoverable,
        net_tva=net_tva,
        total_paid=total_paid,
        total_pending=_sum_amounts(in_period, paid=False),
        balance=net_tva - total_paid,
    )


def _tva_payment_status(
    paid_amount: Money,
    pending_amount: Money,
    net_tva: Money,
    period: DateRange,
    due_date: date,
    as_of: date,
) -> str:
    if paid_amount.is_positive:
        return "paid"
    if pending_amount.is_positive:
        return "pending"
    if as_of < period.end:
        return "not_due"
    if not net_tva.is_positive:
        return "not_due"
    if as_of > due_date:
        return "overdue"
    return "upcoming"


def compose_tva_months(
    year: int,
    revenues: Sequence[RevenueRecord],
    expenses: Sequence[ExpenseRecord],
    tva_obligations: Sequence[ObligationRecord],
    as_of: date,
    due_day: int = 19,
) -> tuple[TvaMonth, ...]:
    """Return the twelve monthly TVA positions of ``year`` with their payment status."""

    months: list[TvaMonth] = []
    for month in range(1, 13):
        period = month_range(year, month)
        totals = aggregate(revenues, period, expenses)
        net_tva = totals.tva_collected - totals.tva_recoverable

        payments = _records_starting_in(tva_obligations, period)
        paid_amount = _sum_amounts(payments, paid=True)
        pending_amount = _sum_amounts(payments, paid=False)
        due_date = tva_due_date(year, month, due_day)

        months.append(
            TvaMonth(
                month=month,
                year=year,
                tva_collected=totals.tva_collected,
                tva_recoverable=totals.tva_recoverable,
                net_tva=net_tva,
                paid_amount=paid_amount,
                pending_amount=pending_amount,
                due_date=due_date,
                payment_status=_tva_payment_status(
                    paid_amount, pending_amount, net_tva, period, due_date, as_of
                ),
            )
        )
    return tuple(months)


def compose_tva_declaration(
    year: int,
    month: int,
    revenues: Sequence[RevenueRecord],
    expenses: Sequence[ExpenseRecord],
) -> TvaDeclaration:
    """Fill the CA3 boxes for one month.

    Intermediate amounts keep their cents; only the reported boxes are
    rounded to whole euros. Intra-EU purchases are self-assessed: their HT
    joins the taxable base (B2) and the matching TVA is deducted in box 20.
    Recurring intra-EU expenses are left out of the return entirely.
    """

    period = month_range(year, month)

    invoices_paid = tuple(
        record
        for record in revenues
        if not record.canceled
        and record.payment_date is not None
        and record.payment_date in period
    )
    intra_eu = tuple(
        expense
        for expense in expenses
        if expense.intra_eu and expense.recurrence is None and expense.date in period
    )
    with_tva = tuple(
        expense
        for expense in expenses
        if not expense.intra_eu
        and expense.tax_amount.is_positive
        and occurrences(expense, period)
    )
    over_threshold = tuple(
        expense for expense in with_tva if expense.amount_ht > FIXED_ASSET_THRESHOLD
    )
    other = tuple(
        expense for expense in with_tva if expense.amount_ht <= FIXED_ASSET_THRESHOLD
    )

    a1 = Money.total(record.amount_ht for record in invoices_paid)
    b2 = Money.total(expense.amount_ht for expense in intra_eu)
    box_08 = a1 + b2
    box_17 = b2.apply_rate(DECLARATION_TVA_RATE)
    box_19 = Money.total(expense.recoverable_tax for expense in over_threshold)
    box_20 = Money.total(expense.recoverable_tax for expense in other) + box_17

    tva_collected = box_08.apply_rate(DECLARATION_TVA_RATE)
    tva_deductible = box_19 + box_20

    return TvaDeclaration(
        year=year,
        month=month,
        a1=a1.rounded_to_unit(),
        b2=b2.rounded_to_unit(),
        box_08=box_08.rounded_to_unit(),
        box_17=box_17.rounded_to_unit(),
        box_19=box_19.rounded_to_unit(),
        box_20=box_20.rounded_to_unit(),
        tva_collected=tva_collected.rounded_to_unit(),
        tva_deductible=tva_deductible.rounded_to_unit(),
        tva_net=(tva_collected - tva_deductible).rounded_to_unit(),
        invoices_paid=invoices_paid,
        expenses_intra_eu=intra_eu,
        expenses_over_threshold=over_threshold,
        expenses_with_tva=other,
    )


def compose_urssaf_summary(
    year: int,
    revenues: Sequence[RevenueRecord],
    urssaf_obligations: Sequence[ObligationRecord],
    settings: Settings,
) -> UrssafSummary:
    """Estimate contributions per trimester on revenue actually collected."""

    trimesters: list[UrssafTrimester] = []
    total_revenue = Money.zero()
    total_estimated = Money.zero()

    for trimester in range(1, 5):
        period = trimester_range(year, trimester)
        collected = aggregate(revenues, period).collected_ht
        estimated = collected.apply_rate(settings.urssaf_rate)
        trimesters.append(
            UrssafTrimester(
                trimester=trimester,
                start_date=period.start,
                end_date=period.end,
                actual_revenue=collected,
                estimated_amount=estimated,
                payments=tuple(_records_starting_in(urssaf_obligations, period)),
            )
        )
        total_revenue = total_revenue + collected
        total_estimated = total_estimated + estimated

    recorded = [payment for entry in trimesters for payment in entry.payments]
    total_paid = _sum_amounts(recorded, paid=True)
    total_pending = _sum_amounts(recorded, paid=False)

    return UrssafSummary(
        year=year,
        urssaf_rate=settings.urssaf_rate,
        trimesters=tuple(trimesters),
        total_revenue=total_revenue,
        total_estimated=total_estimated,
        total_amount=total_paid + total_pending,
        total_paid=total_paid,
        total_pending=total_pending,
    )


__all__ = [
    "compose_dashboard_summary",
    "compose_income_tax_summary",
    "compose_tva_declaration",
    "compose_tva_months",
    "compose_tva_summary",
    "compose_urssaf_summary",
    "compose_yearly_dashboard",
]
