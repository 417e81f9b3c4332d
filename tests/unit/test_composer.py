"""Unit coverage for income tax, dashboard, TVA and URSSAF summaries."""

from __future__ import annotations

from datetime import date

import pytest

from microcompta.backend.app.models import (
    BracketScope,
    Money,
    ObligationKind,
    ObligationRecord,
    ObligationStatus,
    Percentage,
    RecurrencePeriod,
    RecurrenceRule,
    RevenueRecord,
    Settings,
    TaxBracket,
    ExpenseRecord,
    compute_ttc,
)
from microcompta.backend.app.models.summaries import (
    BasisTotals,
    ObligationTotals,
    RevenueTotals,
)
from microcompta.backend.app.services.calculators import (
    aggregate,
    compose_dashboard_summary,
    compose_income_tax_summary,
    compose_tva_declaration,
    compose_tva_months,
    compose_tva_summary,
    compose_urssaf_summary,
    compose_yearly_dashboard,
    month_range,
    totals_by_kind,
    trimester_range,
    upcoming,
)
from microcompta.backend.errors import InputError


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        urssaf_rate=Percentage.of("22"),
        estimated_tax_rate=Percentage.of("11"),
        revenue_deduction_rate=Percentage.of("34"),
        monthly_salary=Money.of("3000"),
    )


@pytest.fixture()
def brackets() -> list[TaxBracket]:
    def _bracket(low: str, high: str | None, rate: str) -> TaxBracket:
        return TaxBracket(
            year=2025,
            min_income=Money.of(low),
            max_income=None if high is None else Money.of(high),
            rate=Percentage.of(rate),
            scope=BracketScope.DEFAULT,
        )

    return [
        _bracket("0", "10000", "0"),
        _bracket("10000", "25000", "11"),
        _bracket("25000", None, "30"),
    ]


def _invoice(ht: str, issued: date, paid: date | None = None) -> RevenueRecord:
    amount = Money.of(ht)
    rate = Percentage.of("20")
    return RevenueRecord(
        amount_ht=amount,
        amount_ttc=compute_ttc(amount, rate),
        tax_rate=rate,
        invoice_date=issued,
        payment_date=paid,
    )


def _obligation(
    kind: ObligationKind,
    amount: str,
    status: ObligationStatus,
    start: date,
    end: date,
) -> ObligationRecord:
    return ObligationRecord(
        kind=kind,
        amount=Money.of(amount),
        status=status,
        period_start=start,
        period_end=end,
    )


def _issued(ht: str) -> RevenueTotals:
    amount = Money.of(ht)
    return RevenueTotals(issued=BasisTotals(ht=amount, ttc=amount), collected=BasisTotals())


def test_income_tax_applies_flat_deduction_before_brackets(
    settings: Settings, brackets: list[TaxBracket]
) -> None:
    summary = compose_income_tax_summary(2025, _issued("30303.03"), settings, brackets)

    assert summary.taxable_income == Money.of("20000.00")
    assert summary.estimated_tax == Money.of("1100.00")
    assert summary.effective_rate == Percentage.of("5.50")
    assert summary.remaining == Money.of("1100.00")
    assert not summary.is_refund_due


def test_income_tax_remaining_is_negative_on_overpayment(
    settings: Settings, brackets: list[TaxBracket]
) -> None:
    payments = ObligationTotals(pending=Money.of("50"), paid=Money.of("1500"), overdue=())

    summary = compose_income_tax_summary(2025, _issued("30303.03"), settings, brackets, payments)

    assert summary.remaining == Money.of("-400.00")
    assert summary.total_pending == Money.of("50")
    assert summary.is_refund_due
    assert summary.as_dict()["remaining"] == "-400.00"


def test_income_tax_adds_additional_taxable_income(brackets: list[TaxBracket]) -> None:
    settings = Settings(
        urssaf_rate=Percentage.of("22"),
        estimated_tax_rate=Percentage.of("11"),
        revenue_deduction_rate=Percentage.of("0"),
        monthly_salary=Money.of("3000"),
        additional_taxable_income=Money.of("5000"),
    )

    summary = compose_income_tax_summary(2025, _issued("15000"), settings, brackets)

    assert summary.taxable_income == Money.of("20000")
    assert summary.estimated_tax == Money.of("1100.00")


def test_income_tax_uses_issued_revenue_only(
    settings: Settings, brackets: list[TaxBracket]
) -> None:
    totals = RevenueTotals(
        issued=BasisTotals(ht=Money.zero(), ttc=Money.zero()),
        collected=BasisTotals(ht=Money.of("50000"), ttc=Money.of("60000")),
    )

    summary = compose_income_tax_summary(2025, totals, settings, brackets)

    assert summary.estimated_tax.is_zero


def test_dashboard_summary(settings: Settings) -> None:
    expense = ExpenseRecord(amount_ht=Money.of("100"), date=date(2025, 3, 5), tax_amount=Money.of("20"))
    revenues = [
        _invoice("1000", date(2025, 3, 2), date(2025, 3, 20)),
        _invoice("500", date(2025, 3, 25)),
    ]
    obligations = [
        _obligation(ObligationKind.TVA, "150", ObligationStatus.PENDING, date(2025, 1, 1), date(2025, 1, 31)),
        _obligation(ObligationKind.URSSAF, "300", ObligationStatus.PENDING, date(2025, 1, 1), date(2025, 3, 31)),
    ]
    as_of = date(2025, 3, 31)

    summary = compose_dashboard_summary(
        3,
        2025,
        aggregate(revenues, month_range(2025, 3), [expense]),
        totals_by_kind(obligations, as_of),
        settings,
        upcoming(obligations),
    )

    assert summary.revenue_ht == Money.of("1500")
    assert summary.revenue_ttc == Money.of("1800")
    assert summary.collected_ht == Money.of("1000")
    assert summary.net_tva == Money.of("180")
    assert summary.urssaf_estimate == Money.of("220")
    assert summary.income_tax_estimate == Money.of("165")
    assert summary.net_remaining == Money.of("1015")
    assert summary.pending_tva == Money.of("150")
    assert summary.pending_urssaf == Money.of("300")
    assert [record.kind for record in summary.overdue] == [ObligationKind.TVA]
    assert len(summary.upcoming_payments) == 2


def test_dashboard_rejects_invalid_month(settings: Settings) -> None:
    with pytest.raises(InputError):
        compose_dashboard_summary(13, 2025, _issued("0"), {}, settings)


def test_yearly_dashboard_tracks_paid_status(settings: Settings) -> None:
    revenues = [_invoice("1000", date(2025, 1, 10), date(2025, 1, 20))]
    obligations = [
        _obligation(ObligationKind.URSSAF, "220", ObligationStatus.PAID, date(2025, 1, 1), date(2025, 3, 31)),
        _obligation(ObligationKind.TVA, "200", ObligationStatus.PAID, date(2025, 1, 1), date(2025, 1, 31)),
    ]

    dashboard = compose_yearly_dashboard(2025, revenues, [], obligations, settings, date(2025, 3, 15))

    assert dashboard.current_month == 3
    assert [row.month for row in dashboard.months] == [1, 2, 3]
    january = dashboard.months[0]
    assert january.urssaf == Money.of("220")
    assert january.urssaf_is_paid
    assert january.tva_is_paid
    assert january.remaining == Money.of("670")
    assert not dashboard.months[1].tva_is_paid
    assert dashboard.kpis.total_revenue == Money.of("1000")
    assert dashboard.kpis.total_urssaf_paid == Money.of("220")
    assert dashboard.kpis.total_urssaf_estimated.is_zero
    assert dashboard.kpis.total_income_tax_estimated == Money.of("110")
    assert dashboard.kpis.total_tva_paid == Money.of("200")
    assert dashboard.kpis.total_remaining == Money.of("670")


def test_yearly_dashboard_for_past_year_lists_every_month(settings: Settings) -> None:
    dashboard = compose_yearly_dashboard(2024, [], [], [], settings, date(2025, 6, 1))

    assert dashboard.current_month is None
    assert len(dashboard.months) == 12


def test_tva_summary_balance(settings: Settings) -> None:
    revenues = [
        _invoice("1000", date(2025, 1, 5), date(2025, 1, 20)),
        _invoice("500", date(2025, 2, 5), date(2025, 2, 20)),
        _invoice("300", date(2025, 3, 5), date(2025, 3, 20)),
    ]
    obligations = [
        _obligation(ObligationKind.TVA, "200", ObligationStatus.PAID, date(2025, 1, 1), date(2025, 1, 31)),
        _obligation(ObligationKind.TVA, "60", ObligationStatus.PENDING, date(2025, 3, 1), date(2025, 3, 31)),
        _obligation(ObligationKind.TVA, "999", ObligationStatus.PAID, date(2024, 12, 1), date(2024, 12, 31)),
    ]
    period = trimester_range(2025, 1)

    summary = compose_tva_summary(period, aggregate(revenues, period), obligations)

    assert summary.tva_collected == Money.of("360")
    assert summary.total_paid == Money.of("200")
    assert summary.total_pending == Money.of("60")
    assert summary.balance == Money.of("160")


def test_tva_months_statuses() -> None:
    revenues = [
        _invoice("1000", date(2025, 1, 5), date(2025, 1, 20)),
        _invoice("500", date(2025, 2, 5), date(2025, 2, 20)),
        _invoice("300", date(2025, 3, 5), date(2025, 3, 20)),
    ]
    obligations = [
        _obligation(ObligationKind.TVA, "200", ObligationStatus.PAID, date(2025, 1, 1), date(2025, 1, 31)),
        _obligation(ObligationKind.TVA, "60", ObligationStatus.PENDING, date(2025, 3, 1), date(2025, 3, 31)),
    ]

    months = compose_tva_months(2025, revenues, [], obligations, date(2025, 4, 10))

    assert len(months) == 12
    assert [entry.payment_status for entry in months[:5]] == [
        "paid",
        "overdue",
        "pending",
        "not_due",
        "not_due",
    ]
    assert months[1].due_date == date(2025, 3, 19)
    assert months[1].net_tva == Money.of("100")


def test_tva_month_is_upcoming_before_due_date() -> None:
    revenues = [_invoice("500", date(2025, 2, 5), date(2025, 2, 20))]

    months = compose_tva_months(2025, revenues, [], [], date(2025, 3, 5))

    assert months[1].payment_status == "upcoming"
    assert months[0].payment_status == "not_due"


def test_tva_month_counts_as_complete_on_its_last_day() -> None:
    revenues = [_invoice("500", date(2025, 2, 5), date(2025, 2, 20))]

    on_last_day = compose_tva_months(2025, revenues, [], [], date(2025, 2, 28))
    day_before = compose_tva_months(2025, revenues, [], [], date(2025, 2, 27))

    assert on_last_day[1].payment_status == "upcoming"
    assert day_before[1].payment_status == "not_due"


def test_urssaf_summary_uses_cash_basis(settings: Settings) -> None:
    revenues = [
        _invoice("1000", date(2025, 1, 10), date(2025, 2, 1)),
        _invoice("2000", date(2025, 4, 10), date(2025, 7, 1)),
        _invoice("700", date(2025, 5, 10)),
    ]
    obligations = [
        _obligation(ObligationKind.URSSAF, "220", ObligationStatus.PAID, date(2025, 1, 1), date(2025, 3, 31)),
        _obligation(ObligationKind.URSSAF, "440", ObligationStatus.PENDING, date(2025, 7, 1), date(2025, 9, 30)),
    ]

    summary = compose_urssaf_summary(2025, revenues, obligations, settings)

    assert [entry.actual_revenue for entry in summary.trimesters] == [
        Money.of("1000"),
        Money.zero(),
        Money.of("2000"),
        Money.zero(),
    ]
    assert summary.trimesters[2].estimated_amount == Money.of("440")
    assert summary.total_revenue == Money.of("3000")
    assert summary.total_estimated == Money.of("660")
    assert summary.total_paid == Money.of("220")
    assert summary.total_pending == Money.of("440")
    assert summary.total_amount == Money.of("660")


def _expense(
    ht: str,
    spent: date,
    tax: str = "0",
    *,
    recovery: str = "100",
    intra_eu: bool = False,
    monthly_from: date | None = None,
) -> ExpenseRecord:
    recurrence = None
    if monthly_from is not None:
        recurrence = RecurrenceRule(period=RecurrencePeriod.MONTHLY, start_month=monthly_from)
    return ExpenseRecord(
        amount_ht=Money.of(ht),
        date=spent,
        tax_amount=Money.of(tax),
        tax_recovery_rate=Percentage.of(recovery),
        recurrence=recurrence,
        intra_eu=intra_eu,
    )


def _declaration_inputs() -> tuple[list[RevenueRecord], list[ExpenseRecord]]:
    canceled = RevenueRecord(
        amount_ht=Money.of("800"),
        amount_ttc=Money.of("960"),
        tax_rate=Percentage.of("20"),
        invoice_date=date(2025, 3, 1),
        payment_date=date(2025, 3, 15),
        canceled=True,
    )
    revenues = [
        _invoice("1000", date(2025, 3, 1), date(2025, 3, 10)),
        _invoice("234.56", date(2025, 2, 20), date(2025, 3, 20)),
        _invoice("500", date(2025, 3, 25), date(2025, 4, 2)),
        canceled,
    ]
    expenses = [
        _expense("300.40", date(2025, 3, 5), intra_eu=True),
        _expense("100", date(2025, 1, 1), "20", intra_eu=True, monthly_from=date(2025, 1, 1)),
        _expense("1200", date(2025, 3, 12), "240"),
        _expense("500", date(2025, 3, 15), "100", recovery="50"),
        _expense("50", date(2025, 1, 1), "10", monthly_from=date(2025, 1, 1)),
        _expense("80", date(2025, 3, 20)),
        _expense("40", date(2025, 2, 20), "8"),
    ]
    return revenues, expenses


def test_tva_declaration_fills_ca3_boxes() -> None:
    revenues, expenses = _declaration_inputs()

    declaration = compose_tva_declaration(2025, 3, revenues, expenses)

    # A1 1234.56 and B2 300.40 are exact; only the reported boxes are rounded.
    assert declaration.a1 == Money.of("1235")
    assert declaration.b2 == Money.of("300")
    assert declaration.box_08 == Money.of("1535")
    assert declaration.box_17 == Money.of("60")
    assert declaration.box_19 == Money.of("240")
    # 50 (half of 100) + 10 recurring + 60.08 self-assessed.
    assert declaration.box_20 == Money.of("120")
    assert declaration.tva_collected == Money.of("307")
    assert declaration.tva_deductible == Money.of("360")
    assert declaration.tva_net == Money.of("-53")


def test_tva_declaration_sorts_expenses_by_box() -> None:
    revenues, expenses = _declaration_inputs()

    declaration = compose_tva_declaration(2025, 3, revenues, expenses)

    assert len(declaration.invoices_paid) == 2
    assert [expense.amount_ht for expense in declaration.expenses_intra_eu] == [Money.of("300.40")]
    assert [expense.amount_ht for expense in declaration.expenses_over_threshold] == [
        Money.of("1200")
    ]
    assert [expense.amount_ht for expense in declaration.expenses_with_tva] == [
        Money.of("500"),
        Money.of("50"),
    ]


def test_tva_declaration_for_an_empty_month() -> None:
    declaration = compose_tva_declaration(2025, 7, [], [])

    payload = declaration.as_dict()
    assert payload["month"] == "2025-07"
    assert set(payload["cases"].values()) == {"0.00"}
    assert payload["summary"]["tva_net"] == "0.00"


def test_intra_eu_tax_stays_in_the_monthly_recoverable_total() -> None:
    expenses = [_expense("1000", date(2025, 3, 10), "200", intra_eu=True)]

    totals = aggregate([], month_range(2025, 3), expenses)

    assert totals.tva_recoverable == Money.of("200")
