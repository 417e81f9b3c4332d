"""Unit coverage for engine records and bracket table resolution."""

from __future__ import annotations

from datetime import date

import pytest

from microcompta.backend.app.models import (
    BracketScope,
    BracketTable,
    ExpenseRecord,
    Money,
    ObligationKind,
    ObligationRecord,
    ObligationStatus,
    Percentage,
    RecurrencePeriod,
    RecurrenceRule,
    Settings,
    TaxBracket,
    compute_ttc,
)
from microcompta.backend.errors import ConfigurationError, InputError


def _flat(year: int, rate: str, scope: BracketScope) -> TaxBracket:
    return TaxBracket(
        year=year,
        min_income=Money.zero(),
        max_income=None,
        rate=Percentage.of(rate),
        scope=scope,
    )


def test_bracket_table_prefers_user_scope() -> None:
    table = BracketTable.from_brackets(
        [_flat(2025, "11", BracketScope.DEFAULT), _flat(2025, "15", BracketScope.USER)]
    )

    assert table.resolve(2025)[0].rate == Percentage.of("15")
    assert table.is_custom(2025)


def test_bracket_table_falls_back_to_default_scope() -> None:
    table = BracketTable.from_brackets([_flat(2025, "11", BracketScope.DEFAULT)])

    assert table.resolve(2025)[0].rate == Percentage.of("11")
    assert not table.is_custom(2025)


def test_bracket_table_never_borrows_another_year() -> None:
    table = BracketTable.from_brackets([_flat(2024, "11", BracketScope.DEFAULT)])

    with pytest.raises(ConfigurationError):
        table.resolve(2025)


def test_with_brackets_replaces_existing_set() -> None:
    table = BracketTable.from_brackets([_flat(2025, "11", BracketScope.USER)])

    updated = table.with_brackets([_flat(2025, "20", BracketScope.USER)])

    assert updated.resolve(2025)[0].rate == Percentage.of("20")
    assert table.resolve(2025)[0].rate == Percentage.of("11")


def test_compute_ttc_rounds_half_up() -> None:
    assert compute_ttc(Money.of("10.05"), Percentage.of("5.5")) == Money.of("10.60")


def test_obligation_rejects_inverted_period() -> None:
    with pytest.raises(InputError):
        ObligationRecord(
            kind=ObligationKind.TVA,
            amount=Money.of("10"),
            status=ObligationStatus.PENDING,
            period_start=date(2025, 2, 1),
            period_end=date(2025, 1, 31),
        )


def test_recurrence_rejects_end_before_start() -> None:
    with pytest.raises(InputError):
        RecurrenceRule(
            period=RecurrencePeriod.MONTHLY,
            start_month=date(2025, 5, 1),
            end_month=date(2025, 4, 30),
        )


def test_expense_rejects_negative_amounts() -> None:
    with pytest.raises(InputError):
        ExpenseRecord(amount_ht=Money.of("-1"), date=date(2025, 1, 1))


def test_settings_reject_rates_above_hundred_percent() -> None:
    with pytest.raises(InputError):
        Settings(
            urssaf_rate=Percentage.of("120"),
            estimated_tax_rate=Percentage.of("11"),
            revenue_deduction_rate=Percentage.of("34"),
            monthly_salary=Money.of("3000"),
        )
