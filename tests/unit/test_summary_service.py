"""Unit coverage for the summary service orchestration."""

from __future__ import annotations

import logging

import pytest

from microcompta.backend.app.models import BracketScope, Money, Percentage, SettingsInput
from microcompta.backend.app.services import summary_service
from microcompta.backend.errors import ConfigurationError, InputError


def _income_tax_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "year": 2025,
        "as_of": "2025-06-30",
        "revenues": [
            {
                "amount_ht": "30303.03",
                "invoice_date": "2025-02-10",
                "payment_date": "2025-03-01",
            },
            {
                "amount_ht": "9000",
                "invoice_date": "2025-03-10",
                "canceled": True,
            },
        ],
        "brackets": [
            {"min": 0, "max": 10000, "rate": 0},
            {"min": 10000, "max": 25000, "rate": 11},
            {"min": 25000, "rate": 30},
        ],
    }
    payload.update(overrides)
    return payload


def test_resolve_settings_merges_overrides_with_year_defaults() -> None:
    settings = summary_service.resolve_settings(2025, SettingsInput(urssaf_rate="21.20"))

    assert settings.urssaf_rate == Percentage.of("21.20")
    assert settings.estimated_tax_rate == Percentage.of("11")
    assert settings.revenue_deduction_rate == Percentage.of("34")
    assert settings.monthly_salary == Money.of("3000")
    assert settings.additional_taxable_income.is_zero


def test_resolve_settings_for_unconfigured_year_uses_built_in_defaults() -> None:
    settings = summary_service.resolve_settings(2099)

    assert settings.urssaf_rate == Percentage.of("22")


def test_build_bracket_table_layers_user_brackets() -> None:
    table = summary_service.build_bracket_table(
        2025, [summary_service.BracketInput(min=0, rate="12.5")]
    )

    assert table.get(2025, BracketScope.DEFAULT)
    assert table.resolve(2025)[0].rate == Percentage.of("12.5")


def test_summarise_income_tax_with_custom_brackets() -> None:
    result = summary_service.summarise_income_tax(_income_tax_payload())

    assert result["total_revenue"] == "30303.03"
    assert result["taxable_income"] == "20000.00"
    assert result["estimated_tax"] == "1100.00"
    assert result["custom_brackets"] is True
    assert [entry["tax_amount"] for entry in result["brackets"]] == ["0.00", "1100.00", "0.00"]


def test_summarise_income_tax_reports_refund_due() -> None:
    payload = _income_tax_payload(
        obligations=[
            {
                "kind": "income_tax",
                "amount": "1500",
                "status": "paid",
                "period_start": "2025-01-01",
                "period_end": "2025-12-31",
            },
            {
                "kind": "income_tax",
                "amount": "700",
                "status": "paid",
                "period_start": "2024-01-01",
                "period_end": "2024-12-31",
            },
        ]
    )

    result = summary_service.summarise_income_tax(payload)

    assert result["total_paid"] == "1500.00"
    assert result["remaining"] == "-400.00"
    assert result["refund_due"] is True


def test_summarise_income_tax_uses_configured_brackets() -> None:
    payload = _income_tax_payload(brackets=None)

    result = summary_service.summarise_income_tax(payload)

    # 20000 taxable: (20000 - 11497) at 11 %.
    assert result["estimated_tax"] == "935.33"
    assert result["custom_brackets"] is False


def test_unconfigured_year_without_brackets_is_missing() -> None:
    with pytest.raises(FileNotFoundError):
        summary_service.summarise_income_tax(_income_tax_payload(year=2099, brackets=None))


def test_gapped_custom_brackets_are_a_configuration_error() -> None:
    payload = _income_tax_payload(
        brackets=[{"min": 0, "max": 1000, "rate": 0}, {"min": 2000, "rate": 10}]
    )

    with pytest.raises(ConfigurationError):
        summary_service.summarise_income_tax(payload)


def test_invalid_payload_is_reported_concisely() -> None:
    payload = _income_tax_payload(
        revenues=[{"amount_ht": "10.001", "invoice_date": "2025-01-01"}]
    )

    with pytest.raises(InputError) as excinfo:
        summary_service.summarise_income_tax(payload)

    assert "revenues.0.amount_ht" in str(excinfo.value)
    assert excinfo.value.details == (
        {"field": "revenues.0.amount_ht", "message": "at most two decimal places are allowed"},
    )


def test_payment_before_invoice_is_rejected() -> None:
    payload = _income_tax_payload(
        revenues=[
            {
                "amount_ht": "10",
                "invoice_date": "2025-02-01",
                "payment_date": "2025-01-01",
            }
        ]
    )

    with pytest.raises(InputError):
        summary_service.summarise_income_tax(payload)


def test_estimate_income_tax_from_declared_revenue() -> None:
    result = summary_service.estimate_income_tax(
        {"year": 2025, "annual_revenue": "30303.03", "brackets": _income_tax_payload()["brackets"]}
    )

    assert result["estimated_tax"] == "1100.00"
    assert result["effective_rate"] == "5.50"


@pytest.mark.parametrize(
    ("operation", "payload"),
    [
        (summary_service.summarise_income_tax, {"year": 2025, "brackets": []}),
        (
            summary_service.estimate_income_tax,
            {"year": 2025, "annual_revenue": "50000", "brackets": []},
        ),
    ],
    ids=["summary", "estimate"],
)
def test_empty_custom_bracket_list_is_rejected(operation, payload: dict[str, object]) -> None:
    with pytest.raises(InputError, match="custom bracket list cannot be empty"):
        operation(payload)


def test_summarise_account_projects_available_funds() -> None:
    result = summary_service.summarise_account(
        {
            "balance": "5000",
            "as_of": "2025-02-01",
            "obligations": [
                {"kind": "tva", "amount": "800", "period_start": "2025-01-01", "period_end": "2025-01-31"},
                {"kind": "urssaf", "amount": "600", "period_start": "2025-01-01", "period_end": "2025-03-31"},
                {"kind": "income_tax", "amount": "400", "period_start": "2025-01-01", "period_end": "2025-12-31"},
            ],
        }
    )

    assert result["available_funds"] == "200.00"
    assert result["total_obligations"] == "1800.00"
    assert len(result["overdue"]) == 1


def test_profiling_logs_timings(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("MICROCOMPTA_PROFILE_CALCULATIONS", "true")
    caplog.set_level(logging.DEBUG, logger=summary_service.__name__)

    summary_service.summarise_income_tax(_income_tax_payload())

    assert any("summarise_income_tax timings" in record.message for record in caplog.records)


def test_tva_monthly_schedule_uses_configured_due_day() -> None:
    result = summary_service.tva_monthly_schedule(
        {
            "year": 2025,
            "as_of": "2025-04-10",
            "revenues": [
                {"amount_ht": "500", "invoice_date": "2025-02-05", "payment_date": "2025-02-20"}
            ],
        }
    )

    february = result["months"][1]
    assert february["due_date"] == "2025-03-19"
    assert february["payment_status"] == "overdue"
    assert february["net_tva"] == "100.00"


def test_tva_declaration_reports_self_assessed_intra_eu_purchases() -> None:
    result = summary_service.tva_declaration(
        {
            "year": 2025,
            "month": 3,
            "revenues": [
                {"amount_ht": "2000", "invoice_date": "2025-03-01", "payment_date": "2025-03-15"}
            ],
            "expenses": [
                {"amount_ht": "450", "date": "2025-03-04", "intra_eu": True},
                {"amount_ht": "150", "tax_amount": "30", "date": "2025-03-09"},
            ],
        }
    )

    assert result["month"] == "2025-03"
    assert result["cases"] == {
        "A1": "2000.00",
        "B2": "450.00",
        "case08": "2450.00",
        "case17": "90.00",
        "case19": "0.00",
        "case20": "120.00",
    }
    assert result["summary"] == {
        "tva_collected": "490.00",
        "tva_deductible": "120.00",
        "tva_net": "370.00",
    }
    assert [entry["intra_eu"] for entry in result["details"]["expenses_intra_eu"]] == [True]
