"""Orchestrate request validation, configuration lookup and summary composition.

The summary service converts JSON payloads into engine records, resolves the
bracket table and default settings for the requested year, and runs the pure
calculators. It is the only module that joins the HTTP-facing request models,
the YAML configuration layer and the engine; the calculators never see a
Pydantic model or read a clock. Profiling hooks and logging live here too.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from contextlib import contextmanager
from datetime import date
from time import perf_counter
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from microcompta.backend.app.models import (
    AccountBalance,
    AccountSummaryRequest,
    BracketInput,
    BracketScope,
    BracketTable,
    DashboardRequest,
    ExpenseInput,
    ExpenseRecord,
    IncomeTaxEstimateRequest,
    IncomeTaxSummaryRequest,
    Money,
    ObligationInput,
    ObligationKind,
    ObligationRecord,
    ObligationStatus,
    Percentage,
    RecurrencePeriod,
    RecurrenceRule,
    RevenueInput,
    RevenueRecord,
    Settings,
    SettingsInput,
    TaxBracket,
    TvaDeclarationRequest,
    TvaMonthlyRequest,
    TvaSummaryRequest,
    UrssafSummaryRequest,
    YearlyDashboardRequest,
    compute_ttc,
    format_validation_error,
    validation_issues,
)
from microcompta.backend.app.models.summaries import BasisTotals, RevenueTotals
from microcompta.backend.config.year_config import (
    DefaultRates,
    YearConfiguration,
    is_supported_year,
    load_year_configuration,
)
from microcompta.backend.errors import InputError

from .calculators import (
    DateRange,
    aggregate,
    by_kind,
    compose_account_summary,
    compose_dashboard_summary,
    compose_income_tax_summary,
    compose_tva_declaration,
    compose_tva_months,
    compose_tva_summary,
    compose_urssaf_summary,
    compose_yearly_dashboard,
    month_range,
    totals,
    totals_by_kind,
    upcoming,
    year_range,
)

_LOGGER = logging.getLogger(__name__)

_RequestT = TypeVar("_RequestT", bound=BaseModel)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("MICROCOMPTA_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _log_timings(operation: str, timings: dict[str, float] | None, started: float | None) -> None:
    if timings is None or started is None:
        return
    timings["total"] = perf_counter() - started
    _LOGGER.debug(
        "%s timings (ms): %s",
        operation,
        {name: round(duration * 1000, 3) for name, duration in timings.items()},
    )


def _parse(model: type[_RequestT], payload: Mapping[str, Any] | _RequestT) -> _RequestT:
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise InputError("Payload must be a mapping")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InputError(format_validation_error(exc), validation_issues(exc)) from exc


def _as_of(value: date | None) -> date:
    return value if value is not None else date.today()


def _revenue_records(entries: Iterable[RevenueInput]) -> tuple[RevenueRecord, ...]:
    records: list[RevenueRecord] = []
    for entry in entries:
        amount_ht = Money.of(entry.amount_ht)
        tax_rate = Percentage.of(entry.tax_rate)
        amount_ttc = (
            Money.of(entry.amount_ttc)
            if entry.amount_ttc is not None
            else compute_ttc(amount_ht, tax_rate)
        )
        records.append(
            RevenueRecord(
                amount_ht=amount_ht,
                amount_ttc=amount_ttc,
                tax_rate=tax_rate,
                invoice_date=entry.invoice_date,
                payment_date=entry.payment_date,
                canceled=entry.canceled,
            )
        )
    return tuple(records)


def _expense_records(entries: Iterable[ExpenseInput]) -> tuple[ExpenseRecord, ...]:
    records: list[ExpenseRecord] = []
    for entry in entries:
        recurrence = None
        if entry.recurrence is not None:
            recurrence = RecurrenceRule(
                period=RecurrencePeriod(entry.recurrence.period),
                start_month=entry.recurrence.start_month,
                end_month=entry.recurrence.end_month,
            )
        records.append(
            ExpenseRecord(
                amount_ht=Money.of(entry.amount_ht),
                date=entry.expense_date,
                tax_amount=Money.of(entry.tax_amount),
                tax_recovery_rate=Percentage.of(entry.tax_recovery_rate),
                recurrence=recurrence,
                intra_eu=entry.intra_eu,
            )
        )
    return tuple(records)


def _obligation_records(entries: Iterable[ObligationInput]) -> tuple[ObligationRecord, ...]:
    return tuple(
        ObligationRecord(
            kind=ObligationKind(entry.kind),
            amount=Money.of(entry.amount),
            status=ObligationStatus(entry.status),
            period_start=entry.period_start,
            period_end=entry.period_end,
            payment_date=entry.payment_date,
            reference=entry.reference,
        )
        for entry in entries
    )


def _default_rates(year: int) -> DefaultRates:
    if is_supported_year(year):
        return load_year_configuration(year).defaults
    _LOGGER.debug("No configuration for %s; using built-in default settings", year)
    return DefaultRates()


def resolve_settings(year: int, overrides: SettingsInput | None = None) -> Settings:
    """Merge user overrides with the defaults configured for ``year``."""

    defaults = _default_rates(year)
    overrides = overrides or SettingsInput()

    def _pick(name: str) -> Any:
        value = getattr(overrides, name)
        return getattr(defaults, name) if value is None else value

    additional = overrides.additional_taxable_income
    return Settings(
        urssaf_rate=Percentage.of(_pick("urssaf_rate")),
        estimated_tax_rate=Percentage.of(_pick("estimated_tax_rate")),
        revenue_deduction_rate=Percentage.of(_pick("revenue_deduction_rate")),
        monthly_salary=Money.of(_pick("monthly_salary")),
        additional_taxable_income=Money.of(additional) if additional is not None else Money.zero(),
    )


def default_brackets(configuration: YearConfiguration) -> tuple[TaxBracket, ...]:
    """Convert the YAML bracket declarations of a year into engine brackets."""

    return tuple(
        TaxBracket(
            year=configuration.year,
            min_income=Money.of(entry.min_income),
            max_income=None if entry.max_income is None else Money.of(entry.max_income),
            rate=Percentage.of(entry.rate),
            scope=BracketScope.DEFAULT,
        )
        for entry in configuration.brackets
    )


def build_bracket_table(
    year: int, custom: Sequence[BracketInput] | None = None
) -> BracketTable:
    """Return the bracket table for ``year`` with any user brackets layered on top.

    Default brackets are omitted when the year is not configured so that a
    request with its own brackets still resolves.
    """

    brackets: list[TaxBracket] = []
    if is_supported_year(year):
        brackets.extend(default_brackets(load_year_configuration(year)))
    if custom:
        brackets.extend(
            TaxBracket(
                year=year,
                min_income=Money.of(entry.min_income),
                max_income=None if entry.max_income is None else Money.of(entry.max_income),
                rate=Percentage.of(entry.rate),
                scope=BracketScope.USER,
            )
            for entry in custom
        )
    return BracketTable.from_brackets(brackets)


def _resolve_brackets(table: BracketTable, year: int) -> tuple[tuple[TaxBracket, ...], bool]:
    if not table.get(year, BracketScope.USER) and not table.get(year, BracketScope.DEFAULT):
        # Surface unknown years as missing configuration rather than a bad table.
        load_year_configuration(year)
    custom = table.is_custom(year)
    _LOGGER.debug("Using %s brackets for %s", "user" if custom else "default", year)
    return table.resolve(year), custom


def summarise_income_tax(
    payload: Mapping[str, Any] | IncomeTaxSummaryRequest,
) -> dict[str, Any]:
    """Estimate the income tax of a year from its invoices and recorded payments."""

    request = _parse(IncomeTaxSummaryRequest, payload)
    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    started = perf_counter() if timings is not None else None

    year = request.year
    brackets, custom = _resolve_brackets(build_bracket_table(year, request.brackets), year)
    settings = resolve_settings(year, request.settings)

    with _profile_section("records", timings):
        revenues = _revenue_records(request.revenues)
        obligations = _obligation_records(request.obligations)

    with _profile_section("aggregate", timings):
        revenue_totals = aggregate(revenues, year_range(year))
        income_tax_payments = [
            record
            for record in by_kind(obligations)[ObligationKind.INCOME_TAX]
            if record.period_start.year == year
        ]
        payments = totals(income_tax_payments, _as_of(request.as_of))

    with _profile_section("compose", timings):
        summary = compose_income_tax_summary(
            year,
            revenue_totals,
            settings,
            brackets,
            payments,
            custom_brackets=custom,
        )

    _log_timings("summarise_income_tax", timings, started)
    return summary.as_dict()


def estimate_income_tax(
    payload: Mapping[str, Any] | IncomeTaxEstimateRequest,
) -> dict[str, Any]:
    """Estimate income tax on a declared annual revenue."""

    request = _parse(IncomeTaxEstimateRequest, payload)
    year = request.year
    brackets, custom = _resolve_brackets(build_bracket_table(year, request.brackets), year)
    settings = resolve_settings(year, request.settings)

    revenue = Money.of(request.annual_revenue)
    declared = RevenueTotals(
        issued=BasisTotals(ht=revenue, ttc=revenue),
        collected=BasisTotals(ht=revenue, ttc=revenue),
    )
    summary = compose_income_tax_summary(
        year, declared, settings, brackets, custom_brackets=custom
    )
    return summary.as_dict()


def summarise_dashboard(payload: Mapping[str, Any] | DashboardRequest) -> dict[str, Any]:
    """Build the monthly dashboard for the requested month."""

    request = _parse(DashboardRequest, payload)
    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    started = perf_counter() if timings is not None else None

    as_of = _as_of(request.as_of)
    settings = resolve_settings(request.year, request.settings)

    with _profile_section("records", timings):
        revenues = _revenue_records(request.revenues)
        expenses = _expense_records(request.expenses)
        obligations = _obligation_records(request.obligations)

    with _profile_section("aggregate", timings):
        revenue_totals = aggregate(revenues, month_range(request.year, request.month), expenses)
        obligation_totals = totals_by_kind(obligations, as_of)

    with _profile_section("compose", timings):
        summary = compose_dashboard_summary(
            request.month,
            request.year,
            revenue_totals,
            obligation_totals,
            settings,
            upcoming(obligations),
        )

    _log_timings("summarise_dashboard", timings, started)
    return summary.as_dict()


def summarise_year(payload: Mapping[str, Any] | YearlyDashboardRequest) -> dict[str, Any]:
    """Build the yearly dashboard with one row per elapsed month."""

    request = _parse(YearlyDashboardRequest, payload)
    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    started = perf_counter() if timings is not None else None

    settings = resolve_settings(request.year, request.settings)
    with _profile_section("compose", timings):
        dashboard = compose_yearly_dashboard(
            request.year,
            _revenue_records(request.revenues),
            _expense_records(request.expenses),
            _obligation_records(request.obligations),
            settings,
            _as_of(request.as_of),
        )

    _log_timings("summarise_year", timings, started)
    return dashboard.as_dict()


def summarise_account(payload: Mapping[str, Any] | AccountSummaryRequest) -> dict[str, Any]:
    """Project the funds available once pending obligations and salary are paid."""

    request = _parse(AccountSummaryRequest, payload)
    as_of = _as_of(request.as_of)
    settings = resolve_settings(as_of.year, request.settings)
    account = AccountBalance(balance=Money.of(request.balance), updated_at=request.updated_at)

    summary = compose_account_summary(
        account, _obligation_records(request.obligations), settings, as_of
    )
    if summary.at_risk:
        _LOGGER.info("Projected available funds are negative: %s", summary.available_funds)
    return summary.as_dict()


def summarise_tva(payload: Mapping[str, Any] | TvaSummaryRequest) -> dict[str, Any]:
    """Report TVA collected, recoverable and paid over an arbitrary date range."""

    request = _parse(TvaSummaryRequest, payload)
    period = DateRange(request.start_date, request.end_date)
    revenue_totals = aggregate(
        _revenue_records(request.revenues), period, _expense_records(request.expenses)
    )
    tva_obligations = by_kind(_obligation_records(request.obligations))[ObligationKind.TVA]
    return compose_tva_summary(period, revenue_totals, tva_obligations).as_dict()


def tva_monthly_schedule(payload: Mapping[str, Any] | TvaMonthlyRequest) -> dict[str, Any]:
    """Return the twelve monthly TVA positions of a year with due dates and status."""

    request = _parse(TvaMonthlyRequest, payload)
    year = request.year
    due_day = _default_rates(year).tva_due_day
    tva_obligations = by_kind(_obligation_records(request.obligations))[ObligationKind.TVA]

    months = compose_tva_months(
        year,
        _revenue_records(request.revenues),
        _expense_records(request.expenses),
        tva_obligations,
        _as_of(request.as_of),
        due_day,
    )
    return {"year": year, "months": [entry.as_dict() for entry in months]}


def tva_declaration(payload: Mapping[str, Any] | TvaDeclarationRequest) -> dict[str, Any]:
    """Fill the monthly CA3 return from paid invoices and the month's expenses."""

    request = _parse(TvaDeclarationRequest, payload)
    declaration = compose_tva_declaration(
        request.year,
        request.month,
        _revenue_records(request.revenues),
        _expense_records(request.expenses),
    )
    if declaration.expenses_intra_eu:
        _LOGGER.debug(
            "Self-assessed %d intra-EU expense(s) for %04d-%02d",
            len(declaration.expenses_intra_eu),
            request.year,
            request.month,
        )
    return declaration.as_dict()


def summarise_urssaf(payload: Mapping[str, Any] | UrssafSummaryRequest) -> dict[str, Any]:
    """Estimate URSSAF contributions per trimester on collected revenue."""

    request = _parse(UrssafSummaryRequest, payload)
    settings = resolve_settings(request.year, request.settings)
    urssaf_obligations = by_kind(_obligation_records(request.obligations))[ObligationKind.URSSAF]

    summary = compose_urssaf_summary(
        request.year,
        _revenue_records(request.revenues),
        urssaf_obligations,
        settings,
    )
    return summary.as_dict()


__all__ = [
    "build_bracket_table",
    "default_brackets",
    "estimate_income_tax",
    "resolve_settings",
    "summarise_account",
    "summarise_dashboard",
    "summarise_income_tax",
    "summarise_tva",
    "summarise_urssaf",
    "summarise_year",
    "tva_declaration",
    "tva_monthly_schedule",
]
