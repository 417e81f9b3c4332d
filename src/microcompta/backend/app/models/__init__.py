"""Typed values, engine records and request models shared across services.

Engine inputs and outputs are frozen dataclasses over exact fixed-point
``Money`` and ``Percentage`` values. Pydantic models are confined to the API
boundary in :mod:`.api` and converted to records by the summary service.
"""

from __future__ import annotations

from .api import (
    AccountSummaryRequest,
    BracketInput,
    DashboardRequest,
    ExpenseInput,
    IncomeTaxEstimateRequest,
    IncomeTaxSummaryRequest,
    ObligationInput,
    RecurrenceInput,
    RevenueInput,
    SettingsInput,
    TvaDeclarationRequest,
    TvaMonthlyRequest,
    TvaSummaryRequest,
    UrssafSummaryRequest,
    YearlyDashboardRequest,
    format_validation_error,
    validation_issues,
)
from .records import (
    AccountBalance,
    BracketScope,
    BracketTable,
    ExpenseRecord,
    ObligationKind,
    ObligationRecord,
    ObligationStatus,
    RecurrencePeriod,
    RecurrenceRule,
    RevenueRecord,
    Settings,
    TaxBracket,
    compute_ttc,
)
from .values import Money, Percentage

__all__ = [
    "AccountBalance",
    "AccountSummaryRequest",
    "BracketInput",
    "BracketScope",
    "BracketTable",
    "DashboardRequest",
    "ExpenseInput",
    "ExpenseRecord",
    "IncomeTaxEstimateRequest",
    "IncomeTaxSummaryRequest",
    "Money",
    "ObligationInput",
    "ObligationKind",
    "ObligationRecord",
    "ObligationStatus",
    "Percentage",
    "RecurrenceInput",
    "RecurrencePeriod",
    "RecurrenceRule",
    "RevenueInput",
    "RevenueRecord",
    "Settings",
    "SettingsInput",
    "TaxBracket",
    "TvaDeclarationRequest",
    "TvaMonthlyRequest",
    "TvaSummaryRequest",
    "UrssafSummaryRequest",
    "YearlyDashboardRequest",
    "compute_ttc",
    "format_validation_error",
    "validation_issues",
]
