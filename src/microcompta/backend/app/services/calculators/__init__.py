"""Pure calculation helpers for revenue, tax brackets, obligations and balances."""

from .balance import compose_account_summary, project_available_funds
from .brackets import allocate, effective_rate, validate_partition
from .composer import (
    compose_dashboard_summary,
    compose_income_tax_summary,
    compose_tva_declaration,
    compose_tva_months,
    compose_tva_summary,
    compose_urssaf_summary,
    compose_yearly_dashboard,
)
from .expenses import aggregate_expenses, occurrences
from .obligations import by_kind, totals, totals_by_kind, upcoming
from .periods import (
    DateRange,
    month_range,
    next_month,
    trimester_for_month,
    trimester_range,
    tva_due_date,
    year_range,
)
from .revenue import aggregate

__all__ = [
    "DateRange",
    "aggregate",
    "aggregate_expenses",
    "allocate",
    "by_kind",
    "compose_account_summary",
    "compose_dashboard_summary",
    "compose_income_tax_summary",
    "compose_tva_declaration",
    "compose_tva_months",
    "compose_tva_summary",
    "compose_urssaf_summary",
    "compose_yearly_dashboard",
    "effective_rate",
    "month_range",
    "next_month",
    "occurrences",
    "project_available_funds",
    "totals",
    "totals_by_kind",
    "trimester_for_month",
    "trimester_range",
    "tva_due_date",
    "upcoming",
    "validate_partition",
    "year_range",
]
