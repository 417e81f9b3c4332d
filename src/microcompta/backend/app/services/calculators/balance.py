"""Project the funds left once pending obligations and next salary are paid."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from microcompta.backend.app.models.records import (
    AccountBalance,
    ObligationKind,
    ObligationRecord,
    Settings,
)
from microcompta.backend.app.models.summaries import AccountSummary
from microcompta.backend.app.models.values import Money

from .obligations import totals_by_kind


def project_available_funds(
    balance: Money,
    pending_tva: Money,
    pending_urssaf: Money,
    pending_income_tax: Money,
    next_month_salary: Money,
) -> Money:
    """Return ``balance`` minus every pending obligation and the next salary.

    The result is never clamped: a negative value signals a cash-flow risk.
    """

    return balance - (pending_tva + pending_urssaf + pending_income_tax) - next_month_salary


def compose_account_summary(
    account: AccountBalance,
    obligations: Iterable[ObligationRecord],
    settings: Settings,
    as_of: date,
) -> AccountSummary:
    by_kind = totals_by_kind(obligations, as_of)
    tva = by_kind[ObligationKind.TVA]
    urssaf = by_kind[ObligationKind.URSSAF]
    income_tax = by_kind[ObligationKind.INCOME_TAX]

    return AccountSummary(
        current_balance=account.balance,
        pending_tva=tva.pending,
        pending_urssaf=urssaf.pending,
        pending_income_tax=income_tax.pending,
        next_month_salary=settings.monthly_salary,
        available_funds=project_available_funds(
            account.balance,
            tva.pending,
            urssaf.pending,
            income_tax.pending,
            settings.monthly_salary,
        ),
        overdue=tva.overdue + urssaf.overdue + income_tax.overdue,
    )


__all__ = ["compose_account_summary", "project_available_funds"]
