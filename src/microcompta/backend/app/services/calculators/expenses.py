"""Expense totals over a period, expanding recurring expenses month by month."""

from __future__ import annotations

from collections.abc import Iterable

from microcompta.backend.app.models.records import ExpenseRecord
from microcompta.backend.app.models.summaries import ExpenseTotals
from microcompta.backend.app.models.values import Money

from .periods import DateRange


def occurrences(expense: ExpenseRecord, period: DateRange) -> int:
    """Return how many times ``expense`` falls due within ``period``.

    One-off expenses count once when dated inside the period. Recurring ones
    count once for every month of the period their rule applies to.
    """

    rule = expense.recurrence
    if rule is None:
        return 1 if expense.date in period else 0
    return sum(1 for month_start in period.months() if rule.applies_to(month_start))


def aggregate_expenses(
    expenses: Iterable[ExpenseRecord], period: DateRange
) -> ExpenseTotals:
    total_ht = Money.zero()
    total_recoverable = Money.zero()

    for expense in expenses:
        count = occurrences(expense, period)
        if not count:
            continue
        total_ht = total_ht + expense.amount_ht.times(count)
        total_recoverable = total_recoverable + expense.recoverable_tax.times(count)

    return ExpenseTotals(ht=total_ht, tax_recoverable=total_recoverable)


__all__ = ["aggregate_expenses", "occurrences"]
