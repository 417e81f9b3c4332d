"""Revenue totals over a period on the accrual and cash bases."""

from __future__ import annotations

from collections.abc import Iterable

from microcompta.backend.app.models.records import ExpenseRecord, RevenueRecord
from microcompta.backend.app.models.summaries import BasisTotals, RevenueTotals
from microcompta.backend.app.models.values import Money

from .expenses import aggregate_expenses
from .periods import DateRange


def aggregate(
    records: Iterable[RevenueRecord],
    period: DateRange,
    expenses: Iterable[ExpenseRecord] = (),
) -> RevenueTotals:
    """Sum ``records`` over ``period``.

    An invoice counts as issued in the period of its ``invoice_date`` and as
    collected in the period of its ``payment_date``; unpaid invoices are never
    collected. Canceled invoices are ignored entirely. The stored
    ``amount_ttc`` is summed as-is.
    """

    issued_ht = Money.zero()
    issued_ttc = Money.zero()
    collected_ht = Money.zero()
    collected_ttc = Money.zero()

    for record in records:
        if record.canceled:
            continue
        if record.invoice_date in period:
            issued_ht = issued_ht + record.amount_ht
            issued_ttc = issued_ttc + record.amount_ttc
        if record.payment_date is not None and record.payment_date in period:
            collected_ht = collected_ht + record.amount_ht
            collected_ttc = collected_ttc + record.amount_ttc

    return RevenueTotals(
        issued=BasisTotals(ht=issued_ht, ttc=issued_ttc),
        collected=BasisTotals(ht=collected_ht, ttc=collected_ttc),
        expenses=aggregate_expenses(expenses, period),
    )


__all__ = ["aggregate"]
