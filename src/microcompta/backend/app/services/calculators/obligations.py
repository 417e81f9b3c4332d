"""Pending, paid, and overdue totals for TVA, URSSAF, and income tax payments."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from types import MappingProxyType

from microcompta.backend.app.models.records import ObligationKind, ObligationRecord
from microcompta.backend.app.models.summaries import ObligationTotals, UpcomingPayment
from microcompta.backend.app.models.values import Money

from .periods import trimester_for_month

_KIND_LABELS = {
    ObligationKind.TVA: "TVA",
    ObligationKind.URSSAF: "URSSAF",
    ObligationKind.INCOME_TAX: "Income tax",
}


def totals(records: Iterable[ObligationRecord], as_of: date) -> ObligationTotals:
    """Sum ``records`` by status as seen on ``as_of``.

    A pending record is overdue once its ``period_end`` is strictly before
    ``as_of``. Statuses are read, never changed.
    """

    pending = Money.zero()
    paid = Money.zero()
    overdue: list[ObligationRecord] = []

    for record in records:
        if record.is_paid:
            paid = paid + record.amount
            continue
        pending = pending + record.amount
        if record.period_end < as_of:
            overdue.append(record)

    return ObligationTotals(pending=pending, paid=paid, overdue=tuple(overdue))


def by_kind(
    records: Iterable[ObligationRecord],
) -> Mapping[ObligationKind, tuple[ObligationRecord, ...]]:
    grouped: dict[ObligationKind, list[ObligationRecord]] = {kind: [] for kind in ObligationKind}
    for record in records:
        grouped[record.kind].append(record)
    return MappingProxyType({kind: tuple(items) for kind, items in grouped.items()})


def totals_by_kind(
    records: Iterable[ObligationRecord], as_of: date
) -> Mapping[ObligationKind, ObligationTotals]:
    return MappingProxyType(
        {kind: totals(items, as_of) for kind, items in by_kind(records).items()}
    )


def describe(record: ObligationRecord) -> str:
    label = _KIND_LABELS[record.kind]
    if record.kind is ObligationKind.URSSAF:
        trimester = trimester_for_month(record.period_start.month)
        return f"{label} T{trimester} {record.period_start.year}"
    if record.kind is ObligationKind.INCOME_TAX:
        return f"{label} {record.period_start.year}"
    return f"{label} {record.period_start.strftime('%Y-%m')}"


def upcoming(records: Iterable[ObligationRecord], limit: int = 5) -> tuple[UpcomingPayment, ...]:
    """Return the next pending payments ordered by due date."""

    pending = sorted(
        (record for record in records if record.is_pending),
        key=lambda record: (record.period_end, record.kind.value),
    )
    return tuple(
        UpcomingPayment(
            kind=record.kind,
            amount=record.amount,
            due_date=record.period_end,
            description=describe(record),
        )
        for record in pending[:limit]
    )


__all__ = ["by_kind", "describe", "totals", "totals_by_kind", "upcoming"]
