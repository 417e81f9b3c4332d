"""Calendar helpers shared by the aggregators and summary composers."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from microcompta.backend.errors import InputError


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive ``[start, end]`` range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InputError(
                f"Date range end {self.end.isoformat()} precedes start {self.start.isoformat()}"
            )

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, date):
            return False
        return self.start <= day <= self.end

    def months(self) -> Iterator[date]:
        """Yield the first day of every month touched by the range."""

        current = self.start.replace(day=1)
        while current <= self.end:
            yield current
            current = next_month(current)

    def as_dict(self) -> dict[str, str]:
        return {"start_date": self.start.isoformat(), "end_date": self.end.isoformat()}


def _validate_month(year: int, month: int) -> None:
    if month < 1 or month > 12:
        raise InputError(f"Month must be between 1 and 12, got {month}")
    if year < 1:
        raise InputError(f"Invalid year {year}")


def month_range(year: int, month: int) -> DateRange:
    _validate_month(year, month)
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(date(year, month, 1), date(year, month, last_day))


def trimester_range(year: int, trimester: int) -> DateRange:
    if trimester < 1 or trimester > 4:
        raise InputError(f"Trimester must be between 1 and 4, got {trimester}")
    first_month = (trimester - 1) * 3 + 1
    last_month = trimester * 3
    return DateRange(month_range(year, first_month).start, month_range(year, last_month).end)


def year_range(year: int) -> DateRange:
    return DateRange(date(year, 1, 1), date(year, 12, 31))


def trimester_for_month(month: int) -> int:
    return (month - 1) // 3 + 1


def next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def tva_due_date(year: int, month: int, due_day: int = 19) -> date:
    """Return the TVA due date for ``month``: ``due_day`` of the following month.

    Saturdays and Sundays roll forward to the next Monday.
    """

    _validate_month(year, month)
    following = next_month(date(year, month, 1))
    due = following.replace(day=due_day)
    weekday = due.weekday()
    if weekday == 5:
        due += timedelta(days=2)
    elif weekday == 6:
        due += timedelta(days=1)
    return due


__all__ = [
    "DateRange",
    "month_range",
    "next_month",
    "trimester_for_month",
    "trimester_range",
    "tva_due_date",
    "year_range",
]
