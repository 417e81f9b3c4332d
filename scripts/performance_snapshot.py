#!/usr/bin/env python3
"""Collect baseline timings for the MicroCompta summary computations."""

from __future__ import annotations

import json
import os
import sys
from datetime import date
from pathlib import Path
from time import perf_counter
from typing import Any, Callable

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from microcompta.backend.app.services.summary_service import (  # noqa: E402
    summarise_income_tax,
    summarise_urssaf,
    summarise_year,
    tva_monthly_schedule,
)

SAMPLE_YEAR = 2025


def sample_payload(invoices_per_month: int) -> dict[str, Any]:
    """Return a year of synthetic invoices, expenses and obligations."""

    revenues = []
    expenses = []
    obligations = []
    for month in range(1, 13):
        for index in range(invoices_per_month):
            day = 1 + index % 28
            revenues.append(
                {
                    "amount_ht": f"{400 + index * 25}.50",
                    "invoice_date": date(SAMPLE_YEAR, month, day).isoformat(),
                    "payment_date": date(SAMPLE_YEAR, month, 28).isoformat(),
                    "canceled": index % 17 == 0,
                }
            )
        expenses.append(
            {
                "amount_ht": "120.00",
                "tax_amount": "24.00",
                "date": date(SAMPLE_YEAR, month, 5).isoformat(),
            }
        )
        obligations.append(
            {
                "kind": "tva",
                "amount": "450.00",
                "status": "paid" if month < 6 else "pending",
                "period_start": date(SAMPLE_YEAR, month, 1).isoformat(),
                "period_end": date(SAMPLE_YEAR, month, 28).isoformat(),
            }
        )
    return {
        "year": SAMPLE_YEAR,
        "as_of": date(SAMPLE_YEAR, 12, 31).isoformat(),
        "revenues": revenues,
        "expenses": expenses,
        "obligations": obligations,
    }


def measure(
    operation: Callable[[dict[str, Any]], Any], payload: dict[str, Any], iterations: int
) -> dict[str, float]:
    """Return timing statistics for repeated calls to ``operation``."""

    operation(payload)  # Warm configuration caches
    start = perf_counter()
    for _ in range(iterations):
        operation(payload)
    elapsed = perf_counter() - start
    return {
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def main() -> None:
    iterations = int(os.getenv("MICROCOMPTA_PROFILE_ITERATIONS", "25"))
    invoices_per_month = int(os.getenv("MICROCOMPTA_PROFILE_INVOICES", "40"))
    payload = sample_payload(invoices_per_month)

    report = {
        "records": {
            "revenues": len(payload["revenues"]),
            "expenses": len(payload["expenses"]),
            "obligations": len(payload["obligations"]),
        },
        "income_tax_summary": measure(summarise_income_tax, payload, iterations),
        "yearly_dashboard": measure(summarise_year, payload, iterations),
        "tva_monthly": measure(tva_monthly_schedule, payload, iterations),
        "urssaf_summary": measure(summarise_urssaf, payload, iterations),
    }
    print(json.dumps(report, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
