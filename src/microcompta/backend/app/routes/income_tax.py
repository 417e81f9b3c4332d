"""REST endpoints for income tax estimates."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from microcompta.backend.app.services.summary_service import (
    estimate_income_tax,
    summarise_income_tax,
)
from microcompta.backend.services import build_summary_response, parse_summary_payload

blueprint = Blueprint("income_tax", __name__, url_prefix="/api/v1/income-tax")


@blueprint.post("/summary")
def create_income_tax_summary() -> tuple[Any, int]:
    """Estimate the year's income tax from invoices and recorded payments."""

    payload = parse_summary_payload(request)
    return build_summary_response(summarise_income_tax(payload))


@blueprint.post("/estimate")
def create_income_tax_estimate() -> tuple[Any, int]:
    """Estimate income tax on a declared annual revenue."""

    payload = parse_summary_payload(request)
    return build_summary_response(estimate_income_tax(payload))
