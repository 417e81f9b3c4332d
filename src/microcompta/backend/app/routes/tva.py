"""REST endpoints for TVA reporting."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from microcompta.backend.app.services.summary_service import (
    summarise_tva,
    tva_declaration,
    tva_monthly_schedule,
)
from microcompta.backend.services import build_summary_response, parse_summary_payload

blueprint = Blueprint("tva", __name__, url_prefix="/api/v1/tva")


@blueprint.post("/summary")
def create_tva_summary() -> tuple[Any, int]:
    payload = parse_summary_payload(request)
    return build_summary_response(summarise_tva(payload))


@blueprint.post("/monthly")
def create_tva_schedule() -> tuple[Any, int]:
    """Return each month's TVA position with its due date and payment status."""

    payload = parse_summary_payload(request)
    return build_summary_response(tva_monthly_schedule(payload))


@blueprint.post("/declaration")
def create_tva_declaration() -> tuple[Any, int]:
    """Return the CA3 boxes for one month."""

    payload = parse_summary_payload(request)
    return build_summary_response(tva_declaration(payload))
