"""REST endpoints for the monthly and yearly dashboards."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from microcompta.backend.app.services.summary_service import (
    summarise_dashboard,
    summarise_year,
)
from microcompta.backend.services import build_summary_response, parse_summary_payload

blueprint = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


@blueprint.post("/summary")
def create_dashboard_summary() -> tuple[Any, int]:
    payload = parse_summary_payload(request)
    return build_summary_response(summarise_dashboard(payload))


@blueprint.post("/yearly")
def create_yearly_dashboard() -> tuple[Any, int]:
    payload = parse_summary_payload(request)
    return build_summary_response(summarise_year(payload))
