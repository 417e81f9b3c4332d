"""REST endpoint for URSSAF contribution estimates."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from microcompta.backend.app.services.summary_service import summarise_urssaf
from microcompta.backend.services import build_summary_response, parse_summary_payload

blueprint = Blueprint("urssaf", __name__, url_prefix="/api/v1/urssaf")


@blueprint.post("/summary")
def create_urssaf_summary() -> tuple[Any, int]:
    payload = parse_summary_payload(request)
    return build_summary_response(summarise_urssaf(payload))
