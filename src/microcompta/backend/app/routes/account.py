"""REST endpoint projecting available funds."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from microcompta.backend.app.services.summary_service import summarise_account
from microcompta.backend.services import build_summary_response, parse_summary_payload

blueprint = Blueprint("account", __name__, url_prefix="/api/v1/account")


@blueprint.post("/summary")
def create_account_summary() -> tuple[Any, int]:
    """Return the balance left once pending obligations and salary are paid."""

    payload = parse_summary_payload(request)
    return build_summary_response(summarise_account(payload))
