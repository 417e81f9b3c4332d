"""Helpers for extracting JSON request bodies."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest


def _resolve_as_of(req: Request, payload: dict[str, Any]) -> None:
    """Populate ``as_of`` from the query string when the body omits it."""

    if payload.get("as_of"):
        return

    as_of_param = req.args.get("as_of")
    if not as_of_param:
        return
    try:
        date.fromisoformat(as_of_param)
    except ValueError as exc:
        raise BadRequest("Query parameter 'as_of' must be an ISO date (YYYY-MM-DD)") from exc
    payload["as_of"] = as_of_param


def parse_summary_payload(req: Request) -> dict[str, Any]:
    """Extract and validate a JSON payload from ``req``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")

    payload = dict(data)
    _resolve_as_of(req, payload)

    return payload
