"""Utilities for serialising summary responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from flask import jsonify

ResponseTuple = Tuple[Any, int]


def build_summary_response(payload: Mapping[str, Any]) -> ResponseTuple:
    """Return a Flask JSON response for the summary ``payload``."""

    return jsonify(payload), 200
