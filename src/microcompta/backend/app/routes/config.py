"""Expose year configuration consumed by bookkeeping front-ends.

These endpoints publish the YAML-backed bracket tables and default settings
so that clients can pre-fill forms and show the scale used by an estimate.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from microcompta.backend.app.http import ProblemResponse, problem_response
from microcompta.backend.app.services.summary_service import default_brackets
from microcompta.backend.config.year_config import (
    DefaultRates,
    YearConfiguration,
    available_years,
    load_manifest,
    load_year_configuration,
)
from microcompta.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def _load_year(year: int) -> YearConfiguration | ProblemResponse:
    try:
        return load_year_configuration(year)
    except FileNotFoundError as exc:
        return problem_response("not_found", status=404, message=str(exc))


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_defaults(defaults: DefaultRates) -> dict[str, Any]:
    return {
        "urssaf_rate": str(defaults.urssaf_rate),
        "estimated_tax_rate": str(defaults.estimated_tax_rate),
        "revenue_deduction_rate": str(defaults.revenue_deduction_rate),
        "monthly_salary": str(defaults.monthly_salary),
        "tva_due_day": defaults.tva_due_day,
    }


def _serialise_year(year: int) -> dict[str, Any]:
    configuration = load_year_configuration(year)
    entry = load_manifest().get_entry(year)
    return {
        "year": year,
        "description": entry.description,
        "defaults": _serialise_defaults(configuration.defaults),
        "meta": dict(configuration.meta),
    }


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return all configured years with their default settings."""

    years = [_serialise_year(year) for year in available_years()]
    metadata = get_configuration_metadata()
    payload = {
        "years": years,
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/brackets")
def get_brackets(year: int) -> tuple[Any, int]:
    """Return the default progressive income tax scale of ``year``."""

    configuration = _load_year(year)
    if isinstance(configuration, ProblemResponse):
        return configuration.to_response()

    payload = {
        "year": year,
        "brackets": [bracket.as_dict() for bracket in default_brackets(configuration)],
        "defaults": _serialise_defaults(configuration.defaults),
    }
    return jsonify(payload), 200
