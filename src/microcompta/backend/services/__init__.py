"""Service-layer helpers for the MicroCompta backend."""

from .request_parser import parse_summary_payload
from .response_builder import build_summary_response

__all__ = [
    "build_summary_response",
    "parse_summary_payload",
]
