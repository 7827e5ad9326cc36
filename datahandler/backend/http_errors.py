"""HTTP error helpers for extracting backend error details."""

from __future__ import annotations

from typing import Any

import requests


def extract_error_detail(response: requests.Response | None) -> str | None:
    """Extract error detail from an HTTP error response."""
    if response is None:
        return None
    try:
        payload: Any = response.json()
    except ValueError:
        return response.text or None

    if not isinstance(payload, dict):
        return str(payload)

    detail_payload = payload.get("detail", payload)
    if not isinstance(detail_payload, dict):
        return str(detail_payload)

    return detail_payload.get("message") or detail_payload.get("error")


def describe_request_error(error: requests.RequestException) -> str:
    """Return a one-line description of a failed backend call."""
    response = error.response
    if response is None:
        return str(error)
    detail = extract_error_detail(response)
    message = f"HTTP {response.status_code}"
    if detail:
        message = f"{message}: {detail}"
    return message
