"""Response error extraction for load test observability.

Parses order service error responses into human-readable messages.
Two shapes come back from the API:

- Pydantic request validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Domain errors (400/404/409/503): {"error": {"field": ["msg", ...]}} or {"error": "msg"}
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

MAX_DETAIL_LENGTH = 300


def _format_domain_error(error) -> str:
    if isinstance(error, dict):
        parts = []
        for field_name, messages in error.items():
            text = "; ".join(messages) if isinstance(messages, list) else str(messages)
            parts.append(f"{field_name}: {text}")
        return " | ".join(parts)
    return str(error)


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message for Locust failure messages and log lines."""
    try:
        body = response.json()
    except json.JSONDecodeError:
        text = getattr(response, "text", "") or ""
        return text[:MAX_DETAIL_LENGTH] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:MAX_DETAIL_LENGTH]

    if isinstance(body.get("detail"), list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        return _format_domain_error(body["error"])

    return str(body)[:MAX_DETAIL_LENGTH]
