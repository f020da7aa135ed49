"""Response error extraction for load test observability.

The bridge answers most errors in plain text ("order not found",
"bad signature"); FastAPI validation errors come back as
{"detail": [{"loc": [...], "msg": "..."}]} and HTTPExceptions as
{"detail": "..."}.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact, human-readable error message from a bridge response."""
    try:
        body = response.json()
    except Exception:
        # Plain-text bodies are the norm here
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        if isinstance(detail, list):
            parts = []
            for err in detail:
                loc = ".".join(str(p) for p in err.get("loc", []))
                msg = err.get("msg", str(err))
                parts.append(f"{loc}: {msg}" if loc else msg)
            return " | ".join(parts)
        return str(detail)

    return str(body)[:300]
