from __future__ import annotations

import socket
import urllib.error
from typing import Any

from pydantic import ValidationError

from .bodies import JsonBody, body_field
from .models import ApiResponse
from .upstream import failure_message, post_json

DEFAULT_TIMEOUT_SECONDS = 30.0
REPORT_PATH = "/api/get-report"


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (TimeoutError, socket.timeout)):
        return True
    # urlopen wraps connect-phase timeouts in URLError.
    return isinstance(exc, urllib.error.URLError) and isinstance(exc.reason, (TimeoutError, socket.timeout))


def _as_response(data: dict[str, Any]) -> ApiResponse:
    try:
        return ApiResponse.model_validate(data)
    except ValidationError:
        # Field types are the analysis engine's business; keep the body as it was sent.
        return ApiResponse.model_construct(**data)


def report_url(api_base_url: str) -> str:
    return api_base_url.rstrip("/") + REPORT_PATH


def run_analysis(
    payload: Any,
    *,
    api_base_url: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ApiResponse:
    """
    POST ``payload`` to the analysis proxy and normalize whatever happens.

    Never raises: non-2xx answers, non-JSON bodies, network failures and timeouts all
    come back as ``ApiResponse(ok=False, error=..., status=...)`` with ``status=0`` for
    failures that happened before any HTTP status was received.
    """
    try:
        res = post_json(report_url(api_base_url), payload, timeout=timeout)

        if not isinstance(res.body, JsonBody):
            text = res.body.text.strip()
            return ApiResponse(
                ok=False,
                error=text or f"API returned non-JSON response (status {res.status}).",
                status=res.status,
            )

        if not 200 <= res.status < 300:
            error = body_field(res.body, "error") or body_field(res.body, "message")
            return ApiResponse(
                ok=False,
                error=str(error) if error else f"API error (status {res.status}).",
                status=res.status,
            )

        # Upstream already speaks { ok, ... }: trust it as-is.
        if isinstance(body_field(res.body, "ok"), bool):
            return _as_response(res.body.data)

        return _as_response(
            {"ok": True, "analysis": body_field(res.body, "analysis"), "metrics": body_field(res.body, "metrics")}
        )
    except Exception as e:
        if _is_timeout(e):
            return ApiResponse(ok=False, error="Request timed out", status=0)
        return ApiResponse(ok=False, error=failure_message(e, "Request failed"), status=0)
