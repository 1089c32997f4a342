from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from .bodies import Body, classify_body


@dataclass(frozen=True)
class UpstreamResponse:
    status: int
    body: Body


def post_json(url: str, payload: Any, *, timeout: float | None = None) -> UpstreamResponse:
    """
    POST ``payload`` as JSON and return the status plus the classified body.

    Non-2xx answers are responses, not failures: they come back with their status.
    Anything that prevents getting a usable answer at all (DNS, refused connection, timeout,
    a garbled status line or truncated body, an unusable URL) propagates as the exception
    ``urllib`` or ``http.client`` raised.
    """
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return UpstreamResponse(status=resp.status, body=classify_body(resp.read()))
    except urllib.error.HTTPError as e:
        return UpstreamResponse(status=e.code, body=classify_body(e.read()))


def failure_message(exc: BaseException, fallback: str) -> str:
    if isinstance(exc, urllib.error.URLError) and not isinstance(exc, urllib.error.HTTPError):
        reason = exc.reason
        return str(reason) if reason else fallback
    return str(exc) or fallback
