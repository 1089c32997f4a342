from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class JsonBody:
    data: Any


@dataclass(frozen=True)
class TextBody:
    text: str


Body = Union[JsonBody, TextBody]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {literal}")
    return value


def loads(raw: bytes | str) -> Any:
    """``json.loads`` without NaN, Infinity or overflowing numbers, which browsers and Starlette reject."""
    return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)


def decode_text(raw: bytes | str) -> str:
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


def classify_body(raw: bytes | str) -> Body:
    """
    Decide whether a response body is JSON or plain text.

    Both the analysis proxy and the analysis client go through this, so an upstream
    that degrades to plain-text or HTML error pages is handled the same way at every hop.
    """
    text = decode_text(raw)
    try:
        return JsonBody(loads(text))
    except ValueError:
        return TextBody(text)


def body_field(body: Body, name: str) -> Any:
    # Only JSON objects carry named fields.
    if isinstance(body, JsonBody) and isinstance(body.data, dict):
        return body.data.get(name)
    return None
