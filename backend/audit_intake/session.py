from __future__ import annotations

import re
import uuid

SESSION_PREFIX = "sess_"
SESSION_TOKEN_LENGTH = 24

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def new_session_id() -> str:
    """Opaque, alphanumeric session token used to namespace uploaded files."""
    raw = _NON_ALNUM.sub("", str(uuid.uuid4()))
    return f"{SESSION_PREFIX}{raw[:SESSION_TOKEN_LENGTH]}"
