from __future__ import annotations

from typing import Any


class IntakeError(Exception):
    """Base error for request failures that map to a structured HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ReportError(IntakeError):
    """Failure of the analysis proxy. Rendered as ``{"ok": false, "error": ...}``."""

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message}


class PresignError(IntakeError):
    """Failure of the presign service. Rendered as ``{"error": ...}``."""


class UploadError(Exception):
    """Raised inside an upload batch; the batch stops at the first one."""
