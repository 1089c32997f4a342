from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    api_title: str = "audit-intake backend"

    # Analysis engine (the proxy forwards to this; never exposed to clients)
    lambda_url: str | None = os.getenv("LAMBDA_URL", "").strip() or None
    upstream_timeout_seconds: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "120"))

    # Storage
    aws_region: str = os.getenv("AWS_REGION") or "us-east-1"
    aws_access_key_id: str | None = os.getenv("AWS_ACCESS_KEY_ID") or None
    aws_secret_access_key: str | None = os.getenv("AWS_SECRET_ACCESS_KEY") or None
    s3_bucket: str | None = os.getenv("S3_BUCKET") or None
    presign_expires_seconds: int = int(os.getenv("PRESIGN_EXPIRES_SECONDS", "900"))
    default_session_prefix: str = os.getenv("DEFAULT_SESSION_PREFIX", "misc")

    # Client side (CLI)
    api_base_url: str = os.getenv("INTAKE_API_URL", "http://localhost:8000")
    analysis_timeout_seconds: float = float(os.getenv("ANALYSIS_TIMEOUT_SECONDS", "30"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()


def get_settings() -> Settings:
    return settings
