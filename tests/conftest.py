import io
import json
import urllib.error

import pytest
from fastapi.testclient import TestClient

from audit_intake.config import Settings, get_settings
from audit_intake.main import app, get_storage
from audit_intake.storage import Storage

UPSTREAM_URL = "http://analysis.test/run"


class FakeResponse:
    """Stands in for the object ``urllib.request.urlopen`` returns."""

    def __init__(self, body=b"", status=200):
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            body = body.encode("utf-8")
        self.body = body
        self.status = status

    def read(self):
        return self.body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def http_error(url, code, body=b""):
    if isinstance(body, dict):
        body = json.dumps(body).encode("utf-8")
    elif isinstance(body, str):
        body = body.encode("utf-8")
    return urllib.error.HTTPError(url, code, "error", {}, io.BytesIO(body))


def make_settings(**overrides):
    values = {
        "lambda_url": UPSTREAM_URL,
        "upstream_timeout_seconds": 5,
        "aws_region": "us-east-1",
        "aws_access_key_id": None,
        "aws_secret_access_key": None,
        "s3_bucket": "audit-bucket",
        "presign_expires_seconds": 900,
        "default_session_prefix": "misc",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def storage(settings):
    return Storage(
        s3_bucket=settings.s3_bucket,
        aws_region=settings.aws_region,
        expires_in_seconds=settings.presign_expires_seconds,
    )


@pytest.fixture
def client(settings, storage):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
