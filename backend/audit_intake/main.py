from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from .bodies import JsonBody, loads
from .config import Settings, get_settings
from .errors import IntakeError, PresignError, ReportError
from .models import PresignResponse
from .storage import DEFAULT_CONTENT_TYPE, Storage
from .upstream import failure_message, post_json

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> Storage:
    return Storage(
        s3_bucket=settings.s3_bucket,
        aws_region=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        expires_in_seconds=settings.presign_expires_seconds,
    )


_storage: Storage | None = None


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        _storage = build_storage(get_settings())
    return _storage


app = FastAPI(title=get_settings().api_title)


@app.exception_handler(IntakeError)
async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.post("/api/get-report")
async def get_report(request: Request, settings: Settings = Depends(get_settings)) -> Response:
    url = (settings.lambda_url or "").strip()
    if not url:
        logger.error("LAMBDA_URL is not configured; refusing to forward")
        raise ReportError("Missing LAMBDA_URL on server.", status_code=500)

    raw = await request.body()
    try:
        payload = loads(raw)
    except ValueError as e:
        logger.warning("Rejected report request with invalid JSON body")
        raise ReportError("Invalid JSON payload.", status_code=400) from e

    try:
        upstream = await run_in_threadpool(
            post_json, url, payload, timeout=settings.upstream_timeout_seconds
        )
    except Exception as e:
        message = failure_message(e, "Upstream request failed")
        logger.warning("Upstream analysis request failed: %s", message)
        raise ReportError(message, status_code=502) from e

    if isinstance(upstream.body, JsonBody):
        logger.info("Upstream answered %s with JSON", upstream.status)
        return JSONResponse(content=upstream.body.data, status_code=upstream.status)

    logger.info("Upstream answered %s with non-JSON body; relaying as text", upstream.status)
    return Response(content=upstream.body.text, status_code=upstream.status, media_type="text/plain")


@app.options("/api/get-report")
def get_report_preflight() -> Response:
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "content-type",
            "Access-Control-Allow-Methods": "POST, OPTIONS",
        },
    )


@app.get("/api/s3/presign", response_model=PresignResponse)
def presign(
    filename: str | None = None,
    content_type: str | None = Query(default=None, alias="type"),
    session_id: str | None = Query(default=None, alias="sessionId"),
    settings: Settings = Depends(get_settings),
    storage: Storage = Depends(get_storage),
) -> PresignResponse:
    if not filename:
        raise PresignError("Missing filename", status_code=400)
    if not settings.s3_bucket:
        logger.error("S3_BUCKET is not configured; cannot presign %r", filename)
        raise PresignError("Missing S3_BUCKET", status_code=500)

    try:
        p = storage.presign_put(
            filename=filename,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            session_id=session_id or settings.default_session_prefix,
        )
    except Exception as e:
        logger.exception("Failed to presign upload for %r", filename)
        raise PresignError(str(e) or "Failed to generate upload URL", status_code=500) from e

    logger.info("Issued upload URL for key=%s", p.key)
    return PresignResponse(uploadUrl=p.upload_url, key=p.key)
