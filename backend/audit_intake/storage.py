from __future__ import annotations

import time
from dataclasses import dataclass

import boto3


DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class PresignedPut:
    key: str
    upload_url: str


def now_millis() -> int:
    return int(time.time() * 1000)


def build_key(*, session_id: str, filename: str, ts_millis: int | None = None) -> str:
    # e.g. sess_abc/1699999999999_report.pdf
    if ts_millis is None:
        ts_millis = now_millis()
    return f"{session_id}/{ts_millis}_{filename}"


class Storage:
    def __init__(
        self,
        *,
        s3_bucket: str | None,
        aws_region: str | None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        expires_in_seconds: int = 900,
    ) -> None:
        self.s3_bucket = s3_bucket
        self.aws_region = aws_region
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.expires_in_seconds = expires_in_seconds
        self._s3 = None

    @property
    def s3(self):
        # Built on first use so a missing bucket is reported per request, not at startup.
        if self._s3 is None:
            self._s3 = boto3.client(
                "s3",
                region_name=self.aws_region,
                aws_access_key_id=self.aws_access_key_id,
                aws_secret_access_key=self.aws_secret_access_key,
            )
        return self._s3

    def presign_put(self, *, filename: str, content_type: str | None, session_id: str) -> PresignedPut:
        if not self.s3_bucket:
            raise ValueError("Missing S3_BUCKET")

        key = build_key(session_id=session_id, filename=filename)
        params = {
            "Bucket": self.s3_bucket,
            "Key": key,
            "ContentType": content_type or DEFAULT_CONTENT_TYPE,
            "ACL": "private",
        }
        upload_url = self.s3.generate_presigned_url(
            ClientMethod="put_object",
            Params=params,
            ExpiresIn=self.expires_in_seconds,
        )
        return PresignedPut(key=key, upload_url=upload_url)
