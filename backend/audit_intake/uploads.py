from __future__ import annotations

import mimetypes
import os
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .bodies import body_field, classify_body
from .errors import UploadError
from .form import merge_file_list
from .models import PresignResponse
from .storage import DEFAULT_CONTENT_TYPE
from .upstream import failure_message

PRESIGN_PATH = "/api/s3/presign"

ProgressCallback = Callable[[str, int], None]


@dataclass(frozen=True)
class SelectedFile:
    name: str
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def from_path(cls, path: str) -> "SelectedFile":
        name = os.path.basename(path)
        guessed, _ = mimetypes.guess_type(name)
        with open(path, "rb") as f:
            data = f.read()
        return cls(name=name, data=data, content_type=guessed or DEFAULT_CONTENT_TYPE)


@dataclass
class UploadBatchResult:
    file_list: str
    uploaded: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error
        return f"Uploaded {len(self.uploaded)} file(s)."


class Uploader:
    """
    Uploads user-selected files straight to object storage.

    For each file: ask the presign endpoint for a signed PUT URL and key, PUT the raw bytes
    to that URL, then record the key in the newline-delimited file list. Files go one at a
    time in selection order; the first failure stops the batch and earlier keys stay recorded.
    """

    def __init__(self, *, api_base_url: str) -> None:
        self.api_base_url = api_base_url.rstrip("/")

    def presign(self, *, filename: str, content_type: str, session_id: str) -> PresignResponse:
        query = urllib.parse.urlencode({"filename": filename, "type": content_type, "sessionId": session_id})
        url = f"{self.api_base_url}{PRESIGN_PATH}?{query}"
        try:
            with urllib.request.urlopen(url) as resp:
                body = classify_body(resp.read())
        except urllib.error.HTTPError as e:
            body = classify_body(e.read())

        upload_url = body_field(body, "uploadUrl")
        key = body_field(body, "key")
        if not upload_url or not key:
            raise UploadError(str(body_field(body, "error") or "Failed to get upload URL"))
        return PresignResponse(uploadUrl=upload_url, key=key)

    def put_bytes(self, *, upload_url: str, data: bytes, content_type: str) -> None:
        req = urllib.request.Request(
            upload_url,
            data=data,
            headers={"Content-Type": content_type},
            method="PUT",
        )
        try:
            with urllib.request.urlopen(req) as resp:
                resp.read()
        except urllib.error.HTTPError as e:
            raise UploadError(f"S3 error {e.code}") from e

    def upload_files(
        self,
        files: Iterable[SelectedFile],
        *,
        session_id: str,
        file_list: str = "",
        on_progress: ProgressCallback | None = None,
    ) -> UploadBatchResult:
        files = list(files)
        result = UploadBatchResult(file_list=file_list)
        if not files:
            return result
        if not session_id:
            result.error = "Session is not ready yet."
            return result

        try:
            for f in files:
                content_type = f.content_type or DEFAULT_CONTENT_TYPE
                signed = self.presign(filename=f.name, content_type=content_type, session_id=session_id)
                if on_progress:
                    on_progress(f.name, 0)
                self.put_bytes(upload_url=signed.uploadUrl, data=f.data, content_type=content_type)
                if on_progress:
                    on_progress(f.name, 100)

                result.uploaded.append(signed.key)
                result.file_list = merge_file_list(result.file_list, [signed.key])
        except Exception as e:
            # Keys recorded before the failure are kept.
            result.error = failure_message(e, "Upload failed")
        return result
