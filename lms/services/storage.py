"""File storage collaborator.

The core never looks inside files: an upload yields an opaque
(url, id) pair, and downloads are fetched back by url.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from lms.core.config import SETTINGS
from lms.services.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoredFile:
    url: str
    id: str


def classify_file_type(content_type: str | None) -> str:
    """Map a MIME type onto the submission file categories."""
    mime = (content_type or "").lower()
    if "pdf" in mime:
        return "pdf"
    if "word" in mime or "msword" in mime or "doc" in mime:
        return "doc"
    if mime.startswith("image/"):
        return "image"
    return "other"


@runtime_checkable
class FileStorage(Protocol):
    async def upload(
        self, data: bytes, *, file_name: str, content_type: str, folder: str
    ) -> StoredFile: ...
    async def download(self, url: str) -> bytes: ...
    def download_stream(self, url: str) -> AsyncIterator[bytes]: ...
    async def delete(self, file_id: str) -> None: ...


class InMemoryFileStorage:
    """Dict-backed storage for tests and local dev."""

    _BASE_URL = "memory://files"

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    async def upload(
        self, data: bytes, *, file_name: str, content_type: str, folder: str
    ) -> StoredFile:
        file_id = f"{folder}/{uuid.uuid4().hex}-{file_name}"
        self._files[file_id] = data
        return StoredFile(url=f"{self._BASE_URL}/{file_id}", id=file_id)

    async def download(self, url: str) -> bytes:
        return b"".join([chunk async for chunk in self.download_stream(url)])

    async def download_stream(self, url: str) -> AsyncIterator[bytes]:
        file_id = url.removeprefix(f"{self._BASE_URL}/")
        if file_id not in self._files:
            raise StorageError(f"file not found: {url}")
        yield self._files[file_id]

    async def delete(self, file_id: str) -> None:
        self._files.pop(file_id, None)


class HttpFileStorage:
    """Object storage behind a small HTTP API.

    POST {base}/files (multipart)  -> {"url": ..., "id": ...}
    GET  <url>                     -> file bytes
    DELETE {base}/files/{id}
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def upload(
        self, data: bytes, *, file_name: str, content_type: str, folder: str
    ) -> StoredFile:
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self._base_url}/files",
                    files={"file": (file_name, data, content_type)},
                    data={"folder": folder},
                )
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Upload of %s failed: %s", file_name, e)
            raise StorageError("File upload failed") from e

        if not body.get("url") or not body.get("id"):
            raise StorageError("File upload failed: storage returned no url")
        return StoredFile(url=body["url"], id=str(body["id"]))

    async def download(self, url: str) -> bytes:
        return b"".join([chunk async for chunk in self.download_stream(url)])

    async def download_stream(self, url: str) -> AsyncIterator[bytes]:
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    async for chunk in resp.aiter_bytes():
                        yield chunk
        except httpx.HTTPError as e:
            raise StorageError(f"Download failed: {url}") from e

    async def delete(self, file_id: str) -> None:
        try:
            async with self._client() as client:
                resp = await client.delete(f"{self._base_url}/files/{file_id}")
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Delete failed: {file_id}") from e


if SETTINGS.storage_base_url:
    file_storage: FileStorage = HttpFileStorage(SETTINGS.storage_base_url)
else:
    file_storage = InMemoryFileStorage()
