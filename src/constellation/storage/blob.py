"""Blob storage for uploaded deal and strategy documents."""

from __future__ import annotations

import logging
import secrets
import threading
from pathlib import PurePosixPath
from typing import Any, Protocol, runtime_checkable

import boto3
from botocore.exceptions import ClientError

from constellation.exceptions import BlobStorageError, ValidationFailedError

log = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
        "application/json",
        "image/png",
        "image/jpeg",
        "image/gif",
        "image/webp",
    }
)


def validate_upload(size: int, content_type: str | None, max_bytes: int = MAX_FILE_SIZE_BYTES) -> None:
    """Reject files over the size cap or with a MIME type outside the allowlist."""
    if size > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        raise ValidationFailedError(f"File exceeds maximum size of {max_mb:g} MB")
    mime = content_type or "application/octet-stream"
    if mime not in ALLOWED_MIME_TYPES:
        raise ValidationFailedError(f'File type "{mime}" is not allowed')


def object_key(prefix: str, folder: str, filename: str) -> str:
    """Build a collision-resistant key: ``<prefix><folder>/<stem>-<random><suffix>``."""
    name = PurePosixPath(filename.replace("\\", "/")).name or "upload"
    stem, suffix = PurePosixPath(name).stem, PurePosixPath(name).suffix
    return f"{prefix}{folder.strip('/')}/{stem}-{secrets.token_hex(8)}{suffix}"


@runtime_checkable
class IBlobStorage(Protocol):
    def upload(self, filename: str, data: bytes, content_type: str, folder: str) -> str:
        """Store ``data`` and return its public URL."""
        ...

    def delete(self, url: str) -> None:
        """Delete the object behind ``url`` (no-op if already gone)."""
        ...


class MemoryBlobStorage:
    """Keeps blobs in a dict; URLs use the ``memory://`` scheme."""

    def __init__(self, prefix: str = "documents/") -> None:
        self._prefix = prefix
        self._blobs: dict[str, tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def upload(self, filename: str, data: bytes, content_type: str, folder: str) -> str:
        key = object_key(self._prefix, folder, filename)
        with self._lock:
            self._blobs[key] = (data, content_type)
        return f"memory://{key}"

    def delete(self, url: str) -> None:
        if not url.startswith("memory://"):
            raise BlobStorageError(f"URL is not managed by this store: {url}")
        with self._lock:
            self._blobs.pop(url[len("memory://"):], None)

    def get(self, url: str) -> bytes | None:
        with self._lock:
            blob = self._blobs.get(url[len("memory://"):])
        return blob[0] if blob else None


class S3BlobStorage:
    """Uploads documents to S3 and serves them from a public base URL."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "documents/",
        region: str = "ap-southeast-2",
        public_base_url: str = "",
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._prefix = prefix
        self._base_url = (public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com").rstrip("/")
        self._s3 = client or boto3.client("s3", region_name=region)

    def upload(self, filename: str, data: bytes, content_type: str, folder: str) -> str:
        key = object_key(self._prefix, folder, filename)
        try:
            self._s3.put_object(Bucket=self._bucket, Key=key, Body=data, ContentType=content_type)
        except ClientError as e:
            raise BlobStorageError(f"Upload failed for {filename}: {e}") from e
        log.info("Uploaded blob", extra={"bucket": self._bucket, "key": key, "size_bytes": len(data)})
        return f"{self._base_url}/{key}"

    def delete(self, url: str) -> None:
        if not url.startswith(f"{self._base_url}/"):
            raise BlobStorageError(f"URL is not managed by this store: {url}")
        key = url[len(self._base_url) + 1:]
        try:
            self._s3.delete_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            raise BlobStorageError(f"Delete failed for {key}: {e}") from e
