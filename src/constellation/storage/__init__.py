"""Document blob storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from constellation.storage.blob import (
    ALLOWED_MIME_TYPES,
    IBlobStorage,
    MemoryBlobStorage,
    S3BlobStorage,
    validate_upload,
)

if TYPE_CHECKING:
    from constellation.core.config import BlobConfig


def create_blob_storage(config: BlobConfig) -> IBlobStorage:
    if config.backend == "s3":
        return S3BlobStorage(
            bucket=config.bucket,
            prefix=config.prefix,
            region=config.aws_region,
            public_base_url=config.public_base_url,
        )
    return MemoryBlobStorage(prefix=config.prefix)


__all__ = [
    "ALLOWED_MIME_TYPES",
    "IBlobStorage",
    "MemoryBlobStorage",
    "S3BlobStorage",
    "create_blob_storage",
    "validate_upload",
]
