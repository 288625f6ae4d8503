"""Pluggable persistence backends for constellation records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from constellation.persistence.file_backend import FilePersistenceBackend
from constellation.persistence.memory_backend import MemoryPersistenceBackend
from constellation.persistence.protocols import IPersistenceBackend

if TYPE_CHECKING:
    from constellation.core.config import PersistenceConfig


def create_backend(config: PersistenceConfig) -> IPersistenceBackend:
    """Build the backend named by ``config.backend``."""
    if config.backend == "memory":
        return MemoryPersistenceBackend()
    if config.backend == "s3":
        from constellation.persistence.s3_backend import S3PersistenceBackend

        return S3PersistenceBackend(
            bucket=config.s3_bucket,
            prefix=config.s3_prefix,
            region=config.aws_region,
            kms_key_id=config.kms_key_id,
        )
    return FilePersistenceBackend(base_path=config.store_path)


__all__ = ["IPersistenceBackend", "FilePersistenceBackend", "MemoryPersistenceBackend", "create_backend"]
