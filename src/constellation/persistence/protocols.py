"""Persistence backend protocol: the contract every record store implements."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPersistenceBackend(Protocol):
    """Key/value store of serialized JSON documents.

    Keys are slash-separated paths such as ``deals/abc123``; the first
    segment names the collection.
    """

    def save(self, key: str, data: str) -> None:
        """Save serialized data under the given key."""
        ...

    def load(self, key: str) -> str:
        """Load serialized data by key. Raises KeyError if not found."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def delete(self, key: str) -> None:
        """Delete data by key (no-op if not found)."""
        ...

    def list_keys(self, prefix: str = "") -> list[str]:
        """List all keys starting with ``prefix``, sorted."""
        ...

    def ping(self) -> None:
        """Raise if the backend cannot currently serve requests."""
        ...
