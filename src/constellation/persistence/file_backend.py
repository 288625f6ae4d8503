"""File-based persistence backend: one JSON file per record on local disk."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from constellation.exceptions import PersistenceError

log = logging.getLogger(__name__)


class FilePersistenceBackend:
    """Stores each key as ``<base>/<collection>/<id>.json``."""

    def __init__(self, base_path: Path) -> None:
        self._base = base_path.resolve()
        self._base.mkdir(parents=True, exist_ok=True)

    def _key_path(self, key: str) -> Path:
        parts = [p for p in key.replace("\\", "/").split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise PersistenceError(f"Invalid storage key: {key!r}")
        path = self._base.joinpath(*parts[:-1], f"{parts[-1]}.json")
        if self._base not in path.parents:
            raise PersistenceError(f"Storage key escapes the store: {key!r}")
        return path

    def save(self, key: str, data: str) -> None:
        path = self._key_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a partial document
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp, path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
        log.debug("Saved %s to %s", key, path)

    def load(self, key: str) -> str:
        path = self._key_path(key)
        if not path.is_file():
            raise KeyError(f"Not found: {key} (path: {path})")
        return path.read_text(encoding="utf-8")

    def exists(self, key: str) -> bool:
        return self._key_path(key).is_file()

    def delete(self, key: str) -> None:
        self._key_path(key).unlink(missing_ok=True)

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = []
        for path in self._base.rglob("*.json"):
            key = path.relative_to(self._base).with_suffix("").as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    def ping(self) -> None:
        if not os.access(self._base, os.R_OK | os.W_OK):
            raise PersistenceError(f"Store directory is not readable and writable: {self._base}")
