"""JSON-file-backed implementation of BlobStore.

Each key is one ``<key>.json`` file inside the data directory.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from pos.domain.exceptions import StorageError
from pos.domain.repository.blob_store import BlobStore

_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonFileBlobStore(BlobStore):

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    # --- BlobStore interface --------------------------------------------------

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value + "\n", encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise StorageError(f"Cannot write {path}: {exc}") from exc

    # --- File helpers ---------------------------------------------------------

    def _path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"
