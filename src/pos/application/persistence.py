"""Best-effort persistence on top of a BlobStore.

Reads fall back to a default when the blob is missing, unreadable or
corrupt. Writes never raise: a failed write is logged and kept in
``last_error`` while the in-memory state stays authoritative.
"""

from __future__ import annotations

import json
from typing import Any, Callable, TypeVar

import structlog

from pos.domain.exceptions import ImportFormatError, StorageError
from pos.domain.repository.blob_store import BlobStore

T = TypeVar("T")

log = structlog.get_logger(__name__)

ITEMS_KEY = "items"
CART_KEY = "cart"
TRANSACTIONS_KEY = "transactions"
SETTINGS_KEY = "settings"


class PersistenceAdapter:

    def __init__(self, blob_store: BlobStore) -> None:
        self._blob_store = blob_store
        self.last_error: StorageError | None = None

    def load(self, key: str, decode: Callable[[Any], T], default: Callable[[], T]) -> T:
        """Load and decode ``key``; any failure yields ``default()``."""
        try:
            blob = self._blob_store.get(key)
        except StorageError as exc:
            log.warning("persistence.read_failed", key=key, error=str(exc))
            return default()
        if blob is None:
            return default()
        try:
            return decode(json.loads(blob))
        except (ValueError, ImportFormatError) as exc:
            log.warning("persistence.corrupt_blob", key=key, error=str(exc))
            return default()

    def save(self, key: str, value: Any) -> bool:
        """Encode and store ``value``. Returns False if the write failed."""
        try:
            self._blob_store.set(key, json.dumps(value))
        except StorageError as exc:
            self.last_error = exc
            log.warning("persistence.write_failed", key=key, error=str(exc))
            return False
        self.last_error = None
        return True
