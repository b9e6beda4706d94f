"""Abstract string-keyed blob store.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON files, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BlobStore(ABC):

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the blob stored under ``key``, or None.

        Raises StorageError if the backing store cannot be read.
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous blob.

        Raises StorageError if the backing store cannot be written.
        """

