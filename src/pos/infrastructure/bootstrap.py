"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import os
from pathlib import Path

from pos.application.store import PosStore
from pos.infrastructure.persistence.json_blob_store import JsonFileBlobStore

DATA_DIR_ENV = "POS_DATA_DIR"
LOG_LEVEL_ENV = "POS_LOG_LEVEL"

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def data_dir(override: Path | None = None) -> Path:
    if override is not None:
        return override
    env = os.environ.get(DATA_DIR_ENV)
    return Path(env) if env else _DEFAULT_DATA_DIR


def log_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV, "WARNING")


def pos_store(directory: Path | None = None) -> PosStore:
    return PosStore(JsonFileBlobStore(data_dir(directory)))
