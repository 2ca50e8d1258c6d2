"""Flat-file JSON collections.

Every collection is a JSON array stored as the whole content of one file under
``config.DATA_DIR``. Mutations read the full array, change it in memory and
write it back; there is no locking.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List

import config
from errors import StorageFailure

logger = logging.getLogger(__name__)


def collection_path(name: str) -> Path:
    return config.DATA_DIR / name


def read_collection(name: str) -> List[Dict]:
    """Load a collection, treating a missing or empty file as ``[]``."""
    path = collection_path(name)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = fh.read()
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise StorageFailure(f"Could not read {path}: {exc}") from exc

    if not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise StorageFailure(f"Corrupt collection {path}: {exc}") from exc
    if not isinstance(data, list):
        raise StorageFailure(f"Collection {path} is not a JSON array")
    return data


def write_collection(name: str, records: List[Dict]) -> None:
    """Replace the collection file with ``records``."""
    path = collection_path(name)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as exc:
        raise StorageFailure(f"Could not write {path}: {exc}") from exc
    logger.debug("Wrote %d records to %s", len(records), path)
