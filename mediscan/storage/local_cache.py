# ============================================
# Local Cache Module
# ============================================
"""
Local-first persistence for record collections.

STORAGE MODEL:
==============
One key per entity collection ("patients", "scans", "reports"). Each value
is the whole collection as a JSON array, read and written in full on every
operation. There are no partial updates at the storage layer.

    KeyValueStore            LocalCache
    ─────────────            ──────────────────────────────
    get(key) -> str|None     read(collection) -> list|None
    set(key, value)          write(collection, records)
                             upsert(collection, record)
                             remove(collection, record_id)

Backends:
    - MemoryStore: in-process dict (tests, demo runs)
    - JsonFileStore: one <key>.json file per collection in a directory

Malformed JSON in a stored value is not swallowed: json.JSONDecodeError
propagates to the caller.
"""

import os
import json
import logging
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from mediscan.utils.config import get_cache_dir


logger = logging.getLogger(__name__)

PATIENTS_KEY = "patients"
SCANS_KEY = "scans"
REPORTS_KEY = "reports"


class KeyValueStore:
    """Minimal string key-value interface backing the local cache."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Dict-backed store. Contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """
    Directory-backed store writing one <key>.json file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so readers never observe a half-written file.
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else get_cache_dir()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class LocalCache:
    """
    Whole-collection JSON cache on top of a KeyValueStore.

    Read-modify-write operations are serialized within the process. Separate
    processes sharing a JsonFileStore are not coordinated: the last write of
    a collection wins.
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store if store is not None else JsonFileStore()
        self._lock = threading.RLock()

    def read(self, collection: str) -> Optional[List[Dict[str, Any]]]:
        """
        Read a whole collection.

        Returns:
            The stored list, or None when the key has never been written
        """
        raw = self.store.get(collection)
        if raw is None:
            return None
        return json.loads(raw)

    def write(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """Replace a whole collection."""
        self.store.set(collection, json.dumps(records))

    def find(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Linear scan for the record with a matching id."""
        for record in self.read(collection) or []:
            if record.get("id") == record_id:
                return record
        return None

    def upsert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the record with the same id, or append it if absent.

        Returns:
            The stored record
        """
        with self._lock:
            records = self.read(collection) or []
            for i, existing in enumerate(records):
                if existing.get("id") == record.get("id"):
                    records[i] = record
                    break
            else:
                records.append(record)
            self.write(collection, records)
        logger.debug(f"Cached {collection}/{record.get('id')}")
        return record

    def modify(
        self,
        collection: str,
        record_id: str,
        fn: Callable[[Dict[str, Any]], Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        """Replace a cached record with fn(record). Returns None if absent."""
        with self._lock:
            records = self.read(collection) or []
            for i, existing in enumerate(records):
                if existing.get("id") == record_id:
                    records[i] = fn(existing)
                    self.write(collection, records)
                    return records[i]
        return None

    def update_where(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Shallow-merge changes into a cached record. Returns None if absent."""
        return self.modify(collection, record_id, lambda existing: {**existing, **changes})

    def remove(self, collection: str, record_id: str) -> bool:
        """
        Remove a record by id.

        Returns:
            True if a record was removed
        """
        with self._lock:
            records = self.read(collection)
            if not records:
                return False
            kept = [r for r in records if r.get("id") != record_id]
            if len(kept) == len(records):
                return False
            self.write(collection, kept)
        return True
