# ============================================
# Generic Record Service
# ============================================
"""
Shared read chain and local-first write path for record collections.

WRITE PATH:
===========
    1. _before_create / _before_update hooks upload sensitive payloads to
       the pin store. A hook returning None aborts the write.
    2. POST/PUT to the remote API. RemoteUnavailable is logged and the
       write continues in local-only mode.
    3. The record is upserted into the local cache by id.
    4. The remote copy (merged over the local record) is returned when the
       remote call succeeded, otherwise the local record.

A downgrade to local-only persistence is reported only through a warning
log; callers receive the record either way.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from mediscan.api.client import RecordApiClient, RemoteUnavailable
from mediscan.models import generate_id
from mediscan.services.resolution import (
    CacheResolver,
    DemoResolver,
    PinnedResolver,
    RecordQuery,
    RemoteResolver,
    Resolved,
    ResolutionChain,
)
from mediscan.storage.local_cache import LocalCache
from mediscan.storage.pin_store import PinStore, get_pin_store
from mediscan.utils.config import get_pin_index


logger = logging.getLogger(__name__)


class RecordService:
    """
    Base class for patient, scan and report services.

    Subclasses set collection, endpoint, id_prefix and record_type and may
    override demo_records() and the write hooks.

    Args:
        api: Remote record API client
        cache: Local cache
        pin_store: Pinned-content store
        pin_index: Collection -> cid of pinned snapshots (default from env)
    """

    collection = ""
    endpoint = ""
    id_prefix = "record"
    record_type: Any = None

    def __init__(
        self,
        api: Optional[RecordApiClient] = None,
        cache: Optional[LocalCache] = None,
        pin_store: Optional[PinStore] = None,
        pin_index: Optional[Dict[str, str]] = None,
    ):
        self.api = api or RecordApiClient()
        self.cache = cache or LocalCache()
        self.pin_store = pin_store or get_pin_store()
        self.chain = ResolutionChain([
            RemoteResolver(self.api),
            PinnedResolver(self.pin_store, get_pin_index() if pin_index is None else pin_index),
            CacheResolver(self.cache),
            DemoResolver({self.collection: self.demo_records}),
        ])

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def demo_records(self) -> List[Dict[str, Any]]:
        return []

    def to_records(self, values: List[Dict[str, Any]]) -> list:
        return [self.record_type.from_dict(v) for v in values]

    def resolve_all(self) -> Resolved:
        """Resolve the whole collection, tagged with its source."""
        return self.chain.fetch(RecordQuery(self.collection, self.endpoint))

    def get_all(self) -> list:
        return self.to_records(self.resolve_all().value)

    def get_by_id(self, record_id: str):
        resolved = self.chain.fetch(RecordQuery(
            self.collection,
            f"{self.endpoint}/{record_id}",
            record_id=record_id,
        ))
        if resolved.value is None:
            return None
        return self.record_type.from_dict(resolved.value)

    def get_for_patient(self, patient_id: str) -> list:
        """Records whose patientId matches, via /patients/{id}/<collection>."""
        resolved = self.chain.fetch(RecordQuery(
            self.collection,
            f"/patients/{patient_id}/{self.collection}",
            patient_id=patient_id,
        ))
        return self.to_records(resolved.value)

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    def _before_create(self, record):
        return record

    def _before_update(self, current, updated, changes: Dict[str, Any]):
        return updated

    def _persist(self, record, method: str, path: str):
        payload = record.to_dict()
        try:
            if method == "POST":
                remote = self.api.post(path, payload)
            else:
                remote = self.api.put(path, payload)
        except RemoteUnavailable as e:
            logger.warning(
                f"API unavailable, {self.collection}/{record.id} stored locally only: {e}"
            )
            remote = None

        stored = record.merged(remote) if isinstance(remote, dict) else record
        self.cache.upsert(self.collection, stored.to_dict())
        return stored

    def create(self, record):
        """
        Create a record through the write path.

        Returns:
            The stored record, or None if a required upload failed
        """
        if not record.id:
            record = replace(record, id=generate_id(self.id_prefix))

        prepared = self._before_create(record)
        if prepared is None:
            logger.error(f"Error creating {self.collection} record {record.id}: upload failed")
            return None

        return self._persist(prepared, "POST", self.endpoint)

    def update(self, record_id: str, changes: Dict[str, Any]):
        """
        Merge partial changes into the current record and write it back.

        Args:
            record_id: Id of the record to update
            changes: Attribute name -> new value; unspecified fields are kept

        Returns:
            The stored record, or None if it does not exist or an upload failed
        """
        current = self.get_by_id(record_id)
        if current is None:
            logger.error(f"Error updating {self.collection}/{record_id}: not found")
            return None

        updated = self._before_update(current, replace(current, **changes), changes)
        if updated is None:
            logger.error(f"Error updating {self.collection}/{record_id}: upload failed")
            return None

        return self._persist(updated, "PUT", f"{self.endpoint}/{record_id}")

    def delete(self, record_id: str) -> bool:
        """
        Delete remotely (best effort) and locally.

        Returns:
            True if the record was removed from either side
        """
        removed_remote = False
        try:
            self.api.delete(f"{self.endpoint}/{record_id}")
            removed_remote = True
        except RemoteUnavailable as e:
            logger.warning(f"Error deleting {self.collection}/{record_id} from API: {e}")

        removed_local = self.cache.remove(self.collection, record_id)
        return removed_remote or removed_local
