# ============================================
# Read-Path Resolution Chain
# ============================================
"""
Resolve record reads through an ordered list of sources.

RESOLUTION ORDER:
=================
    1. RemoteResolver  - GET on the remote record API
    2. PinnedResolver  - collection snapshot pinned in the cloud store
    3. CacheResolver   - local cache collection
    4. DemoResolver    - generated demo records (never written back)

The first source returning a non-empty value wins. None and [] are misses.
Each resolver converts its own expected failures (API down, content not
pinned, cache empty) into a miss. Anything unexpected, such as malformed
JSON in the cache, propagates to the caller.

The chain returns a Resolved value tagged with the source that served it,
so demo data can be told apart from real data.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from mediscan.api.client import RecordApiClient, RemoteUnavailable
from mediscan.storage.encrypted import get_decrypted
from mediscan.storage.local_cache import LocalCache
from mediscan.storage.pin_store import PinStore


logger = logging.getLogger(__name__)


@dataclass
class RecordQuery:
    """
    A read against one collection.

    Attributes:
        collection: Cache key / demo dataset name ("patients", "scans", ...)
        endpoint: Remote API path serving this read
        record_id: Set for single-record reads
        patient_id: Set to restrict a collection to one patient
    """
    collection: str
    endpoint: str
    record_id: Optional[str] = None
    patient_id: Optional[str] = None

    @property
    def single(self) -> bool:
        return self.record_id is not None

    def select(self, records: List[Dict[str, Any]]) -> Any:
        """Apply the id / patient filters to a full collection."""
        if self.single:
            for record in records:
                if record.get("id") == self.record_id:
                    return record
            return None
        if self.patient_id is not None:
            return [r for r in records if r.get("patientId") == self.patient_id]
        return records

    def __str__(self) -> str:
        if self.single:
            return f"{self.collection}/{self.record_id}"
        if self.patient_id is not None:
            return f"{self.collection}?patientId={self.patient_id}"
        return self.collection


@dataclass
class Resolved:
    """A resolved value and the name of the source that produced it."""
    value: Any
    source: str

    @property
    def is_demo(self) -> bool:
        return self.source == "demo"


def _is_hit(value: Any) -> bool:
    return value is not None and value != []


class Resolver:
    """One source in the resolution chain."""

    name = "resolver"

    def try_fetch(self, query: RecordQuery) -> Any:
        raise NotImplementedError


class RemoteResolver(Resolver):
    name = "remote"

    def __init__(self, api: RecordApiClient):
        self.api = api

    def try_fetch(self, query: RecordQuery) -> Any:
        if not self.api.configured:
            return None
        try:
            return self.api.get(query.endpoint)
        except RemoteUnavailable as e:
            logger.warning(f"Error fetching {query} from API: {e}")
            return None


class PinnedResolver(Resolver):
    """
    Reads a collection snapshot from the pin store.

    Args:
        store: Pin store holding the snapshots
        index: Mapping of collection name -> content identifier. Collections
               without an entry always miss.
    """

    name = "pinned"

    def __init__(self, store: PinStore, index: Optional[Dict[str, str]] = None):
        self.store = store
        self.index = dict(index or {})

    def try_fetch(self, query: RecordQuery) -> Any:
        cid = self.index.get(query.collection)
        if not cid:
            logger.debug(f"No pinned snapshot for {query.collection}")
            return None

        logger.info(f"Attempting to fetch {query} from pinned snapshot {cid}...")
        result = get_decrypted(self.store, cid)
        if not result.success or not isinstance(result.data, list):
            return None
        return query.select(result.data)


class CacheResolver(Resolver):
    name = "cache"

    def __init__(self, cache: LocalCache):
        self.cache = cache

    def try_fetch(self, query: RecordQuery) -> Any:
        records = self.cache.read(query.collection)
        if not records:
            return None
        return query.select(records)


class DemoResolver(Resolver):
    """
    Generates demo records for a collection.

    Args:
        generators: Mapping of collection name -> zero-argument callable
                    returning wire-shaped records
    """

    name = "demo"

    def __init__(self, generators: Dict[str, Callable[[], List[Dict[str, Any]]]]):
        self.generators = generators

    def try_fetch(self, query: RecordQuery) -> Any:
        generate = self.generators.get(query.collection)
        if generate is None:
            return None
        return query.select(generate())


class ResolutionChain:
    """Tries each resolver in order and returns the first hit."""

    def __init__(self, resolvers: List[Resolver]):
        self.resolvers = list(resolvers)

    def fetch(self, query: RecordQuery) -> Resolved:
        for resolver in self.resolvers:
            value = resolver.try_fetch(query)
            if _is_hit(value):
                logger.debug(f"Resolved {query} from {resolver.name}")
                return Resolved(value=value, source=resolver.name)
            logger.debug(f"{resolver.name} miss for {query}")

        logger.info(f"No source could resolve {query}")
        return Resolved(value=None if query.single else [], source="none")
