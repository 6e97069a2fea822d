# ============================================
# Storage Module
# ============================================
"""
Persistence for the MediScan data layer.

Components:
    - local_cache: Whole-collection JSON cache over a key-value store
    - pin_store: Pinned-content cloud store backends (Pinata, GCS)
    - encrypted: Encrypted uploads and downloads on a pin store
"""

from .local_cache import (
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
    LocalCache,
    PATIENTS_KEY,
    SCANS_KEY,
    REPORTS_KEY,
)
from .pin_store import PinResult, PinStore, PinataStore, GCSPinStore, get_pin_store

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "LocalCache",
    "PATIENTS_KEY",
    "SCANS_KEY",
    "REPORTS_KEY",
    "PinResult",
    "PinStore",
    "PinataStore",
    "GCSPinStore",
    "get_pin_store",
]
