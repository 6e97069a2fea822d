# ============================================
# Configuration Module
# ============================================
"""
Centralized environment configuration for the MediScan data layer.

This module provides:
    - Remote record API settings
    - Pinned-content cloud store credentials (Pinata or GCS)
    - Encryption passphrase (with an insecure default)
    - Local cache location and simulated analysis delay

All values come from environment variables, optionally loaded from a
.env file in the working directory.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv


# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Used when MEDISCAN_ENCRYPTION_KEY is unset. Not secure.
DEFAULT_ENCRYPTION_KEY = "default-key-change-in-production"

DEFAULT_PINATA_API_URL = "https://api.pinata.cloud"
DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud"

PIN_BACKENDS = ("pinata", "gcs")


def get_api_base_url() -> Optional[str]:
    """Get the remote record API base URL, or None when not configured."""
    url = os.getenv("MEDISCAN_API_BASE_URL")
    if not url:
        return None
    return url.rstrip("/")


def get_api_timeout() -> float:
    """Get the per-request timeout for the remote API in seconds."""
    return float(os.getenv("MEDISCAN_API_TIMEOUT", "10"))


def get_pinata_credentials() -> Tuple[Optional[str], Optional[str]]:
    """
    Get the Pinata API key/secret pair.

    Returns:
        Tuple of (api_key, secret). Either may be None if unset.
    """
    return os.getenv("PINATA_API_KEY"), os.getenv("PINATA_SECRET")


def get_pinata_api_url() -> str:
    """Get the Pinata pinning API URL."""
    return os.getenv("PINATA_API_URL", DEFAULT_PINATA_API_URL).rstrip("/")


def get_gateway_url() -> str:
    """Get the public gateway used to retrieve pinned content."""
    return os.getenv("PINATA_GATEWAY_URL", DEFAULT_GATEWAY_URL).rstrip("/")


def get_pin_backend() -> str:
    """
    Get the configured pinned-content backend.

    Raises:
        ValueError: If MEDISCAN_PIN_BACKEND names an unknown backend
    """
    backend = os.getenv("MEDISCAN_PIN_BACKEND", "pinata").lower()
    if backend not in PIN_BACKENDS:
        raise ValueError(
            f"Unknown pin backend: {backend}. "
            f"Expected one of {', '.join(PIN_BACKENDS)}."
        )
    return backend


def get_project_id() -> Optional[str]:
    """Get the GCP project ID used by the GCS backend."""
    return os.getenv("GCP_PROJECT_ID")


def get_gcs_bucket_name() -> str:
    """
    Get the bucket holding content-addressed objects for the GCS backend.

    Example:
        get_gcs_bucket_name() -> "my-project-mediscan-pins"
    """
    bucket = os.getenv("MEDISCAN_GCS_BUCKET")
    if bucket:
        return bucket
    project_id = get_project_id()
    if not project_id:
        raise ValueError(
            "MEDISCAN_GCS_BUCKET or GCP_PROJECT_ID must be set "
            "to use the GCS pin backend."
        )
    return f"{project_id}-mediscan-pins"


def get_pin_index() -> Dict[str, str]:
    """
    Get content identifiers of collection snapshots held in the cloud store.

    Reads MEDISCAN_PIN_INDEX_<COLLECTION> variables, e.g.
    MEDISCAN_PIN_INDEX_PATIENTS=bafy... -> {"patients": "bafy..."}.
    A JSON object in MEDISCAN_PIN_INDEX is merged in first.
    """
    index: Dict[str, str] = {}

    raw = os.getenv("MEDISCAN_PIN_INDEX")
    if raw:
        index.update(json.loads(raw))

    prefix = "MEDISCAN_PIN_INDEX_"
    for name, value in os.environ.items():
        if name.startswith(prefix) and value:
            index[name[len(prefix):].lower()] = value

    return index


def get_encryption_key() -> str:
    """
    Get the encryption passphrase.

    Falls back to DEFAULT_ENCRYPTION_KEY with a warning when unset.
    """
    key = os.getenv("MEDISCAN_ENCRYPTION_KEY")
    if not key:
        logger.warning(
            "MEDISCAN_ENCRYPTION_KEY not set. Using default key "
            "(not secure for production)."
        )
        return DEFAULT_ENCRYPTION_KEY
    return key


def is_default_encryption_key() -> bool:
    """True when no encryption passphrase has been configured."""
    return not os.getenv("MEDISCAN_ENCRYPTION_KEY")


def get_cache_dir() -> Path:
    """Get the directory backing the file-based local cache."""
    cache_dir = os.getenv("MEDISCAN_CACHE_DIR")
    if cache_dir:
        return Path(cache_dir)
    return Path.home() / ".mediscan" / "cache"


def get_analysis_delay() -> float:
    """Get the simulated analysis processing time in seconds."""
    return float(os.getenv("MEDISCAN_ANALYSIS_DELAY", "2.0"))


if __name__ == "__main__":
    # Print current configuration
    print("MediScan Configuration:")
    print(f"  API base URL: {get_api_base_url() or 'NOT SET'}")
    print(f"  Pin backend: {get_pin_backend()}")
    print(f"  Gateway: {get_gateway_url()}")
    print(f"  Default encryption key: {is_default_encryption_key()}")
    print(f"  Cache dir: {get_cache_dir()}")
