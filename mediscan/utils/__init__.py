# ============================================
# Utilities Module
# ============================================
"""
Shared utilities for configuration and encryption.

Components:
    - config: Environment configuration (API, cloud store, keys, cache)
    - crypto: Symmetric encryption and payload envelopes
"""

from .config import (
    get_api_base_url,
    get_encryption_key,
    get_gateway_url,
    get_pin_backend,
    get_cache_dir,
)
from .crypto import encrypt, decrypt, DecryptionError

__all__ = [
    "get_api_base_url",
    "get_encryption_key",
    "get_gateway_url",
    "get_pin_backend",
    "get_cache_dir",
    "encrypt",
    "decrypt",
    "DecryptionError",
]
