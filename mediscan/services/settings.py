# ============================================
# Security Settings
# ============================================
"""
Admin-only overview of the encryption and storage configuration.
"""

import hashlib
import logging
from typing import Any, Dict, Optional

from mediscan.api.client import RecordApiClient
from mediscan.auth import AuthProvider, require_admin
from mediscan.utils.config import (
    get_encryption_key,
    get_pin_backend,
    is_default_encryption_key,
)


logger = logging.getLogger(__name__)


def key_fingerprint(key: str) -> str:
    """First and last four hex digits of the key's SHA-256."""
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"{digest[:4]}...{digest[-4:]}"


def security_overview(provider: AuthProvider, api: Optional[RecordApiClient] = None) -> Dict[str, Any]:
    """
    Summarize security settings for an administrator.

    Raises:
        AuthorizationError: The current user is not an admin
    """
    user = require_admin(provider)
    api = api or RecordApiClient()

    default_key = is_default_encryption_key()
    if default_key:
        logger.warning("Security overview: default encryption key in use")

    return {
        "viewedBy": user.email,
        "encryption": {
            "algorithm": "Fernet (AES-128-CBC + HMAC-SHA256), PBKDF2-HMAC-SHA256 key",
            "usingDefaultKey": default_key,
            "keyFingerprint": key_fingerprint(get_encryption_key()),
        },
        "storage": {
            "pinBackend": get_pin_backend(),
            "remoteApiConfigured": api.configured,
        },
    }
