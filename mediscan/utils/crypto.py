# ============================================
# Encryption Helper Module
# ============================================
"""
Symmetric encryption for payloads pushed to the pinned-content store.

A single process-wide passphrase (MEDISCAN_ENCRYPTION_KEY) is stretched with
PBKDF2-HMAC-SHA256 into a Fernet key. The passphrase falls back to a
hardcoded default when unset, which is a known weakness: anyone holding the
default can read every payload encrypted with it.

ENVELOPES:
==========
Binary payloads (scan images, PDF reports) are base64-encoded into a file
envelope before encryption:

    {originalName, mimeType, data, size, encryptedAt}

JSON documents are wrapped as {data, encryptedAt}, encrypted, and the token
is wrapped again for upload:

    {encrypted: true, encryptedData: <token>}
"""

import json
import base64
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from mediscan.utils.config import get_encryption_key


# Fixed salt so every process derives the same key from the same passphrase
KDF_SALT = b"mediscan-pinned-content"
KDF_ITERATIONS = 100_000


class DecryptionError(ValueError):
    """Raised when a token cannot be decrypted with the configured key."""


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@lru_cache(maxsize=8)
def _fernet_for(passphrase: str) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=KDF_SALT,
        iterations=KDF_ITERATIONS,
    )
    key = base64.urlsafe_b64encode(kdf.derive(passphrase.encode("utf-8")))
    return Fernet(key)


def encrypt(data: Any, passphrase: Optional[str] = None) -> str:
    """
    Encrypt a JSON-serializable object.

    Args:
        data: Any JSON-serializable value
        passphrase: Override for the configured passphrase

    Returns:
        Opaque URL-safe token string
    """
    fernet = _fernet_for(passphrase or get_encryption_key())
    plaintext = json.dumps(data).encode("utf-8")
    return fernet.encrypt(plaintext).decode("ascii")


def decrypt(token: str, passphrase: Optional[str] = None) -> Any:
    """
    Decrypt a token produced by encrypt().

    Raises:
        DecryptionError: If the token is malformed or the key is wrong
    """
    fernet = _fernet_for(passphrase or get_encryption_key())
    try:
        plaintext = fernet.decrypt(token.encode("ascii"))
    except (InvalidToken, UnicodeEncodeError) as e:
        raise DecryptionError("Unable to decrypt payload with the configured key") from e
    return json.loads(plaintext.decode("utf-8"))


def build_file_envelope(
    content: bytes,
    original_name: str,
    mime_type: str,
) -> Dict[str, Any]:
    """Base64-encode binary content into the file envelope."""
    return {
        "originalName": original_name,
        "mimeType": mime_type,
        "data": base64.b64encode(content).decode("ascii"),
        "size": len(content),
        "encryptedAt": utc_now_iso(),
    }


def open_file_envelope(envelope: Dict[str, Any]) -> bytes:
    """Recover the binary content from a decrypted file envelope."""
    return base64.b64decode(envelope["data"])


def seal_json(document: Any) -> Dict[str, Any]:
    """Encrypt a JSON document into the outer upload envelope."""
    token = encrypt({"data": document, "encryptedAt": utc_now_iso()})
    return {"encrypted": True, "encryptedData": token}


def unseal_json(wrapper: Any) -> Dict[str, Any]:
    """
    Reverse seal_json().

    Documents without the encrypted marker are returned as {"data": wrapper}.

    Returns:
        Dict with "data" and, for encrypted documents, "encryptedAt"
    """
    if isinstance(wrapper, dict) and wrapper.get("encrypted") and wrapper.get("encryptedData"):
        inner = decrypt(wrapper["encryptedData"])
        return {"data": inner.get("data"), "encryptedAt": inner.get("encryptedAt")}
    return {"data": wrapper}
