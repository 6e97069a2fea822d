# ============================================
# Encrypted Pin Store Operations
# ============================================
"""
Encrypt-then-upload and download-then-decrypt on top of a PinStore.

Failures (upload errors, missing content, wrong key) come back as
PinResult(success=False); nothing here raises for expected failures.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from mediscan.storage.pin_store import PinResult, PinStore
from mediscan.utils.crypto import (
    DecryptionError,
    build_file_envelope,
    decrypt,
    encrypt,
    open_file_envelope,
    seal_json,
    unseal_json,
)


logger = logging.getLogger(__name__)


@dataclass
class DecryptedFile:
    """Binary content recovered from an encrypted file envelope."""
    content: bytes
    original_name: str
    mime_type: str
    size: int


def upload_encrypted_json(store: PinStore, document: Dict[str, Any], name: str) -> PinResult:
    """
    Encrypt a JSON document and pin it as {encrypted: true, encryptedData}.

    Args:
        store: Target pin store
        document: JSON-serializable payload
        name: Logical name, stored as encrypted_<name>
    """
    try:
        wrapper = seal_json(document)
    except (TypeError, ValueError) as e:
        logger.error(f"Error encrypting JSON {name}: {e}")
        return PinResult.failure(str(e))
    return store.upload_json(wrapper, f"encrypted_{name}")


def upload_encrypted_file(
    store: PinStore,
    content: bytes,
    filename: str,
    mime_type: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> PinResult:
    """
    Encrypt binary content inside a file envelope and pin the token.

    The pinned object is the raw token text named encrypted_<filename>.enc.
    """
    token = encrypt(build_file_envelope(content, filename, mime_type))
    return store.upload_file(
        token.encode("ascii"),
        f"encrypted_{filename}.enc",
        {
            **(metadata or {}),
            "encrypted": True,
            "originalName": filename,
            "originalType": mime_type,
        },
    )


def get_decrypted(store: PinStore, cid: str) -> PinResult:
    """
    Retrieve a JSON document and decrypt it if it carries the encrypted marker.

    Returns:
        PinResult whose data is the inner document; timestamp holds the
        encryptedAt value for encrypted documents
    """
    result = store.get(cid)
    if not result.success:
        return result

    try:
        unsealed = unseal_json(result.data)
    except DecryptionError as e:
        logger.error(f"Error decrypting {cid}: {e}")
        return PinResult.failure(str(e))

    return PinResult(
        success=True,
        cid=cid,
        data=unsealed["data"],
        timestamp=unsealed.get("encryptedAt"),
    )


def get_decrypted_file(store: PinStore, cid: str) -> PinResult:
    """
    Retrieve and decrypt a file uploaded with upload_encrypted_file().

    Returns:
        PinResult whose data is a DecryptedFile
    """
    result = store.get_bytes(cid)
    if not result.success:
        return result

    try:
        envelope = decrypt(result.data.decode("ascii"))
        content = open_file_envelope(envelope)
    except (DecryptionError, UnicodeDecodeError, KeyError, ValueError) as e:
        logger.error(f"Error decrypting file {cid}: {e}")
        return PinResult.failure(f"File decryption failed: {e}")

    return PinResult(
        success=True,
        cid=cid,
        data=DecryptedFile(
            content=content,
            original_name=envelope.get("originalName", ""),
            mime_type=envelope.get("mimeType") or "application/pdf",
            size=envelope.get("size", len(content)),
        ),
    )
