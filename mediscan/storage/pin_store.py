# ============================================
# Pinned-Content Cloud Store Module
# ============================================
"""
Content-addressed blob storage for scan images, reports and patient details.

WHAT A PIN STORE DOES:
======================
Uploads return a content identifier (cid). The cid is stored on a record in
place of a path and later used to retrieve the content from a public
gateway:

    <gateway>/ipfs/<cid>

Four primitives are exposed by every backend:
    - upload_file(content, filename, metadata)  -> PinResult(cid=...)
    - upload_json(document, name)               -> PinResult(cid=...)
    - get(cid) / get_bytes(cid)                 -> PinResult(data=...)
    - unpin(cid)                                -> PinResult(success=...)

None of them raise for network or credential problems. Callers check
PinResult.success, so an unavailable store simply falls through the read
chain or aborts the write that needed it.

BACKENDS:
=========
PinataStore (default):
    Pinata pinning API authenticated with a static key/secret pair.

GCSPinStore:
    A Cloud Storage bucket holding objects at ipfs/<sha256>. Retrieval goes
    through the storage client rather than a public gateway.
"""

import io
import json
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import requests
from google.api_core import exceptions as gcs_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from mediscan.utils.config import (
    get_api_timeout,
    get_gateway_url,
    get_gcs_bucket_name,
    get_pin_backend,
    get_pinata_api_url,
    get_pinata_credentials,
    get_project_id,
)


logger = logging.getLogger(__name__)

# Failures from the storage API or from resolving credentials
GCS_ERRORS = (gcs_exceptions.GoogleAPICallError, auth_exceptions.GoogleAuthError)


@dataclass
class PinResult:
    """
    Outcome of a pin store primitive.

    Attributes:
        success: Whether the operation completed
        cid: Content identifier of uploaded content
        pin_size: Stored size in bytes reported by the backend
        timestamp: Backend timestamp for the pin
        data: Retrieved content (parsed JSON, bytes, or decrypted payload)
        error: Failure description when success is False
    """
    success: bool
    cid: Optional[str] = None
    pin_size: Optional[int] = None
    timestamp: Optional[str] = None
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "PinResult":
        return cls(success=False, error=error)


class PinStore:
    """Interface shared by all pinned-content backends."""

    def upload_file(
        self,
        content: bytes,
        filename: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PinResult:
        raise NotImplementedError

    def upload_json(self, document: Any, name: str) -> PinResult:
        raise NotImplementedError

    def get(self, cid: str) -> PinResult:
        """Retrieve content parsed as JSON."""
        raise NotImplementedError

    def get_bytes(self, cid: str) -> PinResult:
        """Retrieve raw content."""
        raise NotImplementedError

    def unpin(self, cid: str) -> PinResult:
        raise NotImplementedError

    def gateway_url(self, cid: str) -> str:
        raise NotImplementedError


# =============================================================================
# PINATA BACKEND
# =============================================================================

class PinataStore(PinStore):
    """
    Pinata-backed pin store.

    Args:
        api_key: Pinata API key (default from PINATA_API_KEY)
        secret: Pinata secret (default from PINATA_SECRET)
        api_url: Pinning API base URL
        gateway: Public gateway base URL
        session: Optional requests.Session (injected in tests)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret: Optional[str] = None,
        api_url: Optional[str] = None,
        gateway: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        env_key, env_secret = get_pinata_credentials()
        self.api_key = api_key or env_key
        self.secret = secret or env_secret
        self.api_url = (api_url or get_pinata_api_url()).rstrip("/")
        self.gateway = (gateway or get_gateway_url()).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or get_api_timeout()

        if not self.api_key or not self.secret:
            logger.error("Pinata API keys are missing. Please check your .env file.")

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.secret)

    def _headers(self) -> Dict[str, str]:
        return {
            "pinata_api_key": self.api_key or "",
            "pinata_secret_api_key": self.secret or "",
        }

    @staticmethod
    def _pin_result(body: Dict[str, Any]) -> PinResult:
        return PinResult(
            success=True,
            cid=body.get("IpfsHash"),
            pin_size=body.get("PinSize"),
            timestamp=body.get("Timestamp"),
        )

    def upload_file(
        self,
        content: bytes,
        filename: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PinResult:
        if not self.configured:
            return PinResult.failure("Pinata credentials not configured")

        metadata = metadata or {}
        pinata_metadata = {
            "name": metadata.get("name") or filename,
            "keyvalues": metadata,
        }
        pinata_options = {"cidVersion": 1, "wrapWithDirectory": False}

        try:
            response = self.session.post(
                f"{self.api_url}/pinning/pinFileToIPFS",
                headers=self._headers(),
                files={"file": (filename, io.BytesIO(content))},
                data={
                    "pinataMetadata": json.dumps(pinata_metadata),
                    "pinataOptions": json.dumps(pinata_options),
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = self._pin_result(response.json())
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error uploading to Pinata: {e}")
            return PinResult.failure(str(e))

        logger.info(f"Pinned file {filename} as {result.cid}")
        return result

    def upload_json(self, document: Any, name: str) -> PinResult:
        if not self.configured:
            return PinResult.failure("Pinata credentials not configured")

        payload = {
            "pinataContent": document,
            "pinataMetadata": {"name": name},
            "pinataOptions": {"cidVersion": 1},
        }

        try:
            response = self.session.post(
                f"{self.api_url}/pinning/pinJSONToIPFS",
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = self._pin_result(response.json())
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error uploading JSON to Pinata: {e}")
            return PinResult.failure(str(e))

        logger.info(f"Pinned JSON {name} as {result.cid}")
        return result

    def _fetch(self, cid: str) -> requests.Response:
        response = self.session.get(self.gateway_url(cid), timeout=self.timeout)
        response.raise_for_status()
        return response

    def get(self, cid: str) -> PinResult:
        try:
            data = self._fetch(cid).json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error retrieving {cid} from Pinata: {e}")
            return PinResult.failure(str(e))
        return PinResult(success=True, cid=cid, data=data)

    def get_bytes(self, cid: str) -> PinResult:
        try:
            content = self._fetch(cid).content
        except requests.RequestException as e:
            logger.error(f"Error retrieving {cid} from Pinata: {e}")
            return PinResult.failure(str(e))
        return PinResult(success=True, cid=cid, data=content)

    def unpin(self, cid: str) -> PinResult:
        if not self.configured:
            return PinResult.failure("Pinata credentials not configured")
        try:
            response = self.session.delete(
                f"{self.api_url}/pinning/unpin/{cid}",
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error unpinning {cid} from Pinata: {e}")
            return PinResult.failure(str(e))
        return PinResult(success=True, cid=cid)

    def gateway_url(self, cid: str) -> str:
        return f"{self.gateway}/ipfs/{cid}"


# =============================================================================
# GOOGLE CLOUD STORAGE BACKEND
# =============================================================================

class GCSPinStore(PinStore):
    """
    Content-addressed pin store on a Cloud Storage bucket.

    OBJECT LAYOUT:
        gs://<bucket>/ipfs/<sha256-of-content>

    The object name is derived from the content, so uploading identical
    bytes twice yields the same cid and overwrites the same object.
    Upload metadata is stored as blob custom metadata (string values only).

    Args:
        bucket_name: Target bucket (default from MEDISCAN_GCS_BUCKET)
        client: Optional storage.Client (injected in tests)
    """

    PREFIX = "ipfs"

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        client: Optional[storage.Client] = None,
    ):
        self.bucket_name = bucket_name or get_gcs_bucket_name()
        self._client = client

    @property
    def client(self) -> storage.Client:
        # The client handles authentication automatically using
        # GOOGLE_APPLICATION_CREDENTIALS or application default credentials
        if self._client is None:
            project_id = get_project_id()
            self._client = storage.Client(project=project_id) if project_id else storage.Client()
        return self._client

    @staticmethod
    def content_id(content: bytes) -> str:
        return hashlib.sha256(content).hexdigest()

    def _blob(self, cid: str):
        bucket = self.client.bucket(self.bucket_name)
        return bucket.blob(f"{self.PREFIX}/{cid}")

    def _upload(
        self,
        content: bytes,
        content_type: str,
        metadata: Dict[str, Any],
    ) -> PinResult:
        cid = self.content_id(content)
        try:
            blob = self._blob(cid)
            blob.metadata = {k: str(v) for k, v in metadata.items()}
            blob.upload_from_string(content, content_type=content_type)
        except GCS_ERRORS as e:
            logger.error(f"Error uploading to gs://{self.bucket_name}: {e}")
            return PinResult.failure(str(e))

        return PinResult(
            success=True,
            cid=cid,
            pin_size=len(content),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def upload_file(
        self,
        content: bytes,
        filename: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PinResult:
        metadata = {"name": filename, **(metadata or {})}
        result = self._upload(content, "application/octet-stream", metadata)
        if result.success:
            logger.info(f"Pinned file {filename} as {result.cid}")
        return result

    def upload_json(self, document: Any, name: str) -> PinResult:
        content = json.dumps(document, sort_keys=True).encode("utf-8")
        result = self._upload(content, "application/json", {"name": name})
        if result.success:
            logger.info(f"Pinned JSON {name} as {result.cid}")
        return result

    def get_bytes(self, cid: str) -> PinResult:
        try:
            content = self._blob(cid).download_as_bytes()
        except gcs_exceptions.NotFound:
            return PinResult.failure(f"Content not found: {cid}")
        except GCS_ERRORS as e:
            logger.error(f"Error retrieving {cid} from gs://{self.bucket_name}: {e}")
            return PinResult.failure(str(e))
        return PinResult(success=True, cid=cid, data=content)

    def get(self, cid: str) -> PinResult:
        result = self.get_bytes(cid)
        if not result.success:
            return result
        try:
            result.data = json.loads(result.data.decode("utf-8"))
        except ValueError as e:
            return PinResult.failure(f"Content {cid} is not JSON: {e}")
        return result

    def unpin(self, cid: str) -> PinResult:
        try:
            self._blob(cid).delete()
        except gcs_exceptions.NotFound:
            return PinResult.failure(f"Content not found: {cid}")
        except GCS_ERRORS as e:
            logger.error(f"Error unpinning {cid} from gs://{self.bucket_name}: {e}")
            return PinResult.failure(str(e))
        return PinResult(success=True, cid=cid)

    def gateway_url(self, cid: str) -> str:
        return f"https://storage.googleapis.com/{self.bucket_name}/{self.PREFIX}/{cid}"


@lru_cache(maxsize=1)
def get_pin_store() -> PinStore:
    """
    Get the cached pin store for the configured backend.

    Returns:
        PinataStore or GCSPinStore depending on MEDISCAN_PIN_BACKEND
    """
    backend = get_pin_backend()
    if backend == "gcs":
        return GCSPinStore()
    return PinataStore()
