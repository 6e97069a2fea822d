# ============================================
# Pytest Configuration and Fixtures
# ============================================
"""
Shared fixtures and configuration for all tests.

The remote record API and the pin store are replaced by in-memory fakes:
    - FakeApiSession: requests.Session stand-in serving a tiny REST API
    - FakePinStore: content-addressed dict implementing PinStore
"""

import io
import os
import json
import sys
import random
import hashlib
import pytest
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from PIL import Image


# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mediscan.analysis.anomalies import SimulatedAnomalyGenerator
from mediscan.api.client import RecordApiClient
from mediscan.services import build_services
from mediscan.storage.local_cache import LocalCache, MemoryStore
from mediscan.storage.pin_store import PinResult, PinStore


API_URL = "http://api.test"


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (deselect with '-m \"not integration\"')",
    )
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow running",
    )


# =============================================================================
# FAKES
# =============================================================================

def make_response(status: int, body: Any = None, url: str = API_URL) -> requests.Response:
    """Build a real requests.Response with a JSON body."""
    response = requests.models.Response()
    response.status_code = status
    response._content = b"" if body is None else json.dumps(body).encode("utf-8")
    response.url = url
    return response


class FakeApiSession:
    """
    In-memory REST backend with the record API's routes.

    Args:
        down: Raise ConnectionError for every request
    """

    def __init__(self, down: bool = False):
        self.down = down
        self.collections: Dict[str, List[Dict[str, Any]]] = {
            "patients": [],
            "scans": [],
            "reports": [],
        }
        self.calls: List[tuple] = []

    def _find(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        for record in self.collections[collection]:
            if record.get("id") == record_id:
                return record
        return None

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append((method, url, json))
        if self.down:
            raise requests.ConnectionError("connection refused")

        parts = url[len(API_URL):].strip("/").split("/")
        collection = parts[0]
        if collection not in self.collections:
            return make_response(404, {"error": "not found"}, url)

        records = self.collections[collection]

        if len(parts) == 1:
            if method == "GET":
                return make_response(200, records, url)
            if method == "POST":
                stored = {**json, "serverReceived": True}
                records.append(stored)
                return make_response(201, stored, url)

        record_id = parts[1]
        if len(parts) == 3:
            if method == "GET" and parts[2] in self.collections:
                return make_response(200, [
                    r for r in self.collections[parts[2]] if r.get("patientId") == record_id
                ], url)
            if method == "POST" and parts[2] == "share":
                if self._find(collection, record_id) is None:
                    return make_response(404, {"error": "not found"}, url)
                return make_response(200, {"shared": True}, url)
            return make_response(404, {"error": "not found"}, url)

        existing = self._find(collection, record_id)
        if existing is None:
            return make_response(404, {"error": "not found"}, url)
        if method == "GET":
            return make_response(200, existing, url)
        if method == "PUT":
            existing.clear()
            existing.update(json)
            return make_response(200, existing, url)
        if method == "DELETE":
            records.remove(existing)
            return make_response(204, None, url)
        return make_response(405, {"error": "method not allowed"}, url)


class FakePinStore(PinStore):
    """
    Content-addressed in-memory pin store.

    Args:
        fail: Every upload fails when True
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects: Dict[str, bytes] = {}
        self.metadata: Dict[str, Dict[str, Any]] = {}

    def _put(self, content: bytes, metadata: Dict[str, Any]) -> PinResult:
        if self.fail:
            return PinResult.failure("pin store unavailable")
        cid = "bafy" + hashlib.sha256(content).hexdigest()[:40]
        self.objects[cid] = content
        self.metadata[cid] = metadata
        return PinResult(success=True, cid=cid, pin_size=len(content))

    def upload_file(self, content, filename, metadata=None):
        return self._put(content, {"name": filename, **(metadata or {})})

    def upload_json(self, document, name):
        return self._put(json.dumps(document, sort_keys=True).encode("utf-8"), {"name": name})

    def get_bytes(self, cid):
        if cid not in self.objects:
            return PinResult.failure(f"Content not found: {cid}")
        return PinResult(success=True, cid=cid, data=self.objects[cid])

    def get(self, cid):
        result = self.get_bytes(cid)
        if result.success:
            result.data = json.loads(result.data.decode("utf-8"))
        return result

    def unpin(self, cid):
        if self.objects.pop(cid, None) is None:
            return PinResult.failure(f"Content not found: {cid}")
        return PinResult(success=True, cid=cid)

    def gateway_url(self, cid):
        return f"https://gateway.test/ipfs/{cid}"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def isolated_env(request, monkeypatch, tmp_path):
    """Keep unit tests independent of any developer .env settings."""
    if request.node.get_closest_marker("integration"):
        return
    for name in ("MEDISCAN_API_BASE_URL", "MEDISCAN_PIN_INDEX", "PINATA_API_KEY", "PINATA_SECRET"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("MEDISCAN_PIN_INDEX_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("MEDISCAN_ENCRYPTION_KEY", "test-encryption-key")
    monkeypatch.setenv("MEDISCAN_ANALYSIS_DELAY", "0")
    monkeypatch.setenv("MEDISCAN_PIN_BACKEND", "pinata")
    monkeypatch.setenv("MEDISCAN_CACHE_DIR", str(tmp_path / "cache"))


@pytest.fixture
def mock_env(monkeypatch):
    """Fixture to mock environment variables."""
    env_vars = {
        "MEDISCAN_API_BASE_URL": API_URL,
        "PINATA_API_KEY": "test-key",
        "PINATA_SECRET": "test-secret",
        "GCP_PROJECT_ID": "test-project",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars


@pytest.fixture
def cache():
    """Local cache backed by a dict."""
    return LocalCache(MemoryStore())


@pytest.fixture
def pin_store():
    return FakePinStore()


@pytest.fixture
def failing_pin_store():
    return FakePinStore(fail=True)


@pytest.fixture
def remote():
    """The fake remote backend, for inspecting calls and stored records."""
    return FakeApiSession()


@pytest.fixture
def api(remote):
    """API client talking to a working fake backend."""
    return RecordApiClient(base_url=API_URL, session=remote)


@pytest.fixture
def api_down():
    """API client whose every request fails with a connection error."""
    return RecordApiClient(base_url=API_URL, session=FakeApiSession(down=True))


@pytest.fixture
def generator():
    """Deterministic anomaly generator without the processing delay."""
    return SimulatedAnomalyGenerator(rng=random.Random(42), delay=0)


@pytest.fixture
def offline_services(api_down, cache, pin_store, generator):
    """Services with the remote API down and an empty local cache."""
    return build_services(api=api_down, cache=cache, pin_store=pin_store, pin_index={}, generator=generator)


@pytest.fixture
def online_services(api, cache, pin_store, generator):
    """Services with a working fake remote API."""
    return build_services(api=api, cache=cache, pin_store=pin_store, pin_index={}, generator=generator)


@pytest.fixture
def png_bytes():
    """A small valid PNG image."""
    buffer = io.BytesIO()
    Image.new("L", (64, 64), color=128).save(buffer, format="PNG")
    return buffer.getvalue()
