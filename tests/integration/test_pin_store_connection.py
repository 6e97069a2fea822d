# ============================================
# Integration Tests for Pin Store Connectivity
# ============================================
"""
Round trips through the configured cloud backends.

These tests require valid credentials and upload real (tiny) objects.
Skip with: pytest -m "not integration"
"""

import os
import pytest

from mediscan.storage.encrypted import get_decrypted, upload_encrypted_json
from mediscan.storage.pin_store import GCSPinStore, PinataStore


# Mark all tests in this module as integration tests
pytestmark = pytest.mark.integration


@pytest.fixture
def pinata_store():
    """Pinata store from PINATA_API_KEY / PINATA_SECRET."""
    if not (os.getenv("PINATA_API_KEY") and os.getenv("PINATA_SECRET")):
        pytest.skip("PINATA_API_KEY / PINATA_SECRET not set")
    return PinataStore()


@pytest.fixture
def gcs_store():
    """GCS store from GCP_PROJECT_ID / MEDISCAN_GCS_BUCKET."""
    if not (os.getenv("GCP_PROJECT_ID") and os.getenv("MEDISCAN_GCS_BUCKET")):
        pytest.skip("GCP_PROJECT_ID / MEDISCAN_GCS_BUCKET not set")
    return GCSPinStore()


def _round_trip(store):
    document = {"check": "mediscan-integration", "values": [1, 2, 3]}

    uploaded = store.upload_json(document, "mediscan_integration_check")
    assert uploaded.success, uploaded.error

    try:
        fetched = store.get(uploaded.cid)
        assert fetched.success, fetched.error
        assert fetched.data == document
    finally:
        store.unpin(uploaded.cid)


class TestPinataConnection:
    """Tests for the Pinata backend."""

    def test_json_round_trip(self, pinata_store):
        """Verify a JSON document can be pinned, fetched and unpinned."""
        _round_trip(pinata_store)

    def test_encrypted_round_trip(self, pinata_store):
        uploaded = upload_encrypted_json(pinata_store, {"medicalHistory": []}, "mediscan_integration_secret")
        assert uploaded.success, uploaded.error

        try:
            assert get_decrypted(pinata_store, uploaded.cid).data == {"medicalHistory": []}
        finally:
            pinata_store.unpin(uploaded.cid)


class TestGCSConnection:
    """Tests for the GCS backend."""

    def test_json_round_trip(self, gcs_store):
        """Verify a JSON document can be stored under its content id."""
        _round_trip(gcs_store)
