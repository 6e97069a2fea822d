# ============================================
# Integration Tests
# ============================================
"""
Integration tests against real pinned-content backends.

These tests:
    - Require Pinata or GCS credentials
    - Upload small throwaway objects and unpin them afterwards
    - Should be run less frequently than unit tests

Configure credentials:
    export PINATA_API_KEY=... PINATA_SECRET=...
    export GCP_PROJECT_ID=... MEDISCAN_GCS_BUCKET=...
"""
