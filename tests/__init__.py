# ============================================
# Test Suite for MediScan
# ============================================
"""
Test package containing unit and integration tests.

Run all tests:
    pytest tests/

Run unit tests only:
    pytest tests/unit/

Run integration tests only:
    pytest tests/integration/

Run with coverage:
    pytest --cov=mediscan tests/
"""
