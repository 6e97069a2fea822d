# ============================================
# Unit Tests
# ============================================
"""
Unit tests for individual components.

These tests:
    - Do not require Pinata or GCP credentials
    - Replace the remote API and the pin store with in-memory fakes
    - Run quickly and in isolation
"""
