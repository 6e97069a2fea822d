# ============================================
# Unit Tests for Authorization and Security Settings
# ============================================
"""
Tests for admin role checks and the security overview.
"""

import pytest

from mediscan.api.client import RecordApiClient
from mediscan.auth import AuthorizationError, StaticAuthProvider, User, require_admin
from mediscan.services.settings import key_fingerprint, security_overview


class TestStaticAuthProvider:
    """Tests for environment-backed identities."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MEDISCAN_USER_EMAIL", "admin@clinic.test")
        monkeypatch.setenv("MEDISCAN_USER_ROLES", "viewer, admin")

        user = StaticAuthProvider().current_user()

        assert user == User(id="admin@clinic.test", email="admin@clinic.test",
                            roles=frozenset({"viewer", "admin"}))
        assert user.is_admin

    def test_no_email_means_no_user(self, monkeypatch):
        monkeypatch.delenv("MEDISCAN_USER_EMAIL", raising=False)

        assert StaticAuthProvider().current_user() is None


class TestRequireAdmin:
    def test_admin_allowed(self):
        user = require_admin(StaticAuthProvider("root@clinic.test", ["admin"]))

        assert user.email == "root@clinic.test"

    def test_non_admin_denied(self):
        with pytest.raises(AuthorizationError, match="not an administrator"):
            require_admin(StaticAuthProvider("nurse@clinic.test", ["viewer"]))

    def test_anonymous_denied(self):
        with pytest.raises(AuthorizationError, match="Authentication required"):
            require_admin(StaticAuthProvider("", []))


class TestSecurityOverview:
    """Tests for the admin-only settings view."""

    @pytest.fixture
    def admin(self):
        return StaticAuthProvider("root@clinic.test", ["admin"])

    def test_overview_fields(self, admin, api):
        overview = security_overview(admin, api=api)

        assert overview["viewedBy"] == "root@clinic.test"
        assert overview["encryption"]["usingDefaultKey"] is False
        assert overview["encryption"]["keyFingerprint"] == key_fingerprint("test-encryption-key")
        assert overview["storage"] == {"pinBackend": "pinata", "remoteApiConfigured": True}

    def test_flags_default_key(self, admin, monkeypatch):
        """Verify the insecure fallback passphrase is reported."""
        monkeypatch.delenv("MEDISCAN_ENCRYPTION_KEY")

        overview = security_overview(admin, api=RecordApiClient())

        assert overview["encryption"]["usingDefaultKey"] is True
        assert overview["storage"]["remoteApiConfigured"] is False

    def test_requires_admin(self, api):
        with pytest.raises(AuthorizationError):
            security_overview(StaticAuthProvider("nurse@clinic.test", ["viewer"]), api=api)

    def test_fingerprint_hides_key(self):
        fingerprint = key_fingerprint("secret-passphrase")

        assert "secret" not in fingerprint
        assert len(fingerprint) == 11
