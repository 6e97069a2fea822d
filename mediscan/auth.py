# ============================================
# Authorization
# ============================================
"""
Role checks for administrative views.

The security settings view requires a user holding the "admin" role.
Identity comes from an AuthProvider; StaticAuthProvider reads it from the
environment for the CLI and from constructor arguments in tests.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional


logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class AuthorizationError(PermissionError):
    """Raised when the current user lacks a required role."""


@dataclass(frozen=True)
class User:
    id: str
    email: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


class AuthProvider:
    """Source of the current user identity."""

    def current_user(self) -> Optional[User]:
        raise NotImplementedError


class StaticAuthProvider(AuthProvider):
    """
    Fixed identity.

    Args:
        email: User email (default MEDISCAN_USER_EMAIL)
        roles: Role names (default comma-separated MEDISCAN_USER_ROLES)
    """

    def __init__(self, email: Optional[str] = None, roles: Optional[Iterable[str]] = None):
        self.email = email if email is not None else os.getenv("MEDISCAN_USER_EMAIL")
        if roles is None:
            roles = [r for r in os.getenv("MEDISCAN_USER_ROLES", "").split(",")]
        self.roles = frozenset(r.strip() for r in roles if r and r.strip())

    def current_user(self) -> Optional[User]:
        if not self.email:
            return None
        return User(id=self.email, email=self.email, roles=self.roles)


def require_admin(provider: AuthProvider) -> User:
    """
    Return the current user if they are an admin.

    Raises:
        AuthorizationError: No user, or the user lacks the admin role
    """
    user = provider.current_user()
    if user is None:
        raise AuthorizationError("Authentication required")
    if not user.is_admin:
        logger.warning(f"Denied admin access to {user.email}")
        raise AuthorizationError(f"User {user.email} is not an administrator")
    return user
