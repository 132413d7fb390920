"""Bearer token authentication plugin.

This module provides :class:`BearerAuthPlugin`, which implements the
``bearer`` auth type: the ``--auth`` value is sent unchanged as an
``Authorization: Bearer <token>`` header. No token exchange or refresh
takes place.
"""

from __future__ import annotations

from spie.auth.base import AuthPlugin, AuthResult, PasswordPrompt


class BearerAuthPlugin(AuthPlugin):
    """Authenticate via Bearer token in the Authorization header."""

    @property
    def auth_type(self) -> str:
        return "bearer"

    def authenticate(self, credential: str, prompt: PasswordPrompt) -> AuthResult:
        return AuthResult(f"Bearer {credential}")

    def validate_credential(self, credential: str) -> list[str]:
        """Reject an empty token."""
        if not credential.strip():
            return ["bearer auth requires a non-empty token"]
        return []
