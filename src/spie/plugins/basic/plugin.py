"""HTTP Basic authentication plugin.

This module provides :class:`BasicAuthPlugin`, which implements the
``basic`` auth type. The ``--auth`` value is a ``"username:password"``
string, Base64-encoded and sent as an ``Authorization: Basic <encoded>``
header per :rfc:`7617`. A value without a colon is a bare username, and
the password is prompted for.

See Also:
    :class:`spie.auth.base.AuthPlugin` for the base interface.
"""

from __future__ import annotations

import base64

from spie.auth.base import AuthPlugin, AuthResult, PasswordPrompt


class BasicAuthPlugin(AuthPlugin):
    """Authenticate via HTTP Basic authentication."""

    @property
    def auth_type(self) -> str:
        return "basic"

    def authenticate(self, credential: str, prompt: PasswordPrompt) -> AuthResult:
        """Encode ``username:password``, prompting for a missing password.

        Only the first colon separates the username, so passwords may
        contain colons.

        Raises:
            AuthError: If the password prompt is unavailable or cancelled.
        """
        username, separator, password = credential.partition(":")
        if not separator:
            password = prompt.ask(username)
        raw = f"{username}:{password}"
        encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        return AuthResult(f"Basic {encoded}")
