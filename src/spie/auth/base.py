"""Abstract base class for authentication plugins.

This module defines the foundational types of the auth subsystem:

- :class:`AuthResult` -- the ``Authorization`` header value a plugin
  produces, and how it is applied to a request payload.
- :class:`PasswordPrompt` -- interactive password entry for credentials
  given without one (``-a user``).
- :class:`AuthPlugin` -- the abstract base class every auth scheme extends.

To implement a new auth scheme, subclass :class:`AuthPlugin`, set the
:attr:`~AuthPlugin.auth_type` property, and implement
:meth:`~AuthPlugin.authenticate`.

See Also:
    :mod:`spie.auth.manager` for plugin registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from spie.exceptions import AuthError
from spie.models import RequestPayload

if TYPE_CHECKING:
    from spie.input_source import InputSource
    from spie.output import OutputManager

AUTHORIZATION = "Authorization"


class AuthResult:
    """The ``Authorization`` header value produced by a plugin.

    Args:
        authorization: Full header value, e.g. ``"Bearer tok123"``.

    Example::

        result = AuthResult("Bearer tok123")
        payload = result.apply(payload)
    """

    def __init__(self, authorization: str):
        self.authorization = authorization

    def apply(self, payload: RequestPayload) -> RequestPayload:
        """Return a copy of *payload* carrying this ``Authorization`` header.

        Any user-supplied ``Authorization`` header is replaced and an
        ``Authorization:`` removal is cancelled.
        """
        lowered = AUTHORIZATION.lower()
        headers = [(k, v) for k, v in payload.request.headers if k.lower() != lowered]
        headers.append((AUTHORIZATION, self.authorization))
        request = payload.request.model_copy(update={"headers": headers})
        removals = [name for name in payload.header_removals if name.lower() != lowered]
        return payload.model_copy(update={"request": request, "header_removals": removals})


class PasswordPrompt:
    """Asks for a password on stderr and reads it from the input source.

    Args:
        source: Where the password is read from.
        output: Where the prompt is written.
        enabled: ``False`` under ``--ignore-stdin``.
    """

    def __init__(self, source: InputSource, output: OutputManager, enabled: bool = True):
        self._source = source
        self._output = output
        self._enabled = enabled

    def ask(self, username: str) -> str:
        """Prompt for *username*'s password.

        Raises:
            AuthError: Prompting is disabled, stdin is not interactive, or
                the user cancelled.
        """
        if not self._enabled:
            raise AuthError("password prompt is disabled when --ignore-stdin is set")
        if not self._source.is_interactive:
            raise AuthError("password prompt requires an interactive stdin")

        prompt = f"Enter password for user '{username}': "
        self._output.prompt(prompt)
        line: Optional[str] = self._source.read_secure_line(prompt)
        self._output.prompt("\n")
        if line is None:
            raise AuthError("password prompt cancelled")
        return line.rstrip("\r\n")


class AuthPlugin(ABC):
    """Abstract base class for authentication plugins.

    Every concrete auth scheme must subclass this and provide:

    1. An :attr:`auth_type` property returning a unique string identifier
       (e.g. ``"basic"``, ``"bearer"``) as accepted by ``--auth-type``.
    2. An :meth:`authenticate` implementation that turns the ``--auth``
       credential into an :class:`AuthResult`.

    Plugins are registered with :class:`~spie.auth.manager.AuthManager`
    and looked up by their ``auth_type`` at runtime.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the unique auth type identifier this plugin handles."""
        ...

    @abstractmethod
    def authenticate(self, credential: str, prompt: PasswordPrompt) -> AuthResult:
        """Turn *credential* into the ``Authorization`` header value.

        Args:
            credential: The ``--auth`` value.
            prompt: Used when the credential lacks a secret the scheme needs.

        Returns:
            The :class:`AuthResult` to apply to the request.

        Raises:
            AuthError: If the credential is unusable or the prompt fails.
        """
        ...

    def validate_credential(self, credential: str) -> list[str]:
        """Check *credential* before use.

        Returns:
            Human-readable problems; an empty list means the credential is usable.
        """
        return []
