"""Plugin-based authentication for ``--auth`` / ``--auth-type``.

The main entry points are:

- :class:`AuthPlugin` -- abstract base class for implementing auth schemes.
- :class:`AuthManager` -- registry that maps auth type strings to plugins.
- :func:`create_default_manager` -- an :class:`AuthManager` pre-loaded with
  the built-in ``basic`` and ``bearer`` plugins.

Typical usage::

    from spie.auth import PasswordPrompt, create_default_manager

    manager = create_default_manager()
    result = manager.authenticate("basic", "user:pass", prompt)
    payload = result.apply(payload)
"""

from spie.auth.base import AuthPlugin, AuthResult, PasswordPrompt
from spie.auth.manager import AuthManager, create_default_manager

__all__ = [
    "AuthPlugin",
    "AuthResult",
    "AuthManager",
    "PasswordPrompt",
    "create_default_manager",
]
