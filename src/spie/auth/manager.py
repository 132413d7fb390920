"""Auth manager -- registry and dispatcher for auth plugins.

The :class:`AuthManager` maps ``--auth-type`` strings (``"basic"``,
``"bearer"``) to :class:`~spie.auth.base.AuthPlugin` instances and exposes
a single :meth:`~AuthManager.authenticate` method that the runner calls.

Call :func:`create_default_manager` to get a manager pre-loaded with every
built-in plugin.
"""

from __future__ import annotations

from spie.auth.base import AuthPlugin, AuthResult, PasswordPrompt
from spie.exceptions import AuthError


class AuthManager:
    """Registry and dispatcher for authentication plugins.

    Example::

        from spie.auth import AuthManager
        from spie.plugins.bearer import BearerAuthPlugin

        manager = AuthManager()
        manager.register(BearerAuthPlugin())
        result = manager.authenticate("bearer", "tok123", prompt)
    """

    def __init__(self) -> None:
        self._plugins: dict[str, AuthPlugin] = {}

    def register(self, plugin: AuthPlugin) -> None:
        """Register an auth plugin, keyed by its :attr:`~AuthPlugin.auth_type`.

        If a plugin for the same type is already registered it is silently
        replaced.
        """
        self._plugins[plugin.auth_type] = plugin

    def get_plugin(self, auth_type: str) -> AuthPlugin:
        """Retrieve a registered plugin by its auth type identifier (case-insensitive).

        Raises:
            AuthError: If no plugin is registered for *auth_type*.
        """
        plugin = self._plugins.get(auth_type.lower())
        if plugin is None:
            raise AuthError(f"unsupported auth type '{auth_type}'")
        return plugin

    def authenticate(
        self, auth_type: str, credential: str, prompt: PasswordPrompt
    ) -> AuthResult:
        """Resolve *credential* with the plugin registered for *auth_type*.

        Raises:
            AuthError: If the auth type is unknown, the credential fails
                validation, or the plugin cannot authenticate.
        """
        plugin = self.get_plugin(auth_type)
        problems = plugin.validate_credential(credential)
        if problems:
            raise AuthError("; ".join(problems))
        return plugin.authenticate(credential, prompt)

    def list_types(self) -> list[str]:
        """Return the identifiers of all registered auth types, sorted."""
        return sorted(self._plugins.keys())


def create_default_manager() -> AuthManager:
    """Create an :class:`AuthManager` pre-loaded with the built-in plugins.

    - ``basic`` -- HTTP Basic authentication.
    - ``bearer`` -- static bearer token.
    """
    from spie.plugins.basic import BasicAuthPlugin
    from spie.plugins.bearer import BearerAuthPlugin

    manager = AuthManager()
    manager.register(BasicAuthPlugin())
    manager.register(BearerAuthPlugin())
    return manager
