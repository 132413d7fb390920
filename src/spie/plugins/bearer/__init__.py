"""Bearer token authentication plugin.

See Also:
    :class:`~spie.plugins.bearer.plugin.BearerAuthPlugin`
"""

from spie.plugins.bearer.plugin import BearerAuthPlugin

__all__ = ["BearerAuthPlugin"]
