"""Numeric process exit codes.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~spie.exceptions.SpieError` subclass. Shell scripts can
inspect the exit code to tell a usage mistake from a network failure or, with
``--check-status``, from an HTTP error status, without parsing stderr.

Example::

    $ spie --check-status example.org/missing
    $ echo $?
    4   # EXIT_HTTP_4XX -- the final response was a client error
"""

EXIT_SUCCESS = 0
"""The request completed (the HTTP status is ignored unless ``--check-status``)."""

EXIT_GENERIC_FAILURE = 1
"""A transport failure or an unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid options, request items, URLs, or body-mode combinations."""

EXIT_HTTP_3XX = 3
"""``--check-status``: the final response was a redirect that was not followed."""

EXIT_HTTP_4XX = 4
"""``--check-status``: the final response was a client error."""

EXIT_HTTP_5XX = 5
"""``--check-status``: the final response was a server error."""

EXIT_TOO_MANY_REDIRECTS = 6
"""The redirect chain exceeded ``--max-redirects``."""

EXIT_CANCELLED = 130
"""The run was interrupted with Ctrl-C."""
