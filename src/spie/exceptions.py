"""Exception hierarchy for spie.

All exceptions inherit from :class:`SpieError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`spie.exit_codes`.
:func:`spie.runner.run` catches ``SpieError``, reports the message on stderr
and returns the exit code, while unexpected exceptions produce a crash log
and :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SpieError (exit 1)
    +-- InvalidUsageError        (exit 2)
    |   +-- AuthError
    |   +-- RequestParseError
    |   |   +-- MissingURLError
    |   |   +-- InvalidURLError
    |   |   +-- InvalidItemError
    |   |   +-- InvalidFileError
    |   |   +-- InvalidJSONError
    |   +-- RequestBuildError
    |       +-- InvalidMethodError
    |       +-- UnsupportedURLError
    |       +-- InvalidHeaderNameError
    |       +-- FileReadError
    |       +-- StdinUnavailableError
    |       +-- JSONNotAllowedInFormError
    |       +-- FileUploadRequiresFormError
    |       +-- MissingRawBodyError
    |       +-- RawBodyConflictError
    +-- ConfigError              (exit 1)
    +-- TransportError           (exit 1)
    |   +-- NetworkError
    |   +-- InternalFailure
    +-- HTTPStatusError
    |   +-- HTTPRedirectError    (exit 3)
    |   +-- HTTPClientError      (exit 4)
    |   +-- HTTPServerError      (exit 5)
    +-- TooManyRedirectsError    (exit 6)
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from spie.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_3XX,
    EXIT_HTTP_4XX,
    EXIT_HTTP_5XX,
    EXIT_INVALID_USAGE,
    EXIT_TOO_MANY_REDIRECTS,
)

if TYPE_CHECKING:
    from spie.models import ResponsePayload


class SpieError(Exception):
    """Base exception for all spie errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`spie.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpieError):
    """Raised for invalid CLI options or arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(InvalidUsageError):
    """Raised for unsupported auth types, bad credentials, or failed password prompts."""


class ConfigError(SpieError):
    """Raised for configuration problems (invalid JSON, bad values, bad env vars)."""

    exit_code = EXIT_GENERIC_FAILURE


# --- Request parsing ---


class RequestParseError(InvalidUsageError):
    """Base class for errors raised while turning CLI tokens into a request."""


class MissingURLError(RequestParseError):
    """Raised when no URL token follows the optional method."""

    def __init__(self) -> None:
        super().__init__("missing URL; provide a URL or shorthand")


class InvalidURLError(RequestParseError):
    """Raised when the URL token cannot be parsed."""

    def __init__(self, token: str) -> None:
        super().__init__(f"invalid URL '{token}'")
        self.token = token


class InvalidItemError(RequestParseError):
    """Raised when a request item contains no recognised separator."""

    def __init__(self, token: str) -> None:
        super().__init__(f"invalid request item '{token}'")
        self.token = token


class InvalidFileError(RequestParseError):
    """Raised for a file upload item with an empty field name or path."""

    def __init__(self, token: str) -> None:
        super().__init__(f"invalid file reference '{token}'")
        self.token = token


class InvalidJSONError(RequestParseError):
    """Raised when a ``:=`` value (or JSON from a file or stdin) is not valid JSON."""

    def __init__(self, value: str) -> None:
        super().__init__(f"invalid JSON value '{value}'")
        self.value = value


# --- Request building ---


class RequestBuildError(InvalidUsageError):
    """Base class for errors raised while resolving a parsed request into a payload."""


class InvalidMethodError(RequestBuildError):
    def __init__(self, method: str) -> None:
        super().__init__(f"unsupported HTTP method '{method}'")
        self.method = method


class UnsupportedURLError(RequestBuildError):
    def __init__(self, url: str) -> None:
        super().__init__(f"unsupported URL '{url}'")
        self.url = url


class InvalidHeaderNameError(RequestBuildError):
    def __init__(self, name: str) -> None:
        super().__init__(f"invalid header name '{name}'")
        self.name = name


class FileReadError(RequestBuildError):
    """Raised when a header, data field, or raw body cannot be read from disk."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{reason} ({path})")
        self.path = path
        self.reason = reason


class StdinUnavailableError(RequestBuildError):
    """Raised when a value needs stdin but stdin was not (or may not be) read."""

    def __init__(self, context: str, message: str | None = None) -> None:
        super().__init__(
            message or f"{context} requires stdin input, but it was not provided"
        )
        self.context = context


class JSONNotAllowedInFormError(RequestBuildError):
    def __init__(self, field: str) -> None:
        super().__init__(
            f"field '{field}' uses JSON data which is not allowed with --form"
        )
        self.field = field


class FileUploadRequiresFormError(RequestBuildError):
    def __init__(self) -> None:
        super().__init__("file uploads require --form")


class MissingRawBodyError(RequestBuildError):
    def __init__(self) -> None:
        super().__init__("--raw requires a request body value")


class RawBodyConflictError(RequestBuildError):
    def __init__(self) -> None:
        super().__init__("cannot mix --raw with request items")


# --- Transport ---


class TransportError(SpieError):
    """Base class for failures reported by a transport's ``send``."""

    exit_code = EXIT_GENERIC_FAILURE


class NetworkError(TransportError):
    """Connectivity problems: DNS, refused connections, TLS failures, timeouts."""


class InternalFailure(TransportError):
    """Contract or protocol violations, including body encoding failures."""


# --- Response status ---


class HTTPStatusError(SpieError):
    """Raised under ``--check-status`` when the final response is not successful.

    Args:
        status: The final HTTP status code.
        reason: The reason phrase printed alongside the code.
    """

    def __init__(self, status: int, reason: str) -> None:
        super().__init__(f"HTTP {status} {reason}".rstrip())
        self.status = status
        self.reason = reason

    @classmethod
    def for_status(cls, status: int, reason: str) -> HTTPStatusError | None:
        """Return the error matching *status*, or ``None`` for 1xx/2xx."""
        if 300 <= status < 400:
            return HTTPRedirectError(status, reason)
        if 400 <= status < 500:
            return HTTPClientError(status, reason)
        if status >= 500:
            return HTTPServerError(status, reason)
        return None


class HTTPRedirectError(HTTPStatusError):
    exit_code = EXIT_HTTP_3XX


class HTTPClientError(HTTPStatusError):
    exit_code = EXIT_HTTP_4XX


class HTTPServerError(HTTPStatusError):
    exit_code = EXIT_HTTP_5XX


class TooManyRedirectsError(SpieError):
    """Raised after the redirect chain exceeded the hop budget.

    The responses collected so far are kept on the exception so callers can
    still render them.
    """

    exit_code = EXIT_TOO_MANY_REDIRECTS

    def __init__(
        self, max_redirects: int, responses: list[ResponsePayload] | None = None
    ) -> None:
        super().__init__(f"too many redirects (--max-redirects={max_redirects})")
        self.max_redirects = max_redirects
        self.responses = responses or []
