"""Canonical Pydantic models shared across all spie modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- persisted as JSON in the user's config directory:
    :class:`GlobalConfig`.

**Request models** -- produced by the parser and the builder:
    :class:`HeaderField`, :class:`DataField`, :class:`QueryField`,
    :class:`FileField`, :class:`RequestItems`, :class:`ParsedRequest`,
    :class:`RawBody`, :class:`RequestHead` and :class:`RequestPayload`.

**Transport models** -- exchanged with a transport's ``send``:
    :class:`TransportOptions` and :class:`ResponsePayload`.

Values with several sources (a header from a literal, a file, or stdin; a
data field from text, JSON, a file, or stdin) are modelled as one class with
a ``source`` enum tag, and the resolving code dispatches on that tag.
"""

from __future__ import annotations

import enum
from http import HTTPStatus
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue


# --- Config ---


class GlobalConfig(BaseModel):
    """User-wide defaults persisted at ``~/.config/spie/config.json``.

    Loaded by :func:`~spie.config.load_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags. See :func:`~spie.config.resolve_config` for the full chain.
    """

    default_scheme: Literal["http", "https"] = Field(
        default="http", description="Scheme prefixed to URLs that lack one"
    )
    base_url: Optional[str] = Field(
        default=None, description="Base URL for '/path' style URL arguments"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Request timeout in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    follow: bool = Field(default=False, description="Follow redirects by default")
    max_redirects: int = Field(
        default=30, ge=0, description="Maximum number of redirects to follow"
    )
    pretty: Optional[Literal["all", "colors", "format", "none"]] = Field(
        default=None, description="Response formatting (default depends on TTY)"
    )
    transport: str = Field(default="httpx", description="Transport identifier")


# --- Request items ---


class HeaderSource(str, enum.Enum):
    """Where a header's value comes from."""

    LITERAL = "literal"
    ABSENT = "absent"
    FILE = "file"
    STDIN = "stdin"


class HeaderField(BaseModel):
    """A header item: ``Name:Value``, ``Name:``, ``Name;``, ``Name:@path`` or ``Name:@-``.

    ``ABSENT`` marks an explicit removal (``Name:``), which is distinct from a
    literal empty value (``Name;``).
    """

    name: str
    source: HeaderSource = HeaderSource.LITERAL
    value: Optional[str] = None
    path: Optional[Path] = None

    @classmethod
    def literal(cls, name: str, value: str) -> HeaderField:
        return cls(name=name, source=HeaderSource.LITERAL, value=value)

    @classmethod
    def absent(cls, name: str) -> HeaderField:
        return cls(name=name, source=HeaderSource.ABSENT)

    @classmethod
    def from_file(cls, name: str, path: Path | str) -> HeaderField:
        return cls(name=name, source=HeaderSource.FILE, path=Path(path))

    @classmethod
    def from_stdin(cls, name: str) -> HeaderField:
        return cls(name=name, source=HeaderSource.STDIN)


class DataSource(str, enum.Enum):
    """Where a data field's value comes from, and whether it is JSON."""

    TEXT = "text"
    JSON = "json"
    TEXT_FILE = "text_file"
    JSON_FILE = "json_file"
    TEXT_STDIN = "text_stdin"
    JSON_STDIN = "json_stdin"


class DataField(BaseModel):
    """A body field item: ``name=text``, ``name:=json`` and their ``@`` variants.

    For ``TEXT`` the ``value`` is a ``str``; for ``JSON`` it is any JSON
    value. File variants carry ``path``; stdin variants carry nothing until
    :func:`~spie.stdin.materialize_stdin` replaces them.
    """

    name: str
    source: DataSource = DataSource.TEXT
    value: JsonValue = None
    path: Optional[Path] = None

    @classmethod
    def text(cls, name: str, value: str) -> DataField:
        return cls(name=name, source=DataSource.TEXT, value=value)

    @classmethod
    def json_value(cls, name: str, value: JsonValue) -> DataField:
        return cls(name=name, source=DataSource.JSON, value=value)

    @classmethod
    def text_file(cls, name: str, path: Path | str) -> DataField:
        return cls(name=name, source=DataSource.TEXT_FILE, path=Path(path))

    @classmethod
    def json_file(cls, name: str, path: Path | str) -> DataField:
        return cls(name=name, source=DataSource.JSON_FILE, path=Path(path))

    @classmethod
    def text_stdin(cls, name: str) -> DataField:
        return cls(name=name, source=DataSource.TEXT_STDIN)

    @classmethod
    def json_stdin(cls, name: str) -> DataField:
        return cls(name=name, source=DataSource.JSON_STDIN)

    @property
    def is_json(self) -> bool:
        return self.source in (
            DataSource.JSON,
            DataSource.JSON_FILE,
            DataSource.JSON_STDIN,
        )


class QueryField(BaseModel):
    """A query parameter name with every value supplied for it, in order."""

    name: str
    values: list[str] = Field(default_factory=list)


class FileField(BaseModel):
    """A multipart file upload item: ``name@path``."""

    name: str
    path: Path


class RequestItems(BaseModel):
    """Request items grouped by kind; order and duplicates are preserved."""

    headers: list[HeaderField] = Field(default_factory=list)
    data: list[DataField] = Field(default_factory=list)
    query: list[QueryField] = Field(default_factory=list)
    files: list[FileField] = Field(default_factory=list)


class ParsedRequest(BaseModel):
    """Output of :func:`~spie.parser.request.parse_request`.

    ``url`` already contains the merged query string.
    """

    method: str
    url: str
    items: RequestItems = Field(default_factory=RequestItems)


# --- Payload ---


class BodyMode(str, enum.Enum):
    """How data items are encoded into the request body."""

    JSON = "json"
    FORM = "form"
    RAW = "raw"


class RawBodySource(str, enum.Enum):
    INLINE = "inline"
    DATA = "data"
    FILE = "file"
    STDIN = "stdin"


class RawBody(BaseModel):
    """The ``--raw`` body.

    ``FILE`` and ``STDIN`` are request-side forms; once a payload is built
    only ``INLINE`` (``text``) and ``DATA`` (``data``) remain.
    """

    source: RawBodySource
    text: Optional[str] = None
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def inline(cls, text: str) -> RawBody:
        return cls(source=RawBodySource.INLINE, text=text)

    @classmethod
    def from_bytes(cls, data: bytes) -> RawBody:
        return cls(source=RawBodySource.DATA, data=data)

    @classmethod
    def from_file(cls, path: Path | str) -> RawBody:
        return cls(source=RawBodySource.FILE, path=Path(path))

    @classmethod
    def from_stdin(cls) -> RawBody:
        return cls(source=RawBodySource.STDIN)

    @classmethod
    def from_argument(cls, value: str) -> RawBody:
        """Interpret a ``--raw`` option value: ``@-``, ``@path`` or inline text."""
        if value == "@-":
            return cls.from_stdin()
        if value.startswith("@") and len(value) > 1:
            return cls.from_file(value[1:])
        return cls.inline(value)


class RequestHead(BaseModel):
    """Method, target and header fields of an outgoing request."""

    method: str
    scheme: str
    authority: str
    path: str = "/"
    headers: list[tuple[str, str]] = Field(default_factory=list)

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.authority}{self.path}"

    def header_values(self, name: str) -> list[str]:
        """Return every value supplied for *name* (case-insensitive)."""
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def has_header(self, name: str) -> bool:
        lowered = name.lower()
        return any(key.lower() == lowered for key, _ in self.headers)


class RequestPayload(BaseModel):
    """A fully resolved request, ready for a transport.

    Produced by :func:`~spie.client.builder.build_payload` and re-derived per
    hop by :mod:`spie.client.redirects`.
    """

    request: RequestHead
    data: list[DataField] = Field(default_factory=list)
    files: list[FileField] = Field(default_factory=list)
    header_removals: list[str] = Field(default_factory=list)
    body_mode: BodyMode = BodyMode.JSON
    raw_body: Optional[RawBody] = None


# --- Transport ---


class TLSVerification(str, enum.Enum):
    ENFORCED = "enforced"
    DISABLED = "disabled"


class HTTPVersionPreference(str, enum.Enum):
    AUTOMATIC = "automatic"
    HTTP1_ONLY = "http1_only"


class TransportOptions(BaseModel):
    """Per-invocation transport settings."""

    model_config = ConfigDict(frozen=True)

    timeout: Optional[float] = None
    verify: TLSVerification = TLSVerification.ENFORCED
    http_version: HTTPVersionPreference = HTTPVersionPreference.AUTOMATIC


class ResponsePayload(BaseModel):
    """One response in a redirect chain.

    ``body`` is ``None`` for an empty body, ``str`` for decoded text and
    ``bytes`` for anything that could not be decoded as text.
    """

    status: int
    reason: str = ""
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: Union[str, bytes, None] = None

    @property
    def reason_phrase(self) -> str:
        """The server's reason phrase, or the standard one for the status code."""
        if self.reason:
            return self.reason
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None
