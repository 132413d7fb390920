"""Transports: the single blocking seam between spie and the network.

A :class:`Transport` sends one :class:`~spie.models.RequestPayload` and
returns one :class:`~spie.models.ResponsePayload`. Redirects are never
followed here; :mod:`spie.client.redirects` owns that.

Implementations:

* :class:`HttpxTransport` -- real HTTP/1.1 over :class:`httpx.Client`.
* :class:`PeerTransport` -- hands the encoded request to an in-process
  responder callable instead of the network.

:class:`TransportRegistry` maps the ``--transport`` identifiers to factories.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from spie import __version__
from spie.client.encoding import encode_body, request_headers
from spie.exceptions import InternalFailure, InvalidUsageError, NetworkError, TransportError
from spie.models import (
    RequestPayload,
    ResponsePayload,
    TLSVerification,
    TransportOptions,
)

USER_AGENT = f"spie/{__version__}"

DEFAULT_HEADERS: tuple[tuple[str, str], ...] = (
    ("User-Agent", USER_AGENT),
    ("Accept", "*/*"),
    ("Accept-Encoding", "gzip, deflate"),
)

TEXTUAL_MIME_TYPES = frozenset(
    {"application/json", "application/xml", "application/x-www-form-urlencoded"}
)


class Transport(ABC):
    """Sends a single request and returns a single response.

    Transports may hold resources; use them as context managers so that
    :meth:`close` runs after the last hop.
    """

    @abstractmethod
    def send(self, payload: RequestPayload, options: TransportOptions) -> ResponsePayload:
        """Send *payload* and return the response.

        Raises:
            NetworkError: Connectivity problems, including timeouts.
            InternalFailure: Encoding failures and protocol violations.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the transport."""

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


# ------------------------------------------------------------------ #
# httpx
# ------------------------------------------------------------------ #


class HttpxTransport(Transport):
    """Transport backed by :class:`httpx.Client`.

    The client is created on the first :meth:`send` using that call's TLS
    setting, with redirects disabled. Requests are built directly as
    :class:`httpx.Request` objects so that none of the client's own default
    headers leak into a request where the user removed them.

    Args:
        transport: Optional :class:`httpx.BaseTransport` handed to the client,
            for example an :class:`httpx.MockTransport` in tests.

    Example::

        with HttpxTransport() as transport:
            response = transport.send(payload, TransportOptions(timeout=5))
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def send(self, payload: RequestPayload, options: TransportOptions) -> ResponsePayload:
        body = encode_body(payload)
        headers = request_headers(payload, options, body, DEFAULT_HEADERS)

        try:
            request = httpx.Request(
                payload.request.method,
                payload.request.url,
                headers=headers,
                content=body.data if body is not None else None,
                extensions={"timeout": httpx.Timeout(options.timeout).as_dict()},
            )
            response = self._get_client(options).send(request)
            response.read()
        except (httpx.TimeoutException, httpx.NetworkError, httpx.ProxyError) as exc:
            raise NetworkError(_describe(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise InternalFailure(_describe(exc)) from exc

        return ResponsePayload(
            status=response.status_code,
            reason=response.reason_phrase,
            headers=[
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in response.headers.raw
            ],
            body=decode_body(response),
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _get_client(self, options: TransportOptions) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                verify=options.verify is TLSVerification.ENFORCED,
                follow_redirects=False,
                http1=True,
                http2=False,
                transport=self._transport,
            )
        return self._client


def decode_body(response: httpx.Response) -> str | bytes | None:
    """Decode *response* content to text when it is textual, else keep bytes.

    A declared charset wins. Without one, textual MIME types (and responses
    without a content type) are decoded as UTF-8, falling back to Latin-1.
    """
    content = response.content
    if not content:
        return None

    charset = response.charset_encoding
    if charset:
        try:
            return content.decode(charset)
        except (LookupError, UnicodeDecodeError):
            return content

    if not is_textual(response.headers.get("content-type")):
        return content
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def is_textual(content_type: Optional[str]) -> bool:
    if not content_type:
        return True
    mime = content_type.split(";", 1)[0].strip().lower()
    return (
        mime.startswith("text/")
        or mime in TEXTUAL_MIME_TYPES
        or mime.endswith("+json")
        or mime.endswith("+xml")
    )


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


# ------------------------------------------------------------------ #
# In-process peer
# ------------------------------------------------------------------ #


class PeerRequest(BaseModel):
    """The fully encoded request handed to a peer responder."""

    method: str
    url: str
    headers: list[tuple[str, str]]
    body: Optional[bytes] = None
    options: TransportOptions

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def text(self) -> Optional[str]:
        """Return the body decoded as UTF-8, or ``None`` without a body."""
        return self.body.decode("utf-8") if self.body is not None else None


PeerResponder = Callable[[PeerRequest], ResponsePayload]


class PeerTransport(Transport):
    """Transport that answers requests with an in-process *responder*.

    The body is encoded exactly as for the network, and the content type and
    ``Connection: close`` defaults are applied the same way. No other default
    headers are added.

    Args:
        responder: Callable receiving a :class:`PeerRequest` and returning a
            :class:`~spie.models.ResponsePayload`.
    """

    def __init__(self, responder: PeerResponder) -> None:
        self._responder = responder

    def send(self, payload: RequestPayload, options: TransportOptions) -> ResponsePayload:
        body = encode_body(payload)
        request = PeerRequest(
            method=payload.request.method,
            url=payload.request.url,
            headers=request_headers(payload, options, body),
            body=body.data if body is not None else None,
            options=options,
        )
        try:
            return self._responder(request)
        except TransportError:
            raise
        except Exception as exc:
            raise InternalFailure(_describe(exc)) from exc


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #


class TransportDescriptor(BaseModel):
    """A named transport factory selectable with ``--transport``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    label: str
    factory: Callable[[], Any]

    def create(self) -> Transport:
        return self.factory()


class TransportRegistry:
    """Registry of transports keyed by identifier.

    Example::

        registry = standard_registry()
        registry.register(TransportDescriptor(
            id="peer", label="In-process peer", factory=lambda: PeerTransport(respond),
        ))
        transport = registry.create("peer")
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, TransportDescriptor] = {}

    def register(self, descriptor: TransportDescriptor) -> None:
        """Register *descriptor*, replacing any entry with the same id."""
        self._descriptors[descriptor.id] = descriptor

    def get(self, transport_id: str) -> Optional[TransportDescriptor]:
        return self._descriptors.get(transport_id)

    def list_ids(self) -> list[str]:
        return sorted(self._descriptors)

    def create(self, transport_id: str) -> Transport:
        """Instantiate the transport registered as *transport_id*.

        Raises:
            InvalidUsageError: If no transport has that id.
        """
        descriptor = self.get(transport_id)
        if descriptor is None:
            available = ", ".join(self.list_ids())
            raise InvalidUsageError(
                f"invalid transport '{transport_id}' (available: {available})"
            )
        return descriptor.create()


def standard_registry() -> TransportRegistry:
    """Return a registry containing the ``httpx`` transport."""
    registry = TransportRegistry()
    registry.register(
        TransportDescriptor(id="httpx", label="httpx (HTTP/1.1)", factory=HttpxTransport)
    )
    return registry
