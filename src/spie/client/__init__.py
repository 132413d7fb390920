"""Request execution: payload building, body encoding, transports, redirects.

Pipeline::

    ParsedRequest --build_payload--> RequestPayload
        --RedirectExecutor(transport).execute--> [ResponsePayload, ...]

Sub-modules:

* :mod:`~spie.client.builder` -- resolves a parsed request into a payload.
* :mod:`~spie.client.encoding` -- JSON, form, multipart, and raw bodies,
  plus the default-header policy.
* :mod:`~spie.client.transport` -- the ``httpx`` and in-process transports
  and their registry.
* :mod:`~spie.client.redirects` -- the redirect state machine.
* :mod:`~spie.client.response` -- rendering and ``--check-status``.
"""

from spie.client.builder import build_payload
from spie.client.encoding import EncodedBody, encode_body, should_apply_default_header
from spie.client.redirects import RedirectExecutor
from spie.client.transport import (
    HttpxTransport,
    PeerRequest,
    PeerTransport,
    Transport,
    TransportDescriptor,
    TransportRegistry,
    standard_registry,
)

__all__ = [
    "EncodedBody",
    "HttpxTransport",
    "PeerRequest",
    "PeerTransport",
    "RedirectExecutor",
    "Transport",
    "TransportDescriptor",
    "TransportRegistry",
    "build_payload",
    "encode_body",
    "should_apply_default_header",
    "standard_registry",
]
