"""Redirect-following request execution.

:class:`RedirectExecutor` sends a payload through a transport and, when
following is enabled, re-derives the request for every ``3xx`` response
that carries a ``Location`` header:

* The target is resolved against the current request URL.
* ``301``, ``302`` and ``303`` turn any method other than ``GET`` or
  ``HEAD`` into ``GET`` and drop the body. Other statuses (``307``,
  ``308``) resend the same method and body.
* ``Authorization`` is dropped when the hop leaves the original origin.
* A target that cannot be resolved ends the chain quietly.

Every response is kept, in order. Running out of the hop budget raises
:class:`~spie.exceptions.TooManyRedirectsError` carrying the responses
collected so far.
"""

from __future__ import annotations

from typing import Optional

import httpx

from spie.client.builder import build_request_head
from spie.client.transport import Transport
from spie.exceptions import TooManyRedirectsError, UnsupportedURLError
from spie.models import BodyMode, RequestPayload, ResponsePayload, TransportOptions
from spie.output import get_output

DEFAULT_MAX_REDIRECTS = 30

METHOD_CHANGING_STATUSES = frozenset({301, 302, 303})
BODYLESS_METHODS = frozenset({"GET", "HEAD"})
DEFAULT_PORTS = {"http": 80, "https": 443}


class RedirectExecutor:
    """Executes a request and its redirect chain.

    Args:
        transport: The transport used for every hop.
        follow: Follow ``3xx`` responses when ``True``.
        max_redirects: How many redirects may be followed before giving up.

    Example::

        executor = RedirectExecutor(transport, follow=True, max_redirects=5)
        responses = executor.execute(payload, TransportOptions())
        final = responses[-1]
    """

    def __init__(
        self,
        transport: Transport,
        follow: bool = False,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self._transport = transport
        self._follow = follow
        self._max_redirects = max_redirects

    def execute(
        self, payload: RequestPayload, options: TransportOptions
    ) -> list[ResponsePayload]:
        """Send *payload* and every followed hop, returning all responses.

        Raises:
            TooManyRedirectsError: The chain needs more than ``max_redirects``
                hops. The collected responses are on the exception.
            TransportError: Propagated from the transport.
        """
        output = get_output()
        responses: list[ResponsePayload] = []
        current = payload
        followed = 0

        while True:
            output.debug(f"{current.request.method} {current.request.url}")
            response = self._transport.send(current, options)
            responses.append(response)

            if not self._follow:
                return responses

            next_payload = next_hop(current, response)
            if next_payload is None:
                return responses

            if followed >= self._max_redirects:
                raise TooManyRedirectsError(self._max_redirects, responses)
            followed += 1
            output.debug(
                f"redirect {followed}/{self._max_redirects}: "
                f"{response.status} -> {next_payload.request.url}"
            )
            current = next_payload


def next_hop(
    payload: RequestPayload, response: ResponsePayload
) -> Optional[RequestPayload]:
    """Return the payload for the redirect in *response*, or ``None`` to stop."""
    if not 300 <= response.status < 400:
        return None
    location = response.header("Location")
    if not location:
        return None

    try:
        target = httpx.URL(payload.request.url).join(location.strip())
    except httpx.InvalidURL:
        return None
    if target.scheme not in DEFAULT_PORTS:
        return None

    method = payload.request.method
    downgrade = (
        response.status in METHOD_CHANGING_STATUSES and method not in BODYLESS_METHODS
    )
    if downgrade:
        method = "GET"

    try:
        head = build_request_head(method, str(target))
    except UnsupportedURLError:
        return None

    headers = list(payload.request.headers)
    if not same_origin(payload.request.url, str(target)):
        headers = [(k, v) for k, v in headers if k.lower() != "authorization"]
    head.headers = headers

    update: dict[str, object] = {"request": head}
    if downgrade:
        update.update(data=[], files=[], raw_body=None, body_mode=BodyMode.JSON)
    return payload.model_copy(update=update)


def same_origin(first: str, second: str) -> bool:
    """Compare the scheme, host, and effective port of two URLs."""
    a, b = httpx.URL(first), httpx.URL(second)
    return (
        a.scheme == b.scheme
        and a.host.lower() == b.host.lower()
        and (a.port or DEFAULT_PORTS.get(a.scheme)) == (b.port or DEFAULT_PORTS.get(b.scheme))
    )
