"""Tests for the httpx and in-process transports and the registry."""

from __future__ import annotations

import json

import httpx
import pytest

from spie.client.transport import (
    USER_AGENT,
    HttpxTransport,
    PeerRequest,
    PeerTransport,
    TransportDescriptor,
    TransportRegistry,
    decode_body,
    is_textual,
    standard_registry,
)
from spie.exceptions import InternalFailure, InvalidUsageError, NetworkError
from spie.models import (
    BodyMode,
    DataField,
    HTTPVersionPreference,
    RequestHead,
    RequestPayload,
    ResponsePayload,
    TransportOptions,
)


def _payload(
    method: str = "GET",
    path: str = "/get",
    headers: list[tuple[str, str]] | None = None,
    **kwargs: object,
) -> RequestPayload:
    head = RequestHead(
        method=method, scheme="http", authority="example.org", path=path, headers=headers or []
    )
    return RequestPayload(request=head, **kwargs)


class _Recorder:
    """httpx.MockTransport handler that keeps the last request."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


# ---------------------------------------------------------------------------
# HttpxTransport
# ---------------------------------------------------------------------------


class TestHttpxTransport:
    def test_sends_default_headers(self) -> None:
        recorder = _Recorder(httpx.Response(200, text="ok"))
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            transport.send(_payload(), TransportOptions())
        request = recorder.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "http://example.org/get"
        assert request.headers["User-Agent"] == USER_AGENT
        assert request.headers["Accept"] == "*/*"
        assert request.headers["Accept-Encoding"] == "gzip, deflate"

    def test_removed_header_is_not_sent(self) -> None:
        recorder = _Recorder(httpx.Response(204))
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            transport.send(_payload(header_removals=["User-Agent"]), TransportOptions())
        assert "User-Agent" not in recorder.requests[0].headers

    def test_user_header_overrides_default(self) -> None:
        recorder = _Recorder(httpx.Response(204))
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            transport.send(_payload(headers=[("Accept", "text/html")]), TransportOptions())
        assert recorder.requests[0].headers.get_list("Accept") == ["text/html"]

    def test_json_body(self) -> None:
        recorder = _Recorder(httpx.Response(200, json={"ok": True}))
        payload = _payload(method="POST", path="/post", data=[DataField.text("a", "1")])
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            transport.send(payload, TransportOptions())
        request = recorder.requests[0]
        assert request.content == b'{"a":"1"}'
        assert request.headers["Content-Type"] == "application/json"

    def test_http1_only_sends_connection_close(self) -> None:
        recorder = _Recorder(httpx.Response(204))
        options = TransportOptions(http_version=HTTPVersionPreference.HTTP1_ONLY)
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            transport.send(_payload(), options)
        assert recorder.requests[0].headers["Connection"] == "close"

    def test_response_payload(self) -> None:
        recorder = _Recorder(
            httpx.Response(
                201,
                headers=[("X-Id", "1"), ("Content-Type", "application/json")],
                content=json.dumps({"id": 1}).encode(),
            )
        )
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            response = transport.send(_payload(), TransportOptions())
        assert response.status == 201
        assert response.reason == "Created"
        assert ("X-Id", "1") in response.headers
        assert response.body == '{"id": 1}'

    def test_empty_body_is_none(self) -> None:
        recorder = _Recorder(httpx.Response(204))
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            assert transport.send(_payload(), TransportOptions()).body is None

    def test_redirects_are_not_followed(self) -> None:
        recorder = _Recorder(httpx.Response(302, headers={"Location": "/elsewhere"}))
        with HttpxTransport(httpx.MockTransport(recorder)) as transport:
            response = transport.send(_payload(), TransportOptions())
        assert response.status == 302
        assert len(recorder.requests) == 1

    def test_connect_error_is_network_error(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with HttpxTransport(httpx.MockTransport(fail)) as transport:
            with pytest.raises(NetworkError, match="connection refused"):
                transport.send(_payload(), TransportOptions())

    def test_timeout_is_network_error(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with HttpxTransport(httpx.MockTransport(fail)) as transport:
            with pytest.raises(NetworkError):
                transport.send(_payload(), TransportOptions(timeout=0.5))

    def test_protocol_error_is_internal_failure(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("bad framing", request=request)

        with HttpxTransport(httpx.MockTransport(fail)) as transport:
            with pytest.raises(InternalFailure):
                transport.send(_payload(), TransportOptions())


# ---------------------------------------------------------------------------
# Body decoding
# ---------------------------------------------------------------------------


class TestDecodeBody:
    def test_declared_charset(self) -> None:
        response = httpx.Response(
            200, headers={"Content-Type": "text/plain; charset=latin-1"}, content="é".encode("latin-1")
        )
        assert decode_body(response) == "é"

    def test_json_is_text(self) -> None:
        response = httpx.Response(
            200, headers={"Content-Type": "application/json"}, content=b"[1]"
        )
        assert decode_body(response) == "[1]"

    def test_binary_stays_bytes(self) -> None:
        response = httpx.Response(
            200, headers={"Content-Type": "image/png"}, content=b"\x89PNG"
        )
        assert decode_body(response) == b"\x89PNG"

    def test_textual_falls_back_to_latin1(self) -> None:
        response = httpx.Response(200, headers={"Content-Type": "text/plain"}, content=b"\xe9")
        assert decode_body(response) == "é"

    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            (None, True),
            ("text/html; charset=utf-8", True),
            ("application/problem+json", True),
            ("application/atom+xml", True),
            ("application/octet-stream", False),
        ],
    )
    def test_is_textual(self, content_type: str | None, expected: bool) -> None:
        assert is_textual(content_type) is expected


# ---------------------------------------------------------------------------
# PeerTransport
# ---------------------------------------------------------------------------


class TestPeerTransport:
    def test_passes_encoded_request(self) -> None:
        seen: list[PeerRequest] = []

        def respond(request: PeerRequest) -> ResponsePayload:
            seen.append(request)
            return ResponsePayload(status=200, body="pong")

        payload = _payload(
            method="POST",
            path="/form",
            data=[DataField.text("a", "b c")],
            body_mode=BodyMode.FORM,
        )
        response = PeerTransport(respond).send(payload, TransportOptions(timeout=2))

        assert response.body == "pong"
        request = seen[0]
        assert request.method == "POST"
        assert request.url == "http://example.org/form"
        assert request.text() == "a=b%20c"
        assert request.header("content-type") == "application/x-www-form-urlencoded; charset=utf-8"
        assert request.header("User-Agent") is None
        assert request.options.timeout == 2

    def test_responder_exceptions_become_internal_failure(self) -> None:
        def respond(request: PeerRequest) -> ResponsePayload:
            raise RuntimeError("boom")

        with pytest.raises(InternalFailure, match="boom"):
            PeerTransport(respond).send(_payload(), TransportOptions())

    def test_transport_errors_propagate(self) -> None:
        def respond(request: PeerRequest) -> ResponsePayload:
            raise NetworkError("unreachable")

        with pytest.raises(NetworkError, match="unreachable"):
            PeerTransport(respond).send(_payload(), TransportOptions())


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestTransportRegistry:
    def test_standard_registry(self) -> None:
        registry = standard_registry()
        assert registry.list_ids() == ["httpx"]
        assert isinstance(registry.create("httpx"), HttpxTransport)

    def test_register_custom(self) -> None:
        registry = TransportRegistry()
        peer = PeerTransport(lambda request: ResponsePayload(status=200))
        registry.register(TransportDescriptor(id="peer", label="Peer", factory=lambda: peer))
        assert registry.create("peer") is peer

    def test_unknown_transport(self) -> None:
        with pytest.raises(InvalidUsageError, match="invalid transport 'nope' \\(available: httpx\\)"):
            standard_registry().create("nope")
