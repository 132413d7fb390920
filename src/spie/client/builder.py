"""Resolve a :class:`ParsedRequest` into a transport-ready :class:`RequestPayload`.

The builder validates the method and URL, splits the target into scheme,
authority, and path, reads ``@path`` header and data values from disk, and
enforces the body-mode rules:

* ``--form`` does not accept JSON fields.
* File uploads need ``--form``.
* ``--raw`` needs a body and does not mix with data or file items.

Stdin-sourced values must be resolved beforehand by
:func:`~spie.stdin.materialize_stdin`; reaching the builder with one raises
:class:`~spie.exceptions.StdinUnavailableError`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import httpx

from spie.exceptions import (
    FileReadError,
    FileUploadRequiresFormError,
    InvalidHeaderNameError,
    InvalidMethodError,
    JSONNotAllowedInFormError,
    MissingRawBodyError,
    RawBodyConflictError,
    StdinUnavailableError,
    UnsupportedURLError,
)
from spie.models import (
    BodyMode,
    DataField,
    DataSource,
    HeaderSource,
    ParsedRequest,
    RawBody,
    RawBodySource,
    RequestHead,
    RequestPayload,
)
from spie.parser.items import parse_json_value
from spie.parser.request import TOKEN_PATTERN


def build_payload(
    parsed: ParsedRequest,
    body_mode: BodyMode = BodyMode.JSON,
    raw_body: Optional[RawBody] = None,
) -> RequestPayload:
    """Build the outgoing payload for *parsed*.

    Args:
        parsed: Output of :func:`~spie.parser.request.parse_request`, with
            stdin values already materialized.
        body_mode: How data items are encoded.
        raw_body: The ``--raw`` body, required when *body_mode* is ``RAW``.

    Returns:
        A :class:`RequestPayload` whose raw body, if any, is inline text or bytes.

    Raises:
        RequestBuildError: For any of the validation failures listed in
            :mod:`spie.exceptions`.
    """
    method = parsed.method
    if not TOKEN_PATTERN.fullmatch(method):
        raise InvalidMethodError(method)

    head = build_request_head(method, parsed.url)

    removals: list[str] = []
    for header in parsed.items.headers:
        if not TOKEN_PATTERN.fullmatch(header.name):
            raise InvalidHeaderNameError(header.name)
        if header.source is HeaderSource.LITERAL:
            head.headers.append((header.name, header.value or ""))
        elif header.source is HeaderSource.ABSENT:
            removals.append(header.name)
        elif header.source is HeaderSource.FILE:
            value = _read_text(header.path, f"header '{header.name}'")
            head.headers.append((header.name, value))
        else:
            raise StdinUnavailableError(f"header '{header.name}'")

    data = [_resolve_field(field) for field in parsed.items.data]
    files = list(parsed.items.files)

    if body_mode is BodyMode.FORM:
        for field in data:
            if field.is_json:
                raise JSONNotAllowedInFormError(field.name)

    if files and body_mode is BodyMode.JSON:
        raise FileUploadRequiresFormError()

    if body_mode is BodyMode.RAW:
        if raw_body is None:
            raise MissingRawBodyError()
        if data or files:
            raise RawBodyConflictError()
        raw_body = _resolve_raw_body(raw_body)

    return RequestPayload(
        request=head,
        data=data,
        files=files,
        header_removals=removals,
        body_mode=body_mode,
        raw_body=raw_body,
    )


def build_request_head(method: str, url: str) -> RequestHead:
    """Split *url* into the scheme, authority, and path of a request head.

    The authority brackets IPv6 hosts, keeps ``user[:password]@`` userinfo,
    and carries the port only when it is not the scheme's default. The path
    defaults to ``/`` and includes the query string.

    Raises:
        UnsupportedURLError: If the URL has no scheme or host.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise UnsupportedURLError(url) from exc
    if not parsed.scheme or not parsed.host:
        raise UnsupportedURLError(url)

    host = parsed.host
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if parsed.port is not None:
        host = f"{host}:{parsed.port}"
    if parsed.username:
        credentials = parsed.username
        if parsed.password:
            credentials = f"{credentials}:{parsed.password}"
        host = f"{credentials}@{host}"

    path = parsed.raw_path.decode("ascii")
    if not path.startswith("/"):
        path = "/" + path

    return RequestHead(method=method, scheme=parsed.scheme, authority=host, path=path)


def _resolve_field(field: DataField) -> DataField:
    if field.source in (DataSource.TEXT, DataSource.JSON):
        return field
    if field.source is DataSource.TEXT_FILE:
        return DataField.text(field.name, _read_text(field.path, f"field '{field.name}'"))
    if field.source is DataSource.JSON_FILE:
        text = _read_text(field.path, f"field '{field.name}'")
        return DataField.json_value(field.name, parse_json_value(text))
    raise StdinUnavailableError(f"field '{field.name}'")


def _resolve_raw_body(raw_body: RawBody) -> RawBody:
    if raw_body.source is RawBodySource.FILE:
        assert raw_body.path is not None
        try:
            return RawBody.from_bytes(raw_body.path.read_bytes())
        except OSError as exc:
            raise FileReadError(
                raw_body.path, f"failed to read raw body: {_describe(exc)}"
            ) from exc
    if raw_body.source is RawBodySource.STDIN:
        raise StdinUnavailableError("--raw")
    return raw_body


def _read_text(path: Optional[Path], description: str) -> str:
    assert path is not None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(path, f"failed to read {description}: {_describe(exc)}") from exc


def _describe(exc: Exception) -> str:
    return getattr(exc, "strerror", None) or str(exc)
