"""Body encoding and default-header policy.

:func:`encode_body` turns a :class:`~spie.models.RequestPayload` into one
wire body:

======================  ====================================================
raw mode                the raw body bytes, no content type
files present           ``multipart/form-data`` with a random boundary
JSON mode / JSON field  one sorted, compact JSON object (``application/json``)
form mode, all text     ``application/x-www-form-urlencoded; charset=utf-8``
nothing to send         no body
======================  ====================================================

Transports call :func:`request_headers` to combine the user's headers with
the content type and their own defaults. A default is only added when the
user neither supplied nor removed that header.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Optional, Sequence
from urllib.parse import quote

from pydantic import BaseModel

from spie.exceptions import InternalFailure
from spie.models import (
    BodyMode,
    DataField,
    HTTPVersionPreference,
    RawBodySource,
    RequestPayload,
    TransportOptions,
)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
FILE_PART_CONTENT_TYPE = "application/octet-stream"


class EncodedBody(BaseModel):
    """A serialized request body and the content type that describes it."""

    data: bytes
    content_type: Optional[str] = None


def encode_body(payload: RequestPayload) -> Optional[EncodedBody]:
    """Serialize the body of *payload*, or return ``None`` when there is none.

    Raises:
        InternalFailure: A file part cannot be read, or the raw body was not
            resolved to text or bytes.
    """
    if payload.body_mode is BodyMode.RAW:
        return _encode_raw(payload)

    if not payload.data and not payload.files:
        return None

    if payload.files:
        return _encode_multipart(payload)

    if payload.body_mode is BodyMode.JSON or any(f.is_json for f in payload.data):
        return _encode_json(payload.data)

    return _encode_form(payload.data)


def should_apply_default_header(name: str, payload: RequestPayload) -> bool:
    """Return ``False`` when the user supplied or removed header *name*."""
    lowered = name.lower()
    if any(removed.lower() == lowered for removed in payload.header_removals):
        return False
    return not payload.request.has_header(name)


def request_headers(
    payload: RequestPayload,
    options: TransportOptions,
    body: Optional[EncodedBody],
    defaults: Sequence[tuple[str, str]] = (),
) -> list[tuple[str, str]]:
    """Return the header fields to send for *payload*.

    The user's headers come first, in order. The body's content type,
    ``Connection: close`` for HTTP/1.1-only mode, and the transport's
    *defaults* follow, each subject to :func:`should_apply_default_header`.
    """
    headers = list(payload.request.headers)
    extras: list[tuple[str, str]] = []
    if body is not None and body.content_type:
        extras.append(("Content-Type", body.content_type))
    if options.http_version is HTTPVersionPreference.HTTP1_ONLY:
        extras.append(("Connection", "close"))
    extras.extend(defaults)

    for name, value in extras:
        if should_apply_default_header(name, payload):
            headers.append((name, value))
    return headers


def dump_json(value: Any) -> str:
    """Serialize *value* as compact JSON with sorted keys."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
    )


# --- encoders ---


def _encode_raw(payload: RequestPayload) -> Optional[EncodedBody]:
    raw = payload.raw_body
    if raw is None:
        return None
    if raw.source is RawBodySource.INLINE:
        return EncodedBody(data=(raw.text or "").encode("utf-8"))
    if raw.source is RawBodySource.DATA:
        return EncodedBody(data=raw.data or b"")
    raise InternalFailure(f"raw body from {raw.source.value} was not resolved")


def _encode_json(fields: list[DataField]) -> EncodedBody:
    document: dict[str, Any] = {}
    for field in fields:
        if field.name not in document:
            document[field.name] = field.value
            continue
        existing = document[field.name]
        if isinstance(existing, list):
            document[field.name] = [*existing, field.value]
        else:
            document[field.name] = [existing, field.value]
    return EncodedBody(
        data=dump_json(document).encode("utf-8"), content_type=JSON_CONTENT_TYPE
    )


def _encode_form(fields: list[DataField]) -> EncodedBody:
    pairs = [
        f"{quote(field.name, safe='')}={quote(_field_text(field), safe='')}"
        for field in fields
    ]
    return EncodedBody(data="&".join(pairs).encode("utf-8"), content_type=FORM_CONTENT_TYPE)


def _encode_multipart(payload: RequestPayload) -> EncodedBody:
    boundary = f"boundary-{uuid.uuid4()}"
    chunks: list[bytes] = []

    for field in payload.data:
        chunks.append(f"--{boundary}\r\n".encode("utf-8"))
        chunks.append(
            "Content-Disposition: form-data; "
            f'name="{_escape_part_name(field.name)}"\r\n\r\n'.encode("utf-8")
        )
        chunks.append(_field_text(field).encode("utf-8"))
        chunks.append(b"\r\n")

    for upload in payload.files:
        try:
            content = upload.path.read_bytes()
        except OSError as exc:
            reason = exc.strerror or str(exc)
            raise InternalFailure(f"failed to read file '{upload.path}': {reason}") from exc
        chunks.append(f"--{boundary}\r\n".encode("utf-8"))
        chunks.append(
            "Content-Disposition: form-data; "
            f'name="{_escape_part_name(upload.name)}"; '
            f'filename="{_escape_part_name(upload.path.name)}"\r\n'
            f"Content-Type: {FILE_PART_CONTENT_TYPE}\r\n\r\n".encode("utf-8")
        )
        chunks.append(content)
        chunks.append(b"\r\n")

    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return EncodedBody(
        data=b"".join(chunks),
        content_type=f"{MULTIPART_CONTENT_TYPE}; boundary={boundary}",
    )


def _field_text(field: DataField) -> str:
    if field.is_json:
        return dump_json(field.value)
    return str(field.value)


def _escape_part_name(name: str) -> str:
    return name.replace('"', "%22").replace("\r", " ").replace("\n", " ")
