"""Resolve ``@-`` request items and ``--raw=@-`` from standard input.

Stdin is read once, however many items refer to it, and every reference
receives the same content:

* headers take the UTF-8 text with trailing CR/LF stripped,
* text data fields take the UTF-8 text verbatim,
* JSON data fields parse the text as one JSON document,
* a raw body takes the bytes unchanged.
"""

from __future__ import annotations

from typing import Optional

from spie.exceptions import InvalidUsageError, StdinUnavailableError
from spie.input_source import InputSource
from spie.models import (
    DataField,
    DataSource,
    HeaderField,
    HeaderSource,
    ParsedRequest,
    RawBody,
    RawBodySource,
)
from spie.parser.items import parse_json_value


def stdin_references(parsed: ParsedRequest, raw_body: Optional[RawBody] = None) -> list[str]:
    """Describe every value in *parsed* and *raw_body* that reads stdin."""
    references = [
        f"header '{h.name}'"
        for h in parsed.items.headers
        if h.source is HeaderSource.STDIN
    ]
    references.extend(
        f"field '{d.name}'"
        for d in parsed.items.data
        if d.source in (DataSource.TEXT_STDIN, DataSource.JSON_STDIN)
    )
    if raw_body is not None and raw_body.source is RawBodySource.STDIN:
        references.append("--raw")
    return references


def materialize_stdin(
    parsed: ParsedRequest,
    raw_body: Optional[RawBody],
    source: InputSource,
    ignore_stdin: bool = False,
) -> tuple[ParsedRequest, Optional[RawBody]]:
    """Replace stdin-sourced values with stdin's content.

    Returns *parsed* and *raw_body* unchanged when nothing reads stdin;
    otherwise returns new copies.

    Raises:
        StdinUnavailableError: A value reads stdin but *ignore_stdin* is set
            or stdin is an interactive terminal.
        InvalidUsageError: Stdin is needed as text but is not valid UTF-8.
        InvalidJSONError: A ``:=@-`` field receives invalid JSON.
    """
    references = stdin_references(parsed, raw_body)
    if not references:
        return parsed, raw_body
    if ignore_stdin:
        raise StdinUnavailableError(references[0], "stdin is disabled by --ignore-stdin")
    if source.is_interactive:
        raise StdinUnavailableError(references[0], "stdin is a terminal, not piped input")

    data = source.read_all_data()
    text_cache: list[str] = []

    def text() -> str:
        if not text_cache:
            try:
                text_cache.append(data.decode("utf-8"))
            except UnicodeDecodeError as exc:
                raise InvalidUsageError("stdin is not valid UTF-8 text") from exc
        return text_cache[0]

    headers = [
        HeaderField.literal(h.name, text().rstrip("\r\n"))
        if h.source is HeaderSource.STDIN
        else h
        for h in parsed.items.headers
    ]

    fields: list[DataField] = []
    for field in parsed.items.data:
        if field.source is DataSource.TEXT_STDIN:
            field = DataField.text(field.name, text())
        elif field.source is DataSource.JSON_STDIN:
            field = DataField.json_value(field.name, parse_json_value(text()))
        fields.append(field)

    if raw_body is not None and raw_body.source is RawBodySource.STDIN:
        raw_body = RawBody.from_bytes(data)

    items = parsed.items.model_copy(update={"headers": headers, "data": fields})
    return parsed.model_copy(update={"items": items}), raw_body
