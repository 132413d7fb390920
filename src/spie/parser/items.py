"""Request-item tokenizer.

Classifies one command-line token into exactly one request item:

==================  =====================================
``Name:Value``      header
``Name:``           header removal
``Name;``           header set to the empty string
``Name==Value``     query parameter
``Name=Value``      data field (text)
``Name:=JSON``      data field (JSON literal)
``Name@path``       file upload
==================  =====================================

Header and data values may load from a file (``@path``) or stdin (``@-``),
as in ``Token:@token.txt`` or ``body:=@-``. Query values never do.
A backslash escapes the next character, so ``foo\\:bar:baz`` is the header
``foo:bar`` with the value ``baz``.
"""

from __future__ import annotations

import enum
import json
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import JsonValue

from spie.exceptions import InvalidFileError, InvalidItemError, InvalidJSONError
from spie.models import DataField, FileField, HeaderField, QueryField
from spie.parser.escaping import first_unescaped, is_escaped, unescape

RequestItem = Union[HeaderField, DataField, QueryField, FileField]

STDIN_MARKER = "-"


class Separator(str, enum.Enum):
    """Key/value separators, longest first."""

    JSON = ":="
    QUERY = "=="
    HEADER = ":"
    DATA = "="


def find_separator(token: str) -> Optional[tuple[int, Separator]]:
    """Locate the first unescaped separator in *token*.

    At every position the two-character separators (``:=``, ``==``) are
    tried before the single-character ones, so ``a:=b`` is JSON data and
    never the header ``a`` with the value ``=b``.

    Returns:
        ``(index, separator)`` or ``None`` when the token has no separator.
    """
    for index, char in enumerate(token):
        if char not in ":=" or is_escaped(token, index):
            continue
        pair = token[index : index + 2]
        if pair == Separator.JSON.value:
            return index, Separator.JSON
        if pair == Separator.QUERY.value:
            return index, Separator.QUERY
        return index, Separator(char)
    return None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def parse_json_value(raw: str) -> JsonValue:
    """Parse *raw* as a single JSON document (scalars included).

    ``NaN``, ``Infinity`` and ``-Infinity`` are rejected.

    Raises:
        InvalidJSONError: If *raw* is not valid JSON after trimming whitespace.
    """
    try:
        return json.loads(raw.strip(), parse_constant=_reject_constant)
    except ValueError as exc:
        raise InvalidJSONError(raw) from exc


def parse_item(token: str) -> RequestItem:
    """Classify *token* and return the matching request item.

    Query items are returned as a :class:`QueryField` holding one value;
    :func:`~spie.parser.request.parse_request` merges them by name.

    Raises:
        InvalidItemError: The token has no unescaped separator.
        InvalidFileError: A file reference has an empty name or path.
        InvalidJSONError: A ``:=`` value is not valid JSON.
    """
    if _is_empty_header(token):
        return HeaderField.literal(unescape(token[:-1]), "")

    separator = find_separator(token)
    at = first_unescaped("@", token)
    if at is not None and (separator is None or at < separator[0]):
        return _parse_file_item(token, at)

    if separator is None:
        raise InvalidItemError(token)

    index, kind = separator
    key = unescape(token[:index])
    raw_value = token[index + len(kind.value) :]

    if kind is Separator.QUERY:
        return QueryField(name=key, values=[unescape(raw_value)])

    source = _value_source(token, raw_value)

    if kind is Separator.HEADER:
        if source is not None:
            if source == STDIN_MARKER:
                return HeaderField.from_stdin(key)
            return HeaderField.from_file(key, source)
        if not raw_value:
            return HeaderField.absent(key)
        return HeaderField.literal(key, unescape(raw_value))

    if kind is Separator.JSON:
        if source is not None:
            if source == STDIN_MARKER:
                return DataField.json_stdin(key)
            return DataField.json_file(key, source)
        return DataField.json_value(key, parse_json_value(raw_value))

    if source is not None:
        if source == STDIN_MARKER:
            return DataField.text_stdin(key)
        return DataField.text_file(key, source)
    return DataField.text(key, unescape(raw_value))


def _is_empty_header(token: str) -> bool:
    return (
        len(token) > 1
        and token.endswith(";")
        and not is_escaped(token, len(token) - 1)
    )


def _parse_file_item(token: str, at: int) -> FileField:
    name = unescape(token[:at])
    path = token[at + 1 :]
    if not name or not path:
        raise InvalidFileError(token)
    return FileField(name=name, path=Path(unescape(path)))


def _value_source(token: str, raw_value: str) -> Optional[str]:
    """Return ``"-"`` or a file path for ``@``-prefixed values, else ``None``."""
    if not raw_value.startswith("@"):
        return None
    target = raw_value[1:]
    if not target:
        raise InvalidFileError(token)
    if target == STDIN_MARKER:
        return STDIN_MARKER
    return unescape(target)
