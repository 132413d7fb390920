"""Request parser: METHOD, URL, and request items into a :class:`ParsedRequest`.

Parsing proceeds in three steps:

1. **Method** -- the first argument is taken as the method when it is an
   RFC 7230 token that is either spelled with an uppercase letter (custom
   verbs like ``PURGE`` are allowed) or is a standard method in any case.
2. **URL** -- the next argument is normalized (localhost shorthand, base
   URL, default scheme) and parsed with :class:`httpx.URL`.
3. **Items** -- every remaining argument goes through
   :func:`~spie.parser.items.parse_item`. Query items are merged by name
   after the URL's own parameters and the URL is rebuilt from the result.

Without an explicit method, the request is ``POST`` when it carries data or
file items and ``GET`` otherwise.
"""

from __future__ import annotations

import re
from typing import Literal, Optional, Sequence

import httpx
from pydantic import BaseModel, ConfigDict

from spie.exceptions import InvalidURLError, MissingURLError
from spie.models import (
    DataField,
    FileField,
    HeaderField,
    ParsedRequest,
    QueryField,
    RequestItems,
)
from spie.parser.items import parse_item

STANDARD_METHODS = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE", "CONNECT"}
)

TOKEN_PATTERN = re.compile(r"[A-Za-z0-9!#$%&'*+\-.^_`|~]+")


class ParserOptions(BaseModel):
    """URL normalization settings.

    Attributes:
        default_scheme: Scheme prefixed to URLs written without one.
        base_url: Base that ``/path`` URL arguments are resolved against.
    """

    model_config = ConfigDict(frozen=True)

    default_scheme: Literal["http", "https"] = "http"
    base_url: Optional[str] = None


def parse_method(token: str) -> Optional[str]:
    """Return the upper-cased method when *token* names one, else ``None``."""
    candidate = token.strip()
    if not candidate or not TOKEN_PATTERN.fullmatch(candidate):
        return None
    upper = candidate.upper()
    if any(char.isupper() for char in candidate) or upper in STANDARD_METHODS:
        return upper
    return None


def normalize_url(token: str, options: ParserOptions) -> str:
    """Expand localhost shorthand, resolve ``/path`` against the base URL, or add the scheme.

    Example::

        >>> normalize_url(":3000/api", ParserOptions())
        'http://localhost:3000/api'
        >>> normalize_url("example.org", ParserOptions(default_scheme="https"))
        'https://example.org'

    Raises:
        InvalidURLError: If the configured base URL cannot be parsed.
    """
    prefix = f"{options.default_scheme}://"

    if token.startswith(":"):
        rest = token[1:]
        if rest.startswith(":"):
            return prefix + token
        if not rest:
            return prefix + "localhost"
        if rest.startswith("/"):
            return prefix + "localhost" + rest
        return prefix + "localhost:" + rest

    if "://" in token:
        return token

    if token.startswith("/") and options.base_url:
        try:
            return str(httpx.URL(options.base_url).join(token))
        except httpx.InvalidURL as exc:
            raise InvalidURLError(options.base_url) from exc

    return prefix + token


def parse_request(
    arguments: Sequence[str], options: Optional[ParserOptions] = None
) -> ParsedRequest:
    """Parse positional CLI arguments into a :class:`ParsedRequest`.

    Args:
        arguments: ``[METHOD] URL [ITEM ...]``.
        options: URL normalization settings; defaults to plain ``http``.

    Returns:
        The parsed request, with query items merged into ``url``.

    Raises:
        MissingURLError: No URL argument was given.
        InvalidURLError: The URL cannot be parsed.
        InvalidItemError: An item has no recognised separator.
        InvalidFileError: A file reference has an empty name or path.
        InvalidJSONError: A ``:=`` value is not valid JSON.
    """
    options = options or ParserOptions()
    remaining = list(arguments)

    method = parse_method(remaining[0]) if remaining else None
    if method is not None:
        remaining.pop(0)

    if not remaining:
        raise MissingURLError()
    raw_url = remaining.pop(0)

    try:
        url = httpx.URL(normalize_url(raw_url, options))
    except httpx.InvalidURL as exc:
        raise InvalidURLError(raw_url) from exc

    query: list[QueryField] = []
    for name, value in url.params.multi_items():
        _merge_query(query, name, value)

    headers: list[HeaderField] = []
    data: list[DataField] = []
    files: list[FileField] = []
    for token in remaining:
        item = parse_item(token)
        if isinstance(item, HeaderField):
            headers.append(item)
        elif isinstance(item, DataField):
            data.append(item)
        elif isinstance(item, FileField):
            files.append(item)
        else:
            for value in item.values:
                _merge_query(query, item.name, value)

    if query:
        pairs = [(field.name, value) for field in query for value in field.values]
        try:
            url = url.copy_with(params=httpx.QueryParams(pairs))
        except httpx.InvalidURL as exc:
            raise InvalidURLError(raw_url) from exc

    if method is None:
        method = "POST" if data or files else "GET"

    return ParsedRequest(
        method=method,
        url=str(url),
        items=RequestItems(headers=headers, data=data, query=query, files=files),
    )


def _merge_query(fields: list[QueryField], name: str, value: str) -> None:
    for field in fields:
        if field.name == name:
            field.values.append(value)
            return
    fields.append(QueryField(name=name, values=[value]))
