"""Command-line request parsing.

Turns the positional arguments (optional METHOD, URL, request items) into a
:class:`~spie.models.ParsedRequest`.

Sub-modules:

* :mod:`~spie.parser.escaping` -- backslash escape primitives.
* :mod:`~spie.parser.items` -- classifies one token as a header, data,
  query, or file-upload item.
* :mod:`~spie.parser.request` -- method inference, URL normalization, and
  query merging.
"""

from spie.parser.items import parse_item
from spie.parser.request import ParserOptions, parse_request

__all__ = ["ParserOptions", "parse_item", "parse_request"]
