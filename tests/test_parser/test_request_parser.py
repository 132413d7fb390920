"""Tests for METHOD/URL/item parsing (spie.parser.request)."""

from __future__ import annotations

from pathlib import Path

import pytest

from spie.exceptions import InvalidItemError, InvalidURLError, MissingURLError
from spie.models import DataField, FileField, HeaderField, QueryField
from spie.parser.request import ParserOptions, normalize_url, parse_method, parse_request


# ---------------------------------------------------------------------------
# Method detection
# ---------------------------------------------------------------------------


class TestParseMethod:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("GET", "GET"),
            ("get", "GET"),
            ("Delete", "DELETE"),
            ("PURGE", "PURGE"),
            (" post ", "POST"),
        ],
    )
    def test_methods(self, token: str, expected: str) -> None:
        assert parse_method(token) == expected

    @pytest.mark.parametrize("token", ["purge", "example.org", ":3000", "GE T", ""])
    def test_not_a_method(self, token: str) -> None:
        assert parse_method(token) is None


# ---------------------------------------------------------------------------
# URL normalization
# ---------------------------------------------------------------------------


class TestNormalizeURL:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            (":", "http://localhost"),
            (":3000", "http://localhost:3000"),
            (":3000/api", "http://localhost:3000/api"),
            (":/api", "http://localhost/api"),
            ("example.org/get", "http://example.org/get"),
            ("https://example.org/get", "https://example.org/get"),
            ("ftp://example.org/file", "ftp://example.org/file"),
        ],
    )
    def test_default_options(self, token: str, expected: str) -> None:
        assert normalize_url(token, ParserOptions()) == expected

    def test_default_scheme(self) -> None:
        options = ParserOptions(default_scheme="https")
        assert normalize_url("example.org/x", options) == "https://example.org/x"
        assert normalize_url(":8443/x", options) == "https://localhost:8443/x"

    def test_base_url(self) -> None:
        options = ParserOptions(base_url="https://api.example.com/v1/")
        assert normalize_url("/users", options) == "https://api.example.com/users"

    def test_base_url_does_not_apply_to_hosts(self) -> None:
        options = ParserOptions(base_url="https://api.example.com/v1/")
        assert normalize_url("other.org/x", options) == "http://other.org/x"


# ---------------------------------------------------------------------------
# parse_request
# ---------------------------------------------------------------------------


class TestParseRequest:
    def test_get_by_default(self) -> None:
        parsed = parse_request(["example.org/get"])
        assert parsed.method == "GET"
        assert parsed.url == "http://example.org/get"

    def test_explicit_method(self) -> None:
        parsed = parse_request(["PUT", "example.org/put", "a=1"])
        assert parsed.method == "PUT"

    def test_data_implies_post(self) -> None:
        parsed = parse_request(["example.org/post", "name=John"])
        assert parsed.method == "POST"
        assert parsed.items.data == [DataField.text("name", "John")]

    def test_file_implies_post(self) -> None:
        parsed = parse_request(["example.org/upload", "f@a.txt"])
        assert parsed.method == "POST"
        assert parsed.items.files == [FileField(name="f", path=Path("a.txt"))]

    def test_headers_and_query_keep_get(self) -> None:
        parsed = parse_request(["example.org/get", "X-A:1", "q==x"])
        assert parsed.method == "GET"
        assert parsed.items.headers == [HeaderField.literal("X-A", "1")]

    def test_items_keep_order_and_duplicates(self) -> None:
        parsed = parse_request(["example.org/post", "a=1", "b:=2", "a=3"])
        assert [f.name for f in parsed.items.data] == ["a", "b", "a"]

    def test_query_merged_after_url_params(self) -> None:
        parsed = parse_request(["example.org/get?a=1", "b==2", "a==3"])
        assert parsed.items.query == [
            QueryField(name="a", values=["1", "3"]),
            QueryField(name="b", values=["2"]),
        ]
        assert parsed.url == "http://example.org/get?a=1&a=3&b=2"

    def test_url_without_query_items_is_unchanged(self) -> None:
        parsed = parse_request(["example.org/get?z=1&a=2"])
        assert parsed.url == "http://example.org/get?z=1&a=2"

    def test_localhost_shorthand(self) -> None:
        parsed = parse_request([":8080/status"])
        assert parsed.url == "http://localhost:8080/status"

    def test_options(self) -> None:
        options = ParserOptions(default_scheme="https")
        assert parse_request(["example.org/x"], options).url == "https://example.org/x"

    def test_lowercase_custom_word_is_url(self) -> None:
        with pytest.raises(InvalidItemError):
            parse_request(["purge", "example.org/x"])

    @pytest.mark.parametrize("arguments", [[], ["GET"]])
    def test_missing_url(self, arguments: list[str]) -> None:
        with pytest.raises(MissingURLError):
            parse_request(arguments)

    def test_invalid_url(self) -> None:
        with pytest.raises(InvalidURLError, match="invalid URL"):
            parse_request(["http://example.org:notaport/"])

    def test_invalid_item(self) -> None:
        with pytest.raises(InvalidItemError):
            parse_request(["example.org/get", "nothing"])
