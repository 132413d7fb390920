"""Tests for auth plugins, AuthManager, AuthResult, and the password prompt."""

from __future__ import annotations

import base64
import io

import pytest

from spie.auth.base import AuthPlugin, AuthResult, PasswordPrompt
from spie.auth.manager import AuthManager, create_default_manager
from spie.client.builder import build_request_head
from spie.exceptions import AuthError
from spie.models import RequestPayload
from spie.output import OutputManager
from spie.plugins.basic import BasicAuthPlugin
from spie.plugins.bearer import BearerAuthPlugin


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _basic(user: str, password: str) -> str:
    return "Basic " + base64.b64encode(f"{user}:{password}".encode()).decode()


@pytest.fixture
def stderr() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def prompt(buffered_input, stderr: io.StringIO) -> PasswordPrompt:
    return PasswordPrompt(buffered_input, OutputManager(stdout=io.StringIO(), stderr=stderr))


# ---------------------------------------------------------------------------
# AuthResult
# ---------------------------------------------------------------------------


class TestAuthResult:
    def test_adds_header(self) -> None:
        payload = RequestPayload(request=build_request_head("GET", "http://x.org/"))
        result = AuthResult("Bearer t").apply(payload)
        assert result.request.headers == [("Authorization", "Bearer t")]

    def test_replaces_user_header(self) -> None:
        head = build_request_head("GET", "http://x.org/")
        head.headers = [("X-A", "1"), ("authorization", "old")]
        result = AuthResult("Bearer t").apply(RequestPayload(request=head))
        assert result.request.headers == [("X-A", "1"), ("Authorization", "Bearer t")]

    def test_cancels_removal(self) -> None:
        payload = RequestPayload(
            request=build_request_head("GET", "http://x.org/"),
            header_removals=["Authorization", "Accept"],
        )
        result = AuthResult("Bearer t").apply(payload)
        assert result.header_removals == ["Accept"]

    def test_original_is_unchanged(self) -> None:
        payload = RequestPayload(request=build_request_head("GET", "http://x.org/"))
        AuthResult("Bearer t").apply(payload)
        assert payload.request.headers == []


# ---------------------------------------------------------------------------
# PasswordPrompt
# ---------------------------------------------------------------------------


class TestPasswordPrompt:
    def test_reads_password(self, buffered_input, prompt, stderr) -> None:
        buffered_input.interactive = True
        buffered_input.password = "s3cret\n"
        assert prompt.ask("alice") == "s3cret"
        assert stderr.getvalue() == "Enter password for user 'alice': \n"

    def test_disabled(self, buffered_input, stderr) -> None:
        buffered_input.interactive = True
        disabled = PasswordPrompt(
            buffered_input, OutputManager(stdout=io.StringIO(), stderr=stderr), enabled=False
        )
        with pytest.raises(AuthError, match="--ignore-stdin"):
            disabled.ask("alice")

    def test_requires_interactive_stdin(self, prompt) -> None:
        with pytest.raises(AuthError, match="interactive stdin"):
            prompt.ask("alice")

    def test_cancelled(self, buffered_input, prompt) -> None:
        buffered_input.interactive = True
        buffered_input.password = None
        with pytest.raises(AuthError, match="cancelled"):
            prompt.ask("alice")


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------


class TestBasicAuthPlugin:
    def test_auth_type(self) -> None:
        assert BasicAuthPlugin().auth_type == "basic"

    def test_user_and_password(self, prompt) -> None:
        result = BasicAuthPlugin().authenticate("alice:pw", prompt)
        assert result.authorization == _basic("alice", "pw")

    def test_password_may_contain_colons(self, prompt) -> None:
        result = BasicAuthPlugin().authenticate("alice:a:b", prompt)
        assert result.authorization == _basic("alice", "a:b")

    def test_empty_password(self, prompt) -> None:
        result = BasicAuthPlugin().authenticate("alice:", prompt)
        assert result.authorization == _basic("alice", "")

    def test_prompts_without_password(self, buffered_input, prompt) -> None:
        buffered_input.interactive = True
        buffered_input.password = "typed"
        result = BasicAuthPlugin().authenticate("alice", prompt)
        assert result.authorization == _basic("alice", "typed")
        assert buffered_input.prompts == ["Enter password for user 'alice': "]


class TestBearerAuthPlugin:
    def test_token(self, prompt) -> None:
        assert BearerAuthPlugin().authenticate("tok123", prompt).authorization == "Bearer tok123"

    def test_empty_token_is_rejected(self) -> None:
        assert BearerAuthPlugin().validate_credential("  ") == [
            "bearer auth requires a non-empty token"
        ]


# ---------------------------------------------------------------------------
# AuthManager
# ---------------------------------------------------------------------------


class TestAuthManager:
    def test_default_types(self) -> None:
        assert create_default_manager().list_types() == ["basic", "bearer"]

    def test_case_insensitive_lookup(self) -> None:
        assert isinstance(create_default_manager().get_plugin("BEARER"), BearerAuthPlugin)

    def test_unknown_type(self) -> None:
        with pytest.raises(AuthError, match="unsupported auth type 'digest'"):
            create_default_manager().get_plugin("digest")

    def test_validation_failure(self, prompt) -> None:
        with pytest.raises(AuthError, match="non-empty token"):
            create_default_manager().authenticate("bearer", "", prompt)

    def test_custom_plugin(self, prompt) -> None:
        class TokenPlugin(AuthPlugin):
            @property
            def auth_type(self) -> str:
                return "token"

            def authenticate(self, credential: str, prompt: PasswordPrompt) -> AuthResult:
                return AuthResult(f"Token {credential}")

        manager = AuthManager()
        manager.register(TokenPlugin())
        assert manager.authenticate("token", "abc", prompt).authorization == "Token abc"
