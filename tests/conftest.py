"""Shared test fixtures for spie.

Provides isolated config environments, in-memory streams and stdin, a
recording transport, and a helper for invoking :func:`spie.runner.run`.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

import pytest

from spie.client.transport import Transport
from spie.input_source import InputSource
from spie.models import (
    RequestPayload,
    ResponsePayload,
    TransportOptions,
)
from spie.output import OutputManager, PrettyMode, reset_output, set_output
from spie.runner import CLIContext, run


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The runner installs an OutputManager bound to the test's StringIO
    streams. Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points SPIE_CONFIG_DIR and XDG_DATA_HOME at subdirectories of tmp_path
    so that tests never touch real user config, and clears every SPIE_*
    override and the colour switches.

    Returns:
        The config directory (not created).
    """
    config_dir = tmp_path / "config"
    monkeypatch.setenv("SPIE_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SPIE_DEFAULT_SCHEME",
        "SPIE_BASE_URL",
        "SPIE_TIMEOUT",
        "SPIE_MAX_REDIRECTS",
        "SPIE_TRANSPORT",
        "NO_COLOR",
        "TERM",
    ]:
        monkeypatch.delenv(var, raising=False)
    return config_dir


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def plain_output() -> OutputManager:
    """Install an uncoloured OutputManager writing to StringIO buffers.

    The buffers are reachable as ``output.stdout_buffer`` and
    ``output.stderr_buffer``.
    """
    stdout, stderr = io.StringIO(), io.StringIO()
    output = OutputManager(pretty=PrettyMode.NONE, stdout=stdout, stderr=stderr)
    output.stdout_buffer = stdout  # type: ignore[attr-defined]
    output.stderr_buffer = stderr  # type: ignore[attr-defined]
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Stdin and transport doubles
# ---------------------------------------------------------------------------


class BufferedInput(InputSource):
    """In-memory stdin: fixed bytes and a scripted password line."""

    def __init__(
        self,
        data: bytes = b"",
        interactive: bool = False,
        password: Optional[str] = None,
    ) -> None:
        self.data = data
        self.interactive = interactive
        self.password = password
        self.reads = 0
        self.prompts: list[str] = []

    @property
    def is_interactive(self) -> bool:
        return self.interactive

    def read_all_data(self) -> bytes:
        self.reads += 1
        return self.data

    def read_secure_line(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        return self.password


class RecordingTransport(Transport):
    """Transport that records every payload and replays queued responses.

    When the queue runs dry, ``200 OK`` with no body is returned.
    """

    def __init__(self, responses: Optional[list[ResponsePayload]] = None) -> None:
        self.responses = list(responses or [])
        self.payloads: list[RequestPayload] = []
        self.options: list[TransportOptions] = []
        self.closed = False

    def send(self, payload: RequestPayload, options: TransportOptions) -> ResponsePayload:
        self.payloads.append(payload)
        self.options.append(options)
        if self.responses:
            return self.responses.pop(0)
        return ResponsePayload(status=200)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def buffered_input() -> BufferedInput:
    return BufferedInput()


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


# ---------------------------------------------------------------------------
# Runner helper
# ---------------------------------------------------------------------------


class RunResult:
    """Exit code and captured streams of one :func:`run` call."""

    def __init__(self, exit_code: int, stdout: str, stderr: str) -> None:
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


@pytest.fixture
def invoke(recording_transport: RecordingTransport, buffered_input: BufferedInput):
    """Run spie in-process against the recording transport.

    Usage::

        result = invoke(["example.org/get", "a==1"])
        assert result.exit_code == 0
    """

    def _invoke(
        arguments: list[str],
        transport: Optional[Transport] = None,
        input_source: Optional[InputSource] = None,
    ) -> RunResult:
        stdout, stderr = io.StringIO(), io.StringIO()
        context = CLIContext(
            stdout=stdout,
            stderr=stderr,
            input_source=input_source or buffered_input,
            transport=transport or recording_transport,
        )
        code = run(arguments, context)
        return RunResult(code, stdout.getvalue(), stderr.getvalue())

    return _invoke

