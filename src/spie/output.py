"""Output system with strict stdout/stderr discipline.

* **stdout** -- response heads and bodies only. This is what downstream
  tools pipe and parse.
* **stderr** -- everything else: errors, warnings, ``--check-status``
  messages, ``--verbose`` debug lines, and password prompts.
* **TTY detection** -- ``--pretty`` defaults to ``all`` when stdout is an
  interactive terminal and to ``none`` otherwise.
* **Colour control** -- respects ``NO_COLOR`` and ``TERM=dumb``.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding the pretty mode,
   quiet level, Rich consoles, and the two writable streams. It is the
   console collaborator of :func:`~spie.runner.run` and is installed
   globally via :func:`set_output`.
2. Module-level convenience functions (:func:`error`, :func:`debug`, ...)
   that delegate to the global ``OutputManager`` instance.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Optional, Sequence, TextIO

from rich.console import Console
from rich.highlighter import JSONHighlighter
from rich.markup import escape
from rich.text import Text

from spie.models import ResponsePayload


class PrettyMode(str, Enum):
    """Response formatting selected with ``--pretty``.

    ``FORMAT`` re-indents JSON bodies, ``COLORS`` highlights the head and
    JSON bodies, and ``ALL`` does both.
    """

    ALL = "all"
    COLORS = "colors"
    FORMAT = "format"
    NONE = "none"

    @property
    def formats(self) -> bool:
        return self in (PrettyMode.ALL, PrettyMode.FORMAT)

    @property
    def colors(self) -> bool:
        return self in (PrettyMode.ALL, PrettyMode.COLORS)


class OutputManager:
    """Central manager for all CLI output.

    Args:
        pretty: Response formatting. ``None`` picks ``ALL`` for a terminal
            stdout and ``NONE`` otherwise.
        no_color: Disable all colour, even when *pretty* asks for it.
        quiet: ``1`` hides response output; ``2`` also hides errors and
            warnings.
        verbose: Enable ``[debug]`` lines on stderr.
        stdout: Stream for response output (defaults to ``sys.stdout``).
        stderr: Stream for diagnostics (defaults to ``sys.stderr``).
    """

    def __init__(
        self,
        pretty: Optional[PrettyMode] = None,
        no_color: bool = False,
        quiet: int = 0,
        verbose: bool = False,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        self._out = stdout or sys.stdout
        self._err = stderr or sys.stderr
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if pretty is None:
            pretty = PrettyMode.ALL if self.is_terminal else PrettyMode.NONE
        if self._no_color and pretty.colors:
            pretty = PrettyMode.FORMAT if pretty.formats else PrettyMode.NONE
        self._pretty = pretty

        # Console for highlighted response output
        self._stdout = Console(
            file=self._out,
            force_terminal=True,
            color_system="standard",
            soft_wrap=True,
            highlight=False,
            markup=False,
            emoji=False,
        )

        # Console for stderr diagnostics
        self._plain_stderr = self._no_color or not _is_tty(self._err)
        self._stderr = Console(file=self._err, stderr=True, soft_wrap=True, highlight=False)

    @property
    def pretty(self) -> PrettyMode:
        """The resolved pretty mode."""
        return self._pretty

    @property
    def quiet(self) -> int:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def is_terminal(self) -> bool:
        """Whether stdout is an interactive terminal."""
        return _is_tty(self._out)

    # ------------------------------------------------------------------ #
    # Raw streams
    # ------------------------------------------------------------------ #

    def out(self, text: str) -> None:
        """Write *text* to stdout verbatim. Suppressed by ``-q``."""
        if self._quiet < 1:
            self._out.write(text)
            self._out.flush()

    def err(self, text: str) -> None:
        """Write *text* to stderr verbatim. Suppressed by ``-qq``."""
        if self._quiet < 2:
            self._err.write(text)
            self._err.flush()

    def prompt(self, text: str) -> None:
        """Write an interactive prompt to stderr. Never suppressed."""
        self._err.write(text)
        self._err.flush()

    # ------------------------------------------------------------------ #
    # Responses (stdout)
    # ------------------------------------------------------------------ #

    def print_responses(self, responses: Sequence[ResponsePayload]) -> None:
        """Render every response of a redirect chain to stdout.

        Hops are separated by a blank line. Suppressed by ``-q``.
        """
        if self._quiet >= 1 or not responses:
            return
        if not self._pretty.colors:
            self.out("\n".join(self.format_response(r) for r in responses))
            return
        for index, response in enumerate(responses):
            if index:
                self._stdout.print()
            self._stdout.print(self._highlight(response), end="")

    def format_response(self, response: ResponsePayload) -> str:
        """Return the plain-text rendering of *response*.

        The status line, one ``Name: value`` line per header, then a blank
        line and the body when there is one. Binary bodies are summarised
        as ``<N bytes binary data>``.
        """
        head = "\n".join(_head_lines(response))
        body = self._body_text(response)
        if body is None:
            return head + "\n"
        return f"{head}\n\n{body}\n"

    def _body_text(self, response: ResponsePayload) -> Optional[str]:
        body = response.body
        if body is None or len(body) == 0:
            return None
        if isinstance(body, bytes):
            return f"<{len(body)} bytes binary data>"
        if self._pretty.formats and _is_json_response(response):
            try:
                return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
            except ValueError:
                return body
        return body

    def _highlight(self, response: ResponsePayload) -> Text:
        lines = _head_lines(response)
        text = Text(lines[0], style="bold blue")
        for header in lines[1:]:
            name, _, value = header.partition(": ")
            text.append("\n")
            text.append(name, style="cyan")
            text.append(": ")
            text.append(value)
        text.append("\n")

        body = self._body_text(response)
        if body is not None:
            text.append("\n")
            if _is_json_response(response) and not isinstance(response.body, bytes):
                body_text = Text(body)
                JSONHighlighter().highlight(body_text)
                text.append_text(body_text)
            else:
                text.append(body)
            text.append("\n")
        return text

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def warning(self, message: str) -> None:
        """Print a yellow warning to stderr. Suppressed by ``-qq``.

        Args:
            message: The warning text.
        """
        if self._quiet >= 2:
            return
        if self._plain_stderr:
            self.err(f"Warning: {message}\n")
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print a bold-red error to stderr. Survives ``-q``, not ``-qq``.

        Args:
            message: The error text.
        """
        if self._quiet >= 2:
            return
        if self._plain_stderr:
            self.err(f"Error: {message}\n")
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown when ``--verbose`` is active.

        Args:
            message: The debug text (prefixed with ``[debug]`` on output).
        """
        if not self._verbose or self._quiet >= 2:
            return
        if self._plain_stderr:
            self.err(f"[debug] {message}\n")
        else:
            self._stderr.print(f"[dim]\\[debug] {escape(message)}[/dim]")


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _head_lines(response: ResponsePayload) -> list[str]:
    status = f"HTTP/1.1 {response.status} {response.reason_phrase}".rstrip()
    return [status] + [f"{name}: {value}" for name, value in response.headers]


def _is_json_response(response: ResponsePayload) -> bool:
    content_type = (response.header("Content-Type") or "").split(";", 1)[0].strip().lower()
    return content_type == "application/json" or content_type.endswith("+json")


def _is_tty(stream: TextIO) -> bool:
    """Check if *stream* is a TTY."""
    return hasattr(stream, "isatty") and stream.isatty()


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance (set during startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager` instance.

    If no instance has been installed via :func:`set_output`, a default
    ``OutputManager`` is created lazily.
    """
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance.

    Called once per run from :func:`~spie.runner.run`.
    """
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)
