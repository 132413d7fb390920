"""Console-script entry point for spie.

:func:`main` installs a SIGINT handler, runs the request command through
:func:`~spie.runner.run`, and turns its result into the process exit status.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`spie.runner`: The Typer command and error-to-exit-code mapping.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

from spie.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from spie.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``spie`` console script.

    Expected failures (bad usage, network errors, HTTP error statuses under
    ``--check-status``) are reported by :func:`~spie.runner.run` and come
    back as its exit code. All other exceptions produce a crash log and a
    generic failure exit.

    Raises:
        SystemExit: Always raised.
    """
    _setup_signal_handlers()
    try:
        from spie.runner import run

        code = run(sys.argv[1:])
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from spie.output import error

        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
    sys.exit(code)
