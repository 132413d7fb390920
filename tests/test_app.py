"""Tests for the console-script entry point (spie.app)."""

from __future__ import annotations

from pathlib import Path

import pytest

from spie import __version__, app


@pytest.fixture(autouse=True)
def _no_signal_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "_setup_signal_handlers", lambda: None)


def test_exit_status_comes_from_run(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("sys.argv", ["spie", "--version"])
    with pytest.raises(SystemExit) as excinfo:
        app.main()
    assert excinfo.value.code == 0
    assert capsys.readouterr().out == f"spie {__version__}\n"


def test_usage_error_exit_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["spie", "GET"])
    with pytest.raises(SystemExit) as excinfo:
        app.main()
    assert excinfo.value.code == 2


def test_unexpected_error_writes_crash_log(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def explode(arguments: list[str]) -> int:
        raise RuntimeError("kaboom")

    monkeypatch.setattr("spie.runner.run", explode)
    monkeypatch.setattr("spie.config._is_xdg_platform", lambda: True)
    monkeypatch.setattr("sys.argv", ["spie", "example.org"])

    with pytest.raises(SystemExit) as excinfo:
        app.main()

    assert excinfo.value.code == 1
    assert "Error: Unexpected error. Debug log:" in capsys.readouterr().err
    logs = list((tmp_path / "data" / "spie" / "logs").glob("crash-*.log"))
    assert len(logs) == 1
    assert "RuntimeError: kaboom" in logs[0].read_text()


def test_keyboard_interrupt(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def interrupted(arguments: list[str]) -> int:
        raise KeyboardInterrupt

    monkeypatch.setattr("spie.runner.run", interrupted)
    monkeypatch.setattr("sys.argv", ["spie", "example.org"])

    with pytest.raises(SystemExit) as excinfo:
        app.main()

    assert excinfo.value.code == 130
    assert capsys.readouterr().err == "\nCancelled.\n"
