from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from tablisp.racket import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND, EXIT_TIMEOUT, run_racket
from tablisp.utils import RACKET_VAR, racket_executable

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script")


def _fake_racket(tmp_path: Path, body: str) -> str:
    script = tmp_path / "fake-racket"
    script.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


def test_runs_code_with_dash_e(tmp_path: Path) -> None:
    exe = _fake_racket(tmp_path, 'printf "%s|%s\\n" "$1" "$2"')

    result = run_racket("(plus 1 2)", executable=exe)

    assert result.ok
    assert result.returncode == 0
    assert result.output == "-e|(plus 1 2)\n"


def test_failure_keeps_combined_output(tmp_path: Path) -> None:
    exe = _fake_racket(tmp_path, 'echo out; echo boom >&2; exit 3')

    result = run_racket("(oops)", executable=exe)

    assert not result.ok
    assert result.returncode == 3
    assert "out" in result.output
    assert "boom" in result.output


def test_missing_executable_is_a_result_not_a_crash(tmp_path: Path) -> None:
    missing = str(tmp_path / "no-such-racket")

    result = run_racket("(plus 1 2)", executable=missing)

    assert not result.ok
    assert result.returncode == EXIT_NOT_FOUND
    assert result.output.startswith(missing)


def test_non_executable_file_is_a_result(tmp_path: Path) -> None:
    script = tmp_path / "plain-racket"
    script.write_text("#!/bin/sh\necho never\n", encoding="utf-8")
    script.chmod(0o644)

    result = run_racket("(plus 1 2)", executable=str(script))

    assert not result.ok
    assert result.returncode == EXIT_NOT_EXECUTABLE
    assert result.output.startswith(str(script))
    assert "never" not in result.output


def test_directory_as_executable_is_a_result(tmp_path: Path) -> None:
    result = run_racket("(plus 1 2)", executable=str(tmp_path))

    assert not result.ok
    assert result.returncode == EXIT_NOT_EXECUTABLE
    assert result.output.startswith(str(tmp_path))


def test_timeout_keeps_partial_output(tmp_path: Path) -> None:
    exe = _fake_racket(tmp_path, "echo started; exec sleep 5")

    result = run_racket("(loop)", executable=exe, timeout=1.0)

    assert not result.ok
    assert result.returncode == EXIT_TIMEOUT
    assert result.output.startswith("started\n")
    assert "timed out after 1s" in result.output


def test_executable_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    exe = _fake_racket(tmp_path, 'echo from-env')
    monkeypatch.setenv(RACKET_VAR, exe)

    assert racket_executable() == exe
    assert run_racket("x").output == "from-env\n"


def test_explicit_executable_beats_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(RACKET_VAR, "/opt/racket/bin/racket")

    assert racket_executable("custom") == "custom"


def test_default_executable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(RACKET_VAR, "   ")
    assert racket_executable() == "racket"

    monkeypatch.delenv(RACKET_VAR)
    assert racket_executable() == "racket"
    assert os.environ.get(RACKET_VAR) is None
