"""Run transpiled code on an external Racket interpreter."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Optional

from .utils import racket_executable

# Shell conventions for "command not found", "cannot execute" and timeout(1)
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
EXIT_TIMEOUT = 124


@dataclass(frozen=True)
class RacketResult:
    ok: bool
    returncode: int
    output: str


def _partial_output(output: object) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return str(output)


def run_racket(code: str, executable: Optional[str] = None, timeout: Optional[float] = None) -> RacketResult:
    """
    Evaluate `code` with `racket -e` and capture stdout and stderr together.
    Launch failures and timeouts come back as failed results.
    """
    exe = racket_executable(executable)

    try:
        result = subprocess.run(
            [exe, "-e", code],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        return RacketResult(ok=False, returncode=EXIT_NOT_FOUND, output=f"{exe}: {exc.strerror}\n")
    except OSError as exc:
        # PermissionError for a non-executable file or a directory
        return RacketResult(ok=False, returncode=EXIT_NOT_EXECUTABLE, output=f"{exe}: {exc.strerror or exc}\n")
    except subprocess.TimeoutExpired as exc:
        output = _partial_output(exc.output)
        if output and not output.endswith("\n"):
            output += "\n"
        return RacketResult(
            ok=False,
            returncode=EXIT_TIMEOUT,
            output=f"{output}{exe}: timed out after {exc.timeout:g}s\n",
        )

    return RacketResult(
        ok=result.returncode == 0,
        returncode=result.returncode,
        output=result.stdout or "",
    )
