"""Subprocess execution with Result-based error handling.

``run`` captures output and returns ``Ok(stdout)`` or ``Err(ProcessError)``;
it never raises for a failing command. An optional ``trace`` callback sees
the command line before it runs and the raw output afterwards, which is how
``--debug`` shows every git and gh call.

Usage:
    result = run(["git", "status", "--porcelain"], cwd=repo_root)
    match result:
        case Ok(stdout):
            ...
        case Err(error):
            print(error.stderr)
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from autorelease.core.result import Err, Ok, Result

__all__ = ["ProcessError", "Trace", "run"]

Trace = Callable[[str], None]

_TRACE_OUTPUT_LIMIT = 2000


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 if the process could not run or timed out.
        stdout: Captured standard output (may be empty).
        stderr: Captured standard error.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"

    @property
    def detail(self) -> str:
        """Most useful single line to show a user."""
        return self.stderr.strip() or self.stdout.strip() or str(self)


def _clip(text: str) -> str:
    text = text.rstrip()
    if len(text) <= _TRACE_OUTPUT_LIMIT:
        return text
    return text[:_TRACE_OUTPUT_LIMIT] + f"... ({len(text) - _TRACE_OUTPUT_LIMIT} more chars)"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    trace: Trace | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).
        trace: Called with the command line and, afterwards, its raw output.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    if trace is not None:
        trace(f"$ {shlex.join(cmd)}")

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        error = ProcessError(
            command=tuple(cmd),
            returncode=-1,
            stdout=e.stdout if isinstance(e.stdout, str) else "",
            stderr=f"Command timed out after {timeout}s",
        )
        if trace is not None:
            trace(f"  timed out after {timeout}s")
        return Err(error)
    except OSError as e:
        if trace is not None:
            trace(f"  could not start: {e}")
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if trace is not None:
        if proc.stdout.strip():
            trace(f"  stdout: {_clip(proc.stdout)}")
        if proc.stderr.strip():
            trace(f"  stderr: {_clip(proc.stderr)}")
        trace(f"  exit {proc.returncode}")

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
