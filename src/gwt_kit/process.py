"""Thin wrapper around subprocess for git, gh and desktop helpers."""
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


logger = logging.getLogger(__name__)


class CommandRunner:
    """Run external commands synchronously."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd = [str(arg) for arg in args]
        logger.debug("run: %s (cwd=%s)", shlex.join(cmd), cwd or ".")
        return subprocess.run(
            cmd,
            cwd=cwd,
            check=check,
            text=True,
            capture_output=capture_output,
        )


@dataclass
class ScriptedResult:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


class FakeCommandRunner(CommandRunner):
    """Testing double that records commands and replays scripted results."""

    def __init__(self, results: dict[tuple[str, ...], ScriptedResult] | None = None) -> None:
        self._results: dict[tuple[str, ...], ScriptedResult] = dict(results or {})
        self._missing: set[str] = set()
        self.calls: list[tuple[str, ...]] = []

    def script(self, args: Sequence[str], *, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._results[tuple(args)] = ScriptedResult(returncode=returncode, stdout=stdout, stderr=stderr)

    def mark_missing(self, executable: str) -> None:
        self._missing.add(executable)

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,  # noqa: ARG002
        capture_output: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd = tuple(str(arg) for arg in args)
        if cmd and cmd[0] in self._missing:
            raise FileNotFoundError(2, "No such file or directory", cmd[0])
        self.calls.append(cmd)
        result = self._results.get(cmd, ScriptedResult())
        stdout = result.stdout if capture_output else None
        stderr = result.stderr if capture_output else None
        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(result.returncode, list(cmd), output=stdout, stderr=stderr)
        return subprocess.CompletedProcess(list(cmd), result.returncode, stdout=stdout, stderr=stderr)

    def commands_starting_with(self, *prefix: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[: len(prefix)] == prefix]
