"""Terminal application automation via osascript."""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
import textwrap
from pathlib import Path

from .config import TerminalConfig
from .process import CommandRunner


logger = logging.getLogger(__name__)


def applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_focus_applescript(app: str, terminal_id: str) -> str:
    """AppleScript that raises the tab whose tty contains ``terminal_id``."""
    return textwrap.dedent(
        f"""
        tell application {applescript_string(app)}
            activate
            try
                repeat with w from 1 to count of windows
                    repeat with t from 1 to count of tabs of window w
                        if tty of tab t of window w contains {applescript_string(terminal_id)} then
                            set frontmost of window w to true
                            set selected tab of window w to tab t of window w
                            return
                        end if
                    end repeat
                end repeat
            end try
        end tell
        """
    ).strip()


def build_worktree_shell_script(path: Path, title: str, shell: str) -> str:
    quoted_path = shlex.quote(str(path))
    return "\n".join(
        [
            "#!/bin/bash",
            f"echo {shlex.quote(f'Changing to: {path}')}",
            f"cd {quoted_path} || exit 1",
            f"printf '\\033]0;%s\\007' {shlex.quote(title)}",
            "pwd",
            'rm -f "$0"',
            f"exec {shlex.quote(shell)}",
            "",
        ]
    )


class TerminalLauncher:
    """Open new terminal windows positioned in a directory.

    Opening is best effort: any failure is logged and reported as ``False``
    so that callers never treat it as an error of their own operation.
    """

    def __init__(
        self,
        config: TerminalConfig,
        runner: CommandRunner | None = None,
        *,
        script_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or CommandRunner()
        self.script_dir = script_dir

    def open(self, path: Path, title: str) -> bool:
        target = Path(path).resolve()
        try:
            script_path = self._write_script(target, title)
        except OSError as exc:
            logger.warning("Could not write terminal bootstrap script: %s", exc)
            return False

        command = f"bash {shlex.quote(str(script_path))}"
        applescript = (
            f"tell application {applescript_string(self.config.app)} "
            f"to do script {applescript_string(command)}"
        )
        try:
            self.runner.run([self.config.osascript_bin, "-e", applescript], capture_output=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.warning("Could not open %s window for %s: %s", self.config.app, target, exc)
            script_path.unlink(missing_ok=True)
            return False
        return True

    def _write_script(self, path: Path, title: str) -> Path:
        fd, name = tempfile.mkstemp(prefix="gwt_", suffix=".sh", dir=self.script_dir)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(build_worktree_shell_script(path, title, self.config.shell))
        script_path = Path(name)
        script_path.chmod(0o755)
        return script_path
