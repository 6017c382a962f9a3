"""Desktop notifications that refocus the originating terminal tab."""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .config import NotifyConfig
from .config import TerminalConfig
from .process import CommandRunner
from .terminal import build_focus_applescript


logger = logging.getLogger(__name__)

PLACEHOLDER_TTYS = frozenset({"not a tty", "??", "?"})


@dataclass(frozen=True)
class TerminalSignals:
    """Process-context hints about the controlling terminal, in priority order."""

    direct: str | None = None
    own_process: str | None = None
    parent_process: str | None = None

    def ordered(self) -> tuple[str | None, ...]:
        return (self.direct, self.own_process, self.parent_process)


def resolve_terminal_id(signals: TerminalSignals) -> str | None:
    for candidate in signals.ordered():
        if candidate is None:
            continue
        value = candidate.strip()
        if value and value not in PLACEHOLDER_TTYS:
            return value
    return None


def sanitize_terminal_id(terminal_id: str) -> str:
    return terminal_id.replace("/", "_")


def _ps_tty(runner: CommandRunner, pid: int) -> str | None:
    try:
        proc = runner.run(["ps", "-o", "tty=", "-p", str(pid)], capture_output=True, check=False)
    except OSError:
        return None
    if proc.returncode != 0:
        return None
    return (proc.stdout or "").replace(" ", "").strip() or None


def collect_terminal_signals(runner: CommandRunner) -> TerminalSignals:
    try:
        direct: str | None = os.ttyname(sys.stdin.fileno())
    except (OSError, ValueError, AttributeError):
        direct = None
    return TerminalSignals(
        direct=direct,
        own_process=_ps_tty(runner, os.getpid()),
        parent_process=_ps_tty(runner, os.getppid()),
    )


def build_focus_script(app: str, terminal_id: str) -> str:
    applescript = build_focus_applescript(app, terminal_id).replace("'", "'\"'\"'")
    return "\n".join(
        [
            "#!/bin/bash",
            f"osascript -e '{applescript}'",
            'rm "$0"',
            "",
        ]
    )


@dataclass
class NotificationMessage:
    title: str
    body: str


class Notifier:
    def __init__(
        self,
        config: NotifyConfig | None = None,
        terminal: TerminalConfig | None = None,
        *,
        runner: CommandRunner | None = None,
        signals: TerminalSignals | None = None,
    ) -> None:
        self.config = config or NotifyConfig()
        self.terminal = terminal or TerminalConfig()
        self.runner = runner or CommandRunner()
        self.channels: Sequence[str] = [item.strip() for item in self.config.channel.split(",") if item.strip()]
        self._signals = signals
        self._disabled_channels: set[str] = set()

    def notify(self, body: str) -> None:
        self.send(NotificationMessage(title=self.config.title, body=body))

    def send(self, message: NotificationMessage) -> None:
        for channel in self.channels:
            self._dispatch(channel, message)

    def focus_script_path(self, terminal_id: str) -> Path:
        name = f"{self.config.script_prefix}{sanitize_terminal_id(terminal_id)}.sh"
        return self.config.expanded_script_dir() / name

    def write_focus_script(self, terminal_id: str) -> Path:
        path = self.focus_script_path(terminal_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(build_focus_script(self.terminal.app, terminal_id), encoding="utf-8")
        path.chmod(0o755)
        return path

    # Dispatch helpers -----------------------------------------------------
    def _dispatch(self, channel: str, message: NotificationMessage) -> None:
        if channel in self._disabled_channels:
            return
        if channel == "stdout":
            print(f"[NOTIFY] {message.title}\n{message.body}")
            return
        if channel == "desktop":
            self._send_desktop(message)
            return
        raise ValueError(f"Unknown notification channel: {channel}")

    def _send_desktop(self, message: NotificationMessage) -> None:
        signals = self._signals or collect_terminal_signals(self.runner)
        terminal_id = resolve_terminal_id(signals)

        script_path: Path | None = None
        args = [
            self.config.notifier_bin,
            "-message",
            message.body,
            "-title",
            message.title,
            "-sound",
            self.config.sound,
        ]
        if terminal_id:
            script_path = self.write_focus_script(terminal_id)
            args += ["-execute", shlex.quote(str(script_path))]
        else:
            logger.info("No controlling terminal found; notification will not refocus a tab")

        try:
            self.runner.run(args, capture_output=True)
        except FileNotFoundError:
            if script_path is not None:
                script_path.unlink(missing_ok=True)
            self._disable_channel_once("desktop", f"{self.config.notifier_bin} is not installed")
        except subprocess.CalledProcessError as exc:
            logger.warning("%s exited with %s: %s", self.config.notifier_bin, exc.returncode, (exc.stderr or "").strip())
            raise

    def _disable_channel_once(self, channel: str, reason: str) -> None:
        if channel in self._disabled_channels:
            return
        logger.warning("Notification channel '%s' disabled: %s", channel, reason)
        self._disabled_channels.add(channel)

