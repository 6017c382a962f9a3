"""Command line entry points for gwt-kit."""

from __future__ import annotations

import argparse
import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Sequence

from .assistants import UsageError
from .assistants import build_launchers
from .config import KitConfig
from .config import load_config
from .notify import Notifier
from .process import CommandRunner
from .terminal import TerminalLauncher
from .worktree import WorktreeError
from .worktree import WorktreeManager


ASSISTANT_COMMANDS = ("claude", "gemini", "codex")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gwt-kit", description="Git worktree, notification and AI assistant helpers")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: $GWT_KIT_CONFIG or ~/.config/gwt-kit/config.yaml)")
    parser.add_argument("--log-level", type=str, default=os.getenv("LOG_LEVEL", "WARNING"))
    sub = parser.add_subparsers(dest="command", required=True)

    new_cmd = sub.add_parser("new", help="Create a worktree next to the repo and open a terminal in it")
    new_cmd.add_argument("branch", nargs="?", default=None, help="Branch name (default: feature/<timestamp>)")

    sub.add_parser("pr", help="Commit, push and open a pull request for the current worktree branch")
    sub.add_parser("cleanup", help="Remove every worktree and branch except the trunk")
    sub.add_parser("list", help="List worktrees")

    notify_cmd = sub.add_parser("notify", help="Show a desktop notification that refocuses this terminal")
    notify_cmd.add_argument("message", nargs="?", default="", help="Notification text")

    for name in ASSISTANT_COMMANDS:
        cmd = sub.add_parser(name, help=f"Run {name} on a GitHub issue in auto-approval mode")
        cmd.add_argument("url", nargs="?", default=None, help="GitHub issue URL")

    assist_cmd = sub.add_parser("assist", help="Run a configured assistant on a GitHub issue")
    assist_cmd.add_argument("assistant", help="Assistant name from the config")
    assist_cmd.add_argument("url", nargs="?", default=None, help="GitHub issue URL")

    return parser


def cmd_new(args: argparse.Namespace, config: KitConfig, runner: CommandRunner) -> int:
    manager = _manager(config, runner)
    path = manager.create(args.branch)
    print(f"Worktree ready: {path}")
    return 0


def cmd_pr(args: argparse.Namespace, config: KitConfig, runner: CommandRunner) -> int:  # noqa: ARG001
    _manager(config, runner).open_pull_request()
    return 0


def cmd_cleanup(args: argparse.Namespace, config: KitConfig, runner: CommandRunner) -> int:  # noqa: ARG001
    _manager(config, runner).cleanup()
    return 0


def cmd_list(args: argparse.Namespace, config: KitConfig, runner: CommandRunner) -> int:  # noqa: ARG001
    for info in _manager(config, runner).list():
        if info.bare:
            label = "(bare)"
        elif info.detached:
            label = f"(detached {(info.head or '')[:7]})"
        else:
            label = f"[{info.branch}]"
        flags = [flag for flag in ("locked", "prunable") if getattr(info, flag)]
        suffix = f" {' '.join(flags)}" if flags else ""
        print(f"{info.path} {label}{suffix}")
    return 0


def cmd_notify(args: argparse.Namespace, config: KitConfig, runner: CommandRunner) -> int:
    notifier = Notifier(config.notify, config.terminal, runner=runner)
    notifier.notify(args.message)
    return 0


def cmd_assistant(args: argparse.Namespace, config: KitConfig, runner: CommandRunner) -> int:
    name = args.assistant if args.command == "assist" else args.command
    launchers = build_launchers(config.assistants, config.prompt, runner)
    launcher = launchers.get(name)
    if launcher is None:
        available = ", ".join(sorted(launchers)) or "none"
        raise UsageError(f"Unknown assistant {name}; available: {available}")
    return launcher.launch(args.url)


COMMANDS = {
    "new": cmd_new,
    "pr": cmd_pr,
    "cleanup": cmd_cleanup,
    "list": cmd_list,
    "notify": cmd_notify,
    "assist": cmd_assistant,
    **{name: cmd_assistant for name in ASSISTANT_COMMANDS},
}


def _manager(config: KitConfig, runner: CommandRunner) -> WorktreeManager:
    return WorktreeManager(config, runner=runner, terminal=TerminalLauncher(config.terminal, runner))


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    runner = CommandRunner()
    try:
        return COMMANDS[args.command](args, config, runner)
    except UsageError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except WorktreeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except subprocess.CalledProcessError as exc:
        cmd = exc.cmd if isinstance(exc.cmd, str) else shlex.join(str(part) for part in exc.cmd)
        print(f"Error: command failed with exit code {exc.returncode}: {cmd}", file=sys.stderr)
        if exc.stderr:
            print(exc.stderr.rstrip(), file=sys.stderr)
        return exc.returncode or 1
    except FileNotFoundError as exc:
        print(f"Error: {exc.filename or exc}: command not found", file=sys.stderr)
        return 127


def _alias(command: str):
    def entry(argv: Sequence[str] | None = None) -> int:
        extra = list(sys.argv[1:] if argv is None else argv)
        return main([command, *extra])

    entry.__name__ = f"{command}_entry"
    return entry


gwt_new = _alias("new")
gwt_pr = _alias("pr")
gwt_cleanup = _alias("cleanup")
gwt_list = _alias("list")
gwt_notify = _alias("notify")
claude_auto = _alias("claude")
gemini_auto = _alias("gemini")
codex_auto = _alias("codex")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
