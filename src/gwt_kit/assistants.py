"""Launch AI coding assistants against a GitHub issue."""
from __future__ import annotations

from typing import Mapping

from .config import AssistantConfig
from .process import CommandRunner


class UsageError(ValueError):
    """Raised when a launcher is called without its required argument."""


class AssistantLauncher:
    """Run one assistant CLI in auto-approval mode with the issue prompt."""

    def __init__(
        self,
        name: str,
        config: AssistantConfig,
        prompt: str,
        runner: CommandRunner | None = None,
    ) -> None:
        self.name = name
        self.config = config
        self.prompt = prompt
        self.runner = runner or CommandRunner()

    @property
    def usage(self) -> str:
        return f"Usage: {self.name}_auto <github-issue-url>"

    def instruction(self, issue_url: str) -> str:
        return f"{self.prompt} {issue_url}"

    def command(self, issue_url: str) -> list[str]:
        return [self.config.bin, *self.config.auto_args, self.instruction(issue_url)]

    def launch(self, issue_url: str | None) -> int:
        """Run the assistant and return its exit code unchanged."""
        if not issue_url or not issue_url.strip():
            raise UsageError(self.usage)
        proc = self.runner.run(self.command(issue_url.strip()), check=False)
        return proc.returncode


def build_launchers(
    assistants: Mapping[str, AssistantConfig],
    prompt: str,
    runner: CommandRunner | None = None,
) -> dict[str, AssistantLauncher]:
    runner = runner or CommandRunner()
    return {name: AssistantLauncher(name, spec, prompt, runner) for name, spec in assistants.items()}
