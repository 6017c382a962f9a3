"""Configuration loading for gwt-kit."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator
from pydantic import model_validator


AI_ISSUE_PROMPT = (
    "You are working on a GitHub issue. Please read the issue details "
    "(e.g. using `gh` terminal command) and implement the necessary changes "
    "to resolve it. Issue URL:"
)

CONFIG_ENV = "GWT_KIT_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/gwt-kit/config.yaml")
NOTIFY_CHANNELS = ("desktop", "stdout")


class WorktreeConfig(BaseModel):
    """Branch naming and pull request conventions."""

    trunk: str = "main"
    remote: str = "origin"
    default_prefix: str = "feature/"
    commit_message: str = "Changes from worktree {branch}"
    pr_body: str = "Auto-generated PR from worktree branch {branch}"


class TerminalConfig(BaseModel):
    """Terminal application used for new worktree windows and focus scripts."""

    app: str = "Terminal"
    osascript_bin: str = "osascript"
    shell: str = "zsh"


class NotifyConfig(BaseModel):
    channel: str = "desktop"
    title: str = "Claude Code"
    sound: str = "Glass"
    notifier_bin: str = "terminal-notifier"
    script_dir: Path = Path("/tmp")
    script_prefix: str = "claude_focus_"

    @field_validator("channel")
    @classmethod
    def _check_channels(cls, value: str) -> str:
        channels = [item.strip() for item in value.split(",") if item.strip()]
        if not channels:
            raise ValueError("notification channel must not be empty")
        unknown = [item for item in channels if item not in NOTIFY_CHANNELS]
        if unknown:
            raise ValueError(f"unknown notification channel(s): {', '.join(unknown)}")
        return value

    def expanded_script_dir(self) -> Path:
        return self.script_dir.expanduser()


class AssistantConfig(BaseModel):
    """Invocation details for one AI assistant CLI."""

    bin: str
    auto_args: list[str] = Field(default_factory=list)


def _default_assistants() -> dict[str, AssistantConfig]:
    return {
        "claude": AssistantConfig(bin="claude", auto_args=["--dangerously-skip-permissions"]),
        "gemini": AssistantConfig(bin="gemini", auto_args=["--yolo"]),
        "codex": AssistantConfig(bin="codex", auto_args=["--full-auto"]),
    }


class KitConfig(BaseModel):
    """Top-level gwt-kit configuration."""

    git_bin: str = "git"
    gh_bin: str = "gh"
    prompt: str = AI_ISSUE_PROMPT
    worktree: WorktreeConfig = Field(default_factory=WorktreeConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    assistants: dict[str, AssistantConfig] = Field(default_factory=_default_assistants)

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _merge_default_assistants(cls, data: Any) -> Any:
        """Let user-defined assistants extend the built-in ones."""
        if not isinstance(data, dict) or not isinstance(data.get("assistants"), dict):
            return data
        payload = dict(data)
        merged: dict[str, Any] = {name: spec.model_dump() for name, spec in _default_assistants().items()}
        merged.update(payload["assistants"])
        payload["assistants"] = merged
        return payload


def load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def resolve_config_path(path: Path | None = None) -> tuple[Path, bool]:
    """Return the config path to read and whether it was requested explicitly."""
    if path is not None:
        return path.expanduser(), True
    env_value = os.getenv(CONFIG_ENV, "").strip()
    if env_value:
        return Path(env_value).expanduser(), True
    return DEFAULT_CONFIG_PATH.expanduser(), False


def load_config(path: Path | None = None) -> KitConfig:
    config_path, explicit = resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ValueError(f"gwt-kit config not found: {config_path}")
        return KitConfig()
    try:
        raw = load_yaml(config_path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid gwt-kit config at {config_path}: {exc}") from exc
    try:
        return KitConfig.model_validate(raw or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid gwt-kit config at {config_path}: {exc}") from exc
