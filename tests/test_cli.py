from pathlib import Path

import pytest

from gwt_kit import cli
from gwt_kit.config import AI_ISSUE_PROMPT
from gwt_kit.process import FakeCommandRunner


ISSUE = "https://github.com/acme/widgets/issues/7"


@pytest.fixture()
def runner(monkeypatch: pytest.MonkeyPatch) -> FakeCommandRunner:
    fake = FakeCommandRunner()
    monkeypatch.setattr("gwt_kit.cli.CommandRunner", lambda: fake)
    return fake


def test_assistant_without_url_prints_usage(runner: FakeCommandRunner, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["claude"]) == 1
    assert "Usage: claude_auto <github-issue-url>" in capsys.readouterr().err
    assert runner.calls == []


def test_alias_entry_points_forward_arguments(runner: FakeCommandRunner) -> None:
    assert cli.gemini_auto([ISSUE]) == 0
    assert runner.calls == [("gemini", "--yolo", f"{AI_ISSUE_PROMPT} {ISSUE}")]


def test_assistant_exit_code_is_returned(runner: FakeCommandRunner) -> None:
    runner.script(["codex", "--full-auto", f"{AI_ISSUE_PROMPT} {ISSUE}"], returncode=5)
    assert cli.main(["codex", ISSUE]) == 5


def test_missing_assistant_binary(runner: FakeCommandRunner, capsys: pytest.CaptureFixture[str]) -> None:
    runner.mark_missing("claude")
    assert cli.main(["claude", ISSUE]) == 127
    assert "claude: command not found" in capsys.readouterr().err


def test_unknown_assistant(runner: FakeCommandRunner, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["assist", "copilot", ISSUE]) == 1
    assert "Unknown assistant copilot" in capsys.readouterr().err
    assert runner.calls == []


def test_configured_assistant_via_assist(
    runner: FakeCommandRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("prompt: 'Fix'\nassistants:\n  aider:\n    bin: aider\n    auto_args: [--yes]\n", encoding="utf-8")
    monkeypatch.setenv("GWT_KIT_CONFIG", str(path))

    assert cli.main(["assist", "aider", ISSUE]) == 0
    assert runner.calls == [("aider", "--yes", f"Fix {ISSUE}")]


def test_pr_on_trunk_fails(runner: FakeCommandRunner, capsys: pytest.CaptureFixture[str]) -> None:
    runner.script(["git", "branch", "--show-current"], stdout="main\n")

    assert cli.gwt_pr([]) == 1
    assert "Error: Cannot create PR from main branch" in capsys.readouterr().err


def test_pr_push_failure_returns_git_exit_code(runner: FakeCommandRunner, capsys: pytest.CaptureFixture[str]) -> None:
    runner.script(["git", "branch", "--show-current"], stdout="topic\n")
    runner.script(["git", "rev-list", "--count", "main..topic"], stdout="1\n")
    runner.script(["git", "push", "-u", "origin", "topic"], returncode=128)

    assert cli.main(["pr"]) == 128
    assert "git push -u origin topic" in capsys.readouterr().err
    assert runner.commands_starting_with("gh") == []


def test_list_prints_worktrees(runner: FakeCommandRunner, capsys: pytest.CaptureFixture[str]) -> None:
    runner.script(
        ["git", "worktree", "list", "--porcelain"],
        stdout=(
            "worktree /work/repo\nHEAD abcdef1234\nbranch refs/heads/main\n\n"
            "worktree /work/scratch\nHEAD 1234567890\ndetached\nlocked\n"
        ),
    )

    assert cli.main(["list"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["/work/repo [main]", "/work/scratch (detached 1234567) locked"]


def test_notify_stdout_channel(runner: FakeCommandRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("notify:\n  channel: stdout\n", encoding="utf-8")
    monkeypatch.setenv("GWT_KIT_CONFIG", str(path))

    assert cli.gwt_notify(["Task complete"]) == 0
    assert "[NOTIFY] Claude Code\nTask complete" in capsys.readouterr().out


def test_bad_config_exits_with_two(runner: FakeCommandRunner, tmp_path: Path) -> None:
    assert cli.main(["--config", str(tmp_path / "missing.yaml"), "list"]) == 2
    assert runner.calls == []


def test_new_creates_worktree(
    runner: FakeCommandRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
    runner.script(["git", "rev-parse", "--show-toplevel"], stdout="/work/repo\n")

    assert cli.gwt_new(["feature/login"]) == 0

    assert ("git", "worktree", "add", "/work/login", "-b", "feature/login") in runner.calls
    assert "Worktree ready: /work/login" in capsys.readouterr().out


@pytest.mark.parametrize("channel", ["pager", "''"])
def test_invalid_notify_channel_exits_with_two(
    runner: FakeCommandRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str], channel: str
) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(f"notify:\n  channel: {channel}\n", encoding="utf-8")

    assert cli.main(["--config", str(path), "notify", "hi"]) == 2
    assert "Invalid gwt-kit config" in capsys.readouterr().err
    assert runner.calls == []


def test_malformed_config_exits_with_two(runner: FakeCommandRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("worktree: [unclosed\n", encoding="utf-8")

    assert cli.main(["--config", str(path), "list"]) == 2
    assert "Invalid gwt-kit config" in capsys.readouterr().err
    assert runner.calls == []
