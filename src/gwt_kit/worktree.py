"""Git worktree lifecycle: create, open pull request, list and cleanup."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from pathlib import PurePosixPath
from typing import Iterable
from typing import List
from typing import Optional

from .config import KitConfig
from .process import CommandRunner
from .terminal import TerminalLauncher


logger = logging.getLogger(__name__)

HEADS_PREFIX = "refs/heads/"
PROTECTED_BRANCH = "main"


class WorktreeError(RuntimeError):
    """Raised when a worktree operation refuses to proceed."""

    def __init__(self, message: str, *, kind: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class WorktreeInfo:
    path: Path
    head: str | None = None
    ref: str | None = None
    detached: bool = False
    bare: bool = False
    locked: bool = False
    prunable: bool = False

    @property
    def branch(self) -> str | None:
        if self.ref and self.ref.startswith(HEADS_PREFIX):
            return self.ref[len(HEADS_PREFIX):]
        return self.ref


@dataclass
class CleanupReport:
    removed: list[Path] = field(default_factory=list)
    deleted_branches: list[str] = field(default_factory=list)
    failed_branches: list[str] = field(default_factory=list)


def parse_worktree_porcelain(output: str) -> List[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    Records are separated by blank lines and always start with a
    ``worktree <path>`` line. Paths are taken verbatim so that directories
    containing spaces survive.
    """
    infos: list[WorktreeInfo] = []
    current: Optional[dict] = None

    def flush() -> None:
        if current is not None:
            infos.append(WorktreeInfo(**current))

    for raw in output.splitlines():
        line = raw.rstrip("\r")
        if not line.strip():
            flush()
            current = None
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            current = {"path": Path(value)}
        elif current is None:
            continue
        elif key == "HEAD":
            current["head"] = value
        elif key == "branch":
            current["ref"] = value
        elif key in {"detached", "bare", "locked", "prunable"}:
            current[key] = True
    flush()
    return infos


def default_branch_name(prefix: str, now: float | None = None) -> str:
    timestamp = int(time.time() if now is None else now)
    return f"{prefix}{timestamp}"


def worktree_dir_name(branch: str) -> str:
    """Directory name for a branch: its final path segment."""
    name = PurePosixPath(branch).name
    if not name:
        raise ValueError(f"cannot derive a directory name from branch {branch!r}")
    return name


def _same_path(left: Path, right: Path) -> bool:
    return left.resolve() == right.resolve()


class WorktreeManager:
    """Create, submit and clean up git worktrees next to the repository root."""

    def __init__(
        self,
        config: KitConfig,
        runner: CommandRunner | None = None,
        terminal: TerminalLauncher | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or CommandRunner()
        self.terminal = terminal or TerminalLauncher(config.terminal)
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()

    @property
    def trunk(self) -> str:
        return self.config.worktree.trunk

    # ------------------------------------------------------------------
    def create(self, branch_name: str | None = None) -> Path:
        branch = branch_name or default_branch_name(self.config.worktree.default_prefix)
        target_path = self.repo_root().parent / worktree_dir_name(branch)

        self._git(["worktree", "add", str(target_path), "-b", branch])

        if not self.terminal.open(target_path, branch):
            logger.info("Worktree %s created but no terminal window was opened", target_path)
        return target_path

    def list(self) -> List[WorktreeInfo]:
        output = self._git(["worktree", "list", "--porcelain"], capture_output=True)
        return parse_worktree_porcelain(output)

    def open_pull_request(self) -> None:
        branch = self._git(["branch", "--show-current"], capture_output=True).strip()
        if branch == self.trunk:
            raise WorktreeError(f"Cannot create PR from {self.trunk} branch", kind="branch_is_trunk")
        if not branch:
            raise WorktreeError("Cannot create PR from a detached HEAD", kind="detached_head")

        print("Current git status:")
        print(self._git(["status"], capture_output=True), end="")

        has_changes = False
        if self._git_failed(["diff", "--quiet"]):
            print("You have unstaged changes. Adding all changes...")
            self._git(["add", "-A"])
            has_changes = True

        if self._git(["ls-files", "--others", "--exclude-standard"], capture_output=True).strip():
            print("You have untracked files. Adding all changes...")
            self._git(["add", "-A"])
            has_changes = True

        if self._git_failed(["diff", "--cached", "--quiet"]):
            print("Committing changes...")
            message = self.config.worktree.commit_message.format(branch=branch)
            self._git(["commit", "-m", message])
            has_changes = True

        if self.commits_ahead(branch) == 0 and not has_changes:
            raise WorktreeError(
                f"No commits to push. Branch '{branch}' is up to date with {self.trunk}.",
                kind="nothing_to_submit",
            )

        print(f"Pushing to {self.config.worktree.remote}...")
        self._git(["push", "-u", self.config.worktree.remote, branch])

        print("Creating pull request...")
        self.runner.run(
            [
                self.config.gh_bin,
                "pr",
                "create",
                "--base",
                self.trunk,
                "--head",
                branch,
                "--title",
                branch,
                "--body",
                self.config.worktree.pr_body.format(branch=branch),
            ],
            cwd=self.cwd,
        )

    def commits_ahead(self, branch: str) -> int:
        proc = self.runner.run(
            [self.config.git_bin, "rev-list", "--count", f"{self.trunk}..{branch}"],
            cwd=self.cwd,
            capture_output=True,
            check=False,
        )
        if proc.returncode != 0:
            return 0
        try:
            return int((proc.stdout or "").strip())
        except ValueError:
            return 0

    def cleanup(self) -> CleanupReport:
        print("Listing all worktrees:")
        self._print_listing()
        print("")
        print(f"Removing all worktrees except {self.trunk}...")

        repo_root = self.repo_root()
        infos = self.list()
        # git always lists the main worktree first
        main_path = infos[0].path if infos else None
        to_remove = [
            info.path
            for info in infos
            if not info.bare
            and not _same_path(info.path, repo_root)
            and not (main_path is not None and _same_path(info.path, main_path))
        ]
        branches = self._branches_to_delete(infos)

        report = CleanupReport()
        for path in to_remove:
            print(f"Removing worktree: {path}")
            self._git(["worktree", "remove", str(path), "--force"])
            report.removed.append(path)

        for branch in branches:
            print(f"Deleting branch: {branch}")
            proc = self.runner.run(
                [self.config.git_bin, "branch", "-D", branch],
                cwd=self.cwd,
                capture_output=True,
                check=False,
            )
            if proc.returncode == 0:
                report.deleted_branches.append(branch)
            else:
                logger.warning("git branch -D %s failed: %s", branch, (proc.stderr or "").strip())
                print(f"Branch {branch} already deleted or doesn't exist")
                report.failed_branches.append(branch)

        self._git(["worktree", "prune"])

        print("Cleanup complete!")
        print("")
        print("Remaining worktrees:")
        self._print_listing()
        return report

    def repo_root(self) -> Path:
        return Path(self._git(["rev-parse", "--show-toplevel"], capture_output=True).strip())

    # ------------------------------------------------------------------
    def _branches_to_delete(self, infos: Iterable[WorktreeInfo]) -> list[str]:
        protected = {PROTECTED_BRANCH, self.trunk}
        branches: list[str] = []
        for info in infos:
            if not info.ref or not info.ref.startswith(HEADS_PREFIX):
                continue
            branch = info.branch
            if branch and branch not in protected and branch not in branches:
                branches.append(branch)
        return branches

    def _print_listing(self) -> None:
        print(self._git(["worktree", "list"], capture_output=True), end="")

    def _git_failed(self, args: Iterable[str]) -> bool:
        proc = self.runner.run([self.config.git_bin, *args], cwd=self.cwd, check=False)
        return proc.returncode != 0

    def _git(self, args: Iterable[str], capture_output: bool = False) -> str:
        proc = self.runner.run(
            [self.config.git_bin, *args],
            cwd=self.cwd,
            capture_output=capture_output,
        )
        return (proc.stdout or "") if capture_output else ""
