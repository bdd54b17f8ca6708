"""Git subprocess operations."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from gitsweep.models import AheadBehind, Branch

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Git command failed."""

    def __init__(self, cmd: Sequence[str], stderr: str) -> None:
        self.cmd = cmd
        self.stderr = stderr
        super().__init__(f"git {' '.join(cmd)}: {stderr}")


class GitTimeout(GitError):
    """Git command did not finish in time."""

    def __init__(self, cmd: Sequence[str], timeout: float) -> None:
        self.timeout = timeout
        super().__init__(cmd, f"timed out after {timeout:g}s")


def run_unchecked(
    args: Sequence[str],
    cwd: Path | None = None,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the completed process whatever its exit status.

    stdin is closed so git can never wait on the terminal.
    """
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=env,
            check=False,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise GitTimeout(args, timeout or 0) from exc


def run(args: Sequence[str], cwd: Path | None = None, timeout: float | None = None) -> str:
    """Run a git command and return stdout."""
    result = run_unchecked(args, cwd=cwd, timeout=timeout)
    if result.returncode != 0:
        raise GitError(args, result.stderr.strip() or result.stdout.strip())
    return result.stdout.strip()


def try_run(args: Sequence[str], cwd: Path | None = None) -> str | None:
    """Run a git command, returning None on failure."""
    try:
        return run(args, cwd=cwd)
    except GitTimeout:
        raise
    except GitError:
        return None


def list_remotes(repo_root: Path) -> list[str]:
    """List configured remote names."""
    out = run(["remote"], cwd=repo_root)
    return [line.strip() for line in out.splitlines() if line.strip()]


def fetch_all_prune(repo_root: Path, timeout: float | None = None) -> subprocess.CompletedProcess[str]:
    """Fetch every remote, pruning stale remote-tracking refs.

    Credential prompts are disabled: a remote that asks for a login fails
    right away with a 'fatal:' line instead of hanging until the timeout.
    """
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    return run_unchecked(["fetch", "--all", "--prune"], cwd=repo_root, timeout=timeout, env=env)


def list_local_branches(repo_root: Path) -> list[Branch]:
    """List local branches with their upstream short name and full ref."""
    out = run(
        [
            "for-each-ref",
            "--format=%(refname:lstrip=2)%09%(upstream:lstrip=2)%09%(upstream)",
            "refs/heads",
        ],
        cwd=repo_root,
    )
    branches: list[Branch] = []
    for line in out.splitlines():
        name, _, rest = line.partition("\t")
        upstream, _, upstream_ref = rest.partition("\t")
        if not name.strip():
            continue
        branches.append(
            Branch(
                name=name.strip(),
                upstream=upstream.strip() or None,
                upstream_ref=upstream_ref.strip() or None,
            )
        )
    return branches


def ref_exists(repo_root: Path, ref: str) -> bool:
    """Check if a fully qualified ref exists locally."""
    return try_run(["show-ref", "--verify", "--quiet", ref], cwd=repo_root) is not None


def count_ahead_behind(repo_root: Path, left: str, right: str) -> AheadBehind:
    """Count commits ahead and behind between two refs."""
    out = run(["rev-list", "--left-right", "--count", f"{left}...{right}"], cwd=repo_root)
    parts = out.split()
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise GitError(["rev-list", "--left-right", "--count"], f"unexpected output: {out!r}")
    return AheadBehind(ahead=int(parts[0]), behind=int(parts[1]))


def get_current_branch(repo_root: Path) -> str | None:
    """Get the checked-out branch name, or None when HEAD is detached."""
    return try_run(["symbolic-ref", "--short", "-q", "HEAD"], cwd=repo_root) or None


def get_head_commit(repo_root: Path) -> str | None:
    """Get the abbreviated commit id of HEAD."""
    return try_run(["rev-parse", "--short", "HEAD"], cwd=repo_root)


def has_tracked_changes(repo_root: Path) -> bool:
    """Check if tracked files differ from HEAD, ignoring untracked files."""
    status = run(["status", "--porcelain", "--untracked-files=no"], cwd=repo_root)
    return bool(status.strip())
