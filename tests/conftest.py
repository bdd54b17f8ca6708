from __future__ import annotations

import subprocess
from pathlib import Path

import click
import pytest

from gitsweep.report import ReportRenderer


def git(*args: str, cwd: Path) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout.strip()


class GitSandbox:
    """Builds throwaway repositories and bare remotes under one directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def init_repo(self, name: str, branch: str = "main") -> Path:
        repo = self.root / name
        repo.mkdir(parents=True)
        git("init", "--quiet", cwd=repo)
        git("symbolic-ref", "HEAD", f"refs/heads/{branch}", cwd=repo)
        self.commit(repo, "init", filename="README.md")
        return repo

    def commit(self, repo: Path, message: str, filename: str | None = None) -> None:
        target = repo / (filename or f"{message.replace(' ', '_')}.txt")
        target.write_text(f"{message}\n")
        git("add", target.name, cwd=repo)
        git("commit", "--quiet", "-m", message, cwd=repo)

    def add_origin(self, repo: Path, branch: str = "main") -> Path:
        bare = self.root / f"{repo.name}-origin.git"
        git("init", "--quiet", "--bare", str(bare), cwd=self.root)
        git("remote", "add", "origin", str(bare), cwd=repo)
        git("push", "--quiet", "-u", "origin", branch, cwd=repo)
        return bare


@pytest.fixture(autouse=True)
def git_identity(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    config = tmp_path_factory.mktemp("gitconfig") / "config"
    config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")


@pytest.fixture
def sandbox(tmp_path: Path) -> GitSandbox:
    root = tmp_path / "sandbox"
    root.mkdir()
    return GitSandbox(root.resolve())


class CapturedLines(list):
    """Collects rendered lines with styling removed."""

    def echo(self, message: str = "", color: bool | None = None) -> None:
        self.append(click.unstyle(message))

    def matching(self, text: str) -> list[str]:
        return [line for line in self if text in line]


@pytest.fixture
def captured() -> CapturedLines:
    return CapturedLines()


@pytest.fixture
def renderer(captured: CapturedLines) -> ReportRenderer:
    return ReportRenderer(echo=captured.echo)


@pytest.fixture
def clean_imap_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so monkeypatch restores whatever load_dotenv writes later
    for key in ("IMAP_HOST", "IMAP_PORT", "IMAP_SECURE", "IMAP_USERNAME", "IMAP_PASSWORD"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
