from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from conftest import git
from gitsweep import scanner
from gitsweep.models import FindingKind

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git missing")


def test_zero_repositories(tmp_path: Path, renderer, captured) -> None:
    (tmp_path / "empty" / "dir").mkdir(parents=True)
    report = scanner.run_scan(tmp_path, 2, renderer=renderer)
    assert report.discovered == 0
    assert report.scanned == 0
    assert captured == [f"ℹ Found 0 git repositories under {tmp_path.resolve()} (depth 2)"]


def test_repository_without_remote(sandbox, renderer, captured) -> None:
    repo = sandbox.init_repo("solo")
    scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert captured.matching("No remote configured") == [f"⚠ No remote configured for {repo}"]
    assert captured.matching("Branch") == []
    assert captured.matching("Working tree") == []


def test_inaccessible_remote(sandbox, tmp_path: Path, renderer, captured) -> None:
    repo = sandbox.init_repo("orphan")
    git("remote", "add", "origin", str(tmp_path / "gone.git"), cwd=repo)
    report = scanner.run_scan(sandbox.root, 1, renderer=renderer)
    inaccessible = captured.matching("inaccessible")
    assert len(inaccessible) == 1
    assert inaccessible[0].startswith(f"✖ Remote inaccessible for {repo}: fatal:")
    assert captured.matching("Branch") == []
    assert captured.matching("Working tree") == []
    assert report.errors == 1


def test_ahead_only_needs_push(sandbox, renderer, captured) -> None:
    repo = sandbox.init_repo("work")
    sandbox.add_origin(repo)
    for n in range(3):
        sandbox.commit(repo, f"change {n}")
    scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert captured.matching("Branch 'main'") == [
        "⚠ Branch 'main' is ahead of 'origin/main' by 3 commits, needs push"
    ]
    assert "✔ Working tree clean on branch 'main'" in captured


def test_behind_only_reported_as_success(sandbox, renderer, captured) -> None:
    repo = sandbox.init_repo("work")
    sandbox.commit(repo, "second")
    sandbox.add_origin(repo)
    git("reset", "--quiet", "--hard", "HEAD~1", cwd=repo)
    scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert captured.matching("Branch 'main'") == [
        "✔ Branch 'main' is up to date with 'origin/main' for pushing (behind by 1 commit)"
    ]


def test_dirty_working_tree_names_branch(sandbox, renderer, captured) -> None:
    repo = sandbox.init_repo("work")
    sandbox.add_origin(repo)
    git("checkout", "--quiet", "-b", "feature-x", cwd=repo)
    (repo / "README.md").write_text("edited\n")
    scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert captured.matching("Working tree") == [
        "⚠ Working tree dirty on branch 'feature-x' (uncommitted changes)"
    ]
    assert f"⚠ 1 branch without upstream in {repo}: feature-x" in captured


def test_repository_blocks_and_summary(sandbox, renderer, captured) -> None:
    first = sandbox.init_repo("a-first")
    second = sandbox.init_repo("b-second")
    sandbox.add_origin(second)
    report = scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert report.scanned == 2
    assert captured[0].startswith("ℹ Found 2 git repositories")
    first_header = captured.index(f"Checking {first}")
    second_header = captured.index(f"Checking {second}")
    assert first_header < second_header
    assert captured[second_header - 1] == ""
    assert captured[-1] == "⚠ Scanned 2 repositories: 0 errors, 1 warning"


def test_failure_in_one_repository_does_not_stop_the_run(sandbox, renderer, captured, monkeypatch) -> None:
    broken = sandbox.init_repo("a-broken")
    sandbox.add_origin(broken)
    healthy = sandbox.init_repo("b-healthy")
    sandbox.add_origin(healthy)
    original = scanner.evaluate_branches

    def _evaluate(repo_root: Path):
        if repo_root == broken:
            raise PermissionError("permission denied")
        return original(repo_root)

    monkeypatch.setattr(scanner, "evaluate_branches", _evaluate)
    report = scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert f"✖ Error processing {broken}: permission denied" in captured
    assert "✔ Branch 'main' is up to date with 'origin/main'" in captured
    assert report.scanned == 2
    assert report.errors == 1


def test_scan_is_idempotent(sandbox, captured, renderer) -> None:
    repo = sandbox.init_repo("work")
    sandbox.add_origin(repo)
    sandbox.commit(repo, "unpushed")
    scanner.run_scan(sandbox.root, 1, renderer=renderer)
    first = list(captured)
    captured.clear()
    scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert list(captured) == first


def test_scan_repository_stops_after_terminal_finding(sandbox) -> None:
    repo = sandbox.init_repo("solo")
    findings = list(scanner.scan_repository(repo))
    assert [f.kind for f in findings] == [FindingKind.NO_REMOTE]


def test_tag_named_like_branch_keeps_full_report(sandbox, renderer, captured) -> None:
    repo = sandbox.init_repo("work")
    sandbox.add_origin(repo)
    git("tag", "main", cwd=repo)
    report = scanner.run_scan(sandbox.root, 1, renderer=renderer)
    assert captured.matching("Error processing") == []
    assert "✔ Branch 'main' is up to date with 'origin/main'" in captured
    assert "✔ Working tree clean on branch 'main'" in captured
    assert report.errors == 0
