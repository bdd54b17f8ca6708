"""Per-branch upstream comparison."""

from collections.abc import Iterator
from pathlib import Path

from gitsweep import git_ops
from gitsweep.models import Branch, Finding, FindingKind


def evaluate_branches(repo_root: Path, branches: list[Branch] | None = None) -> Iterator[Finding]:
    """Yield upstream findings for every local branch.

    Branches without an upstream are summarised in one finding. Every branch
    with an upstream gets exactly one finding: either its missing upstream ref
    or its ahead/behind counts.
    """
    if branches is None:
        branches = git_ops.list_local_branches(repo_root)

    untracked = tuple(branch.name for branch in branches if not branch.has_upstream)
    if untracked:
        yield Finding(FindingKind.NO_UPSTREAM, repo_root, branches=untracked)

    for branch in branches:
        if branch.has_upstream:
            yield evaluate_branch(repo_root, branch)


def evaluate_branch(repo_root: Path, branch: Branch) -> Finding:
    upstream_ref = branch.upstream_ref or f"refs/remotes/{branch.upstream}"
    if not git_ops.ref_exists(repo_root, upstream_ref):
        return Finding(
            FindingKind.UPSTREAM_MISSING,
            repo_root,
            branch=branch.name,
            upstream=branch.upstream,
        )
    counts = git_ops.count_ahead_behind(repo_root, f"refs/heads/{branch.name}", upstream_ref)
    return Finding(
        FindingKind.DIVERGENCE,
        repo_root,
        branch=branch.name,
        upstream=branch.upstream,
        counts=counts,
    )
