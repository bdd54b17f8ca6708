"""Working tree cleanliness check."""

from pathlib import Path

from gitsweep import git_ops
from gitsweep.models import Finding, FindingKind


def current_branch_label(repo_root: Path) -> str:
    branch = git_ops.get_current_branch(repo_root)
    if branch:
        return branch
    head = git_ops.get_head_commit(repo_root)
    return f"HEAD (detached at {head})" if head else "HEAD (detached)"


def working_tree_status(repo_root: Path) -> Finding:
    """Report whether tracked files have uncommitted changes."""
    return Finding(
        FindingKind.WORKING_TREE,
        repo_root,
        branch=current_branch_label(repo_root),
        dirty=git_ops.has_tracked_changes(repo_root),
    )
