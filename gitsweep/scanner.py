"""Scan driver: discovery, then one repository at a time."""

import logging
from collections.abc import Iterator
from pathlib import Path

from gitsweep.branches import evaluate_branches
from gitsweep.discovery import DEFAULT_DEPTH, find_repositories
from gitsweep.models import Finding, FindingKind, RunReport
from gitsweep.remote import DEFAULT_FETCH_TIMEOUT, probe_remote
from gitsweep.report import ReportRenderer
from gitsweep.worktree import working_tree_status

logger = logging.getLogger(__name__)


def scan_repository(repo_root: Path, fetch_timeout: float | None = DEFAULT_FETCH_TIMEOUT) -> Iterator[Finding]:
    """Yield findings for one repository in report order.

    A missing or unusable remote ends the repository after its single finding.
    """
    probe = probe_remote(repo_root, timeout=fetch_timeout)
    terminal = probe.finding(repo_root)
    if terminal is not None:
        yield terminal
        return
    yield from evaluate_branches(repo_root)
    yield working_tree_status(repo_root)


def run_scan(
    root: Path,
    depth: int = DEFAULT_DEPTH,
    renderer: ReportRenderer | None = None,
    fetch_timeout: float | None = DEFAULT_FETCH_TIMEOUT,
) -> RunReport:
    """Scan every repository under ``root`` and stream the report.

    Raises DiscoveryError when ``root`` cannot be searched. Failures inside a
    repository are reported and the scan moves on.
    """
    renderer = renderer or ReportRenderer()
    repositories = find_repositories(root, depth)
    report = RunReport(root=root.expanduser().resolve(), depth=depth, discovered=len(repositories))
    renderer.discovered(report)

    for index, repo_root in enumerate(repositories):
        if index:
            renderer.blank()
        renderer.repository(repo_root)
        for finding in _contained(repo_root, fetch_timeout):
            renderer.finding(finding, report)
        report.scanned += 1

    if repositories:
        renderer.blank()
        renderer.summary(report)
    return report


def _contained(repo_root: Path, fetch_timeout: float | None) -> Iterator[Finding]:
    try:
        yield from scan_repository(repo_root, fetch_timeout)
    except Exception as exc:
        logger.debug("Scan of %s failed", repo_root, exc_info=True)
        yield Finding(FindingKind.REPOSITORY_ERROR, repo_root, detail=str(exc) or type(exc).__name__)
