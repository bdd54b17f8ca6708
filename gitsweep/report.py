"""Human-readable rendering of scan findings."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import click

from .models import Divergence, Finding, FindingKind, RunReport, Severity

MARKERS: dict[Severity, tuple[str, str]] = {
    Severity.INFO: ("ℹ", "blue"),
    Severity.SUCCESS: ("✔", "green"),
    Severity.WARNING: ("⚠", "yellow"),
    Severity.ERROR: ("✖", "red"),
}

# Behind-only counts as fine: nothing local is waiting to be pushed.
DIVERGENCE_SEVERITY: dict[Divergence, Severity] = {
    Divergence.UP_TO_DATE: Severity.SUCCESS,
    Divergence.BEHIND_ONLY: Severity.SUCCESS,
    Divergence.AHEAD_ONLY: Severity.WARNING,
    Divergence.DIVERGED: Severity.ERROR,
}

KIND_SEVERITY: dict[FindingKind, Severity] = {
    FindingKind.NO_REMOTE: Severity.WARNING,
    FindingKind.REMOTE_INACCESSIBLE: Severity.ERROR,
    FindingKind.FETCH_FAILED: Severity.ERROR,
    FindingKind.FETCH_TIMEOUT: Severity.ERROR,
    FindingKind.NO_UPSTREAM: Severity.WARNING,
    FindingKind.UPSTREAM_MISSING: Severity.WARNING,
    FindingKind.REPOSITORY_ERROR: Severity.ERROR,
}


def severity_for(finding: Finding) -> Severity:
    if finding.kind is FindingKind.DIVERGENCE:
        if finding.counts is None:
            raise ValueError("divergence finding without counts")
        return DIVERGENCE_SEVERITY[finding.counts.divergence]
    if finding.kind is FindingKind.WORKING_TREE:
        return Severity.WARNING if finding.dirty else Severity.SUCCESS
    return KIND_SEVERITY[finding.kind]


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _with_detail(message: str, detail: str | None) -> str:
    return f"{message}: {detail}" if detail else message


def _format_divergence(finding: Finding) -> str:
    if finding.counts is None:
        raise ValueError("divergence finding without counts")
    branch, upstream = finding.branch, finding.upstream
    ahead, behind = finding.counts.ahead, finding.counts.behind
    divergence = finding.counts.divergence
    if divergence is Divergence.UP_TO_DATE:
        return f"Branch '{branch}' is up to date with '{upstream}'"
    if divergence is Divergence.BEHIND_ONLY:
        return (
            f"Branch '{branch}' is up to date with '{upstream}' for pushing "
            f"(behind by {_plural(behind, 'commit')})"
        )
    if divergence is Divergence.AHEAD_ONLY:
        return f"Branch '{branch}' is ahead of '{upstream}' by {_plural(ahead, 'commit')}, needs push"
    return f"Branch '{branch}' has diverged from '{upstream}' (ahead {ahead}, behind {behind})"


def format_finding(finding: Finding) -> str:
    """Build the message text for a finding, without marker or color."""
    kind = finding.kind
    repo = finding.repo
    if kind is FindingKind.NO_REMOTE:
        return f"No remote configured for {repo}"
    if kind is FindingKind.REMOTE_INACCESSIBLE:
        return _with_detail(f"Remote inaccessible for {repo}", finding.detail)
    if kind is FindingKind.FETCH_FAILED:
        return _with_detail(f"Fetch failed for {repo}", finding.detail)
    if kind is FindingKind.FETCH_TIMEOUT:
        return _with_detail(f"Fetch timed out for {repo}", finding.detail)
    if kind is FindingKind.NO_UPSTREAM:
        count = len(finding.branches)
        noun = "branch" if count == 1 else "branches"
        return f"{count} {noun} without upstream in {repo}: {', '.join(finding.branches)}"
    if kind is FindingKind.UPSTREAM_MISSING:
        return f"Branch '{finding.branch}': upstream '{finding.upstream}' not found locally"
    if kind is FindingKind.DIVERGENCE:
        return _format_divergence(finding)
    if kind is FindingKind.WORKING_TREE:
        if finding.dirty:
            return f"Working tree dirty on branch '{finding.branch}' (uncommitted changes)"
        return f"Working tree clean on branch '{finding.branch}'"
    return _with_detail(f"Error processing {repo}", finding.detail)


class ReportRenderer:
    """Write status lines with severity markers as findings arrive."""

    def __init__(
        self,
        echo: Callable[..., None] = click.echo,
        color: bool | None = None,
    ) -> None:
        self._echo = echo
        self._color = color

    def line(self, severity: Severity, message: str) -> None:
        marker, fg = MARKERS[severity]
        self._echo(click.style(f"{marker} {message}", fg=fg), color=self._color)

    def blank(self) -> None:
        self._echo("", color=self._color)

    def discovered(self, report: RunReport) -> None:
        noun = "repository" if report.discovered == 1 else "repositories"
        self.line(
            Severity.INFO,
            f"Found {report.discovered} git {noun} under {report.root} (depth {report.depth})",
        )
        if report.discovered:
            self.blank()

    def repository(self, repo: Path) -> None:
        self._echo(click.style(f"Checking {repo}", bold=True), color=self._color)

    def finding(self, finding: Finding, report: RunReport) -> Severity:
        severity = severity_for(finding)
        report.record(severity)
        self.line(severity, format_finding(finding))
        return severity

    def summary(self, report: RunReport) -> None:
        noun = "repository" if report.scanned == 1 else "repositories"
        severity = Severity.ERROR if report.errors else Severity.WARNING if report.warnings else Severity.SUCCESS
        self.line(
            severity,
            f"Scanned {report.scanned} {noun}: "
            f"{_plural(report.errors, 'error')}, {_plural(report.warnings, 'warning')}",
        )
