"""Data models for gitsweep."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Divergence(Enum):
    """Relationship between a local branch and its upstream."""

    UP_TO_DATE = "up-to-date"
    BEHIND_ONLY = "behind-only"
    AHEAD_ONLY = "ahead-only"
    DIVERGED = "diverged"


def classify_divergence(ahead: int, behind: int) -> Divergence:
    """Classify a pair of ahead/behind commit counts."""
    if ahead < 0 or behind < 0:
        raise ValueError(f"commit counts must be non-negative, got ahead={ahead} behind={behind}")
    if ahead and behind:
        return Divergence.DIVERGED
    if ahead:
        return Divergence.AHEAD_ONLY
    if behind:
        return Divergence.BEHIND_ONLY
    return Divergence.UP_TO_DATE


@dataclass(frozen=True)
class AheadBehind:
    """Commit counts ahead/behind a reference."""

    ahead: int
    behind: int

    @property
    def divergence(self) -> Divergence:
        return classify_divergence(self.ahead, self.behind)


@dataclass(frozen=True)
class Branch:
    """A local branch and its configured upstream, if any."""

    name: str
    upstream: str | None = None
    upstream_ref: str | None = None

    @property
    def has_upstream(self) -> bool:
        return bool(self.upstream)


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class FindingKind(Enum):
    NO_REMOTE = "no-remote"
    REMOTE_INACCESSIBLE = "remote-inaccessible"
    FETCH_FAILED = "fetch-failed"
    FETCH_TIMEOUT = "fetch-timeout"
    NO_UPSTREAM = "no-upstream"
    UPSTREAM_MISSING = "upstream-missing"
    DIVERGENCE = "divergence"
    WORKING_TREE = "working-tree"
    REPOSITORY_ERROR = "repository-error"


@dataclass(frozen=True)
class Finding:
    """One reportable fact about a repository or one of its branches."""

    kind: FindingKind
    repo: Path
    branch: str | None = None
    upstream: str | None = None
    counts: AheadBehind | None = None
    dirty: bool | None = None
    branches: tuple[str, ...] = ()
    detail: str | None = None


@dataclass
class RunReport:
    """Running totals for one scan; findings are streamed, only counts are kept."""

    root: Path
    depth: int
    discovered: int = 0
    scanned: int = 0
    severities: Counter[Severity] = field(default_factory=Counter)

    def record(self, severity: Severity) -> None:
        self.severities[severity] += 1

    @property
    def errors(self) -> int:
        return self.severities[Severity.ERROR]

    @property
    def warnings(self) -> int:
        return self.severities[Severity.WARNING]
