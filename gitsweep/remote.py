"""Remote reachability probe."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gitsweep import git_ops
from gitsweep.models import Finding, FindingKind

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 60.0

# git reports unreachable remotes only as text.
_INACCESSIBLE_PATTERNS = (
    re.compile(r"repository not found", re.IGNORECASE),
    re.compile(r"^fatal:", re.IGNORECASE | re.MULTILINE),
)
_DIAGNOSTIC_LINE = re.compile(r"^(?:fatal|error|remote):.*$", re.IGNORECASE | re.MULTILINE)


class FetchOutcome(Enum):
    OK = "ok"
    INACCESSIBLE = "inaccessible"
    FAILED = "failed"
    TIMED_OUT = "timed-out"


@dataclass(frozen=True)
class RemoteProbe:
    """Configured remotes and the result of fetching them."""

    remotes: tuple[str, ...]
    outcome: FetchOutcome | None = None
    detail: str = ""

    @property
    def has_remote(self) -> bool:
        return bool(self.remotes)

    @property
    def reachable(self) -> bool | None:
        if not self.remotes:
            return None
        return self.outcome is FetchOutcome.OK

    def finding(self, repo: Path) -> Finding | None:
        """Return the terminal finding for this repository, or None to continue."""
        if not self.remotes:
            return Finding(FindingKind.NO_REMOTE, repo)
        kind = _TERMINAL_KINDS.get(self.outcome)
        if kind is None:
            return None
        return Finding(kind, repo, detail=self.detail or None)


_TERMINAL_KINDS = {
    FetchOutcome.INACCESSIBLE: FindingKind.REMOTE_INACCESSIBLE,
    FetchOutcome.FAILED: FindingKind.FETCH_FAILED,
    FetchOutcome.TIMED_OUT: FindingKind.FETCH_TIMEOUT,
}


def classify_fetch_output(returncode: int, output: str) -> FetchOutcome:
    """Classify a ``git fetch`` run from its exit status and combined output."""
    if any(pattern.search(output) for pattern in _INACCESSIBLE_PATTERNS):
        return FetchOutcome.INACCESSIBLE
    if returncode != 0:
        return FetchOutcome.FAILED
    return FetchOutcome.OK


def diagnostic_line(output: str) -> str:
    """Pick the most telling line out of fetch output."""
    fatal = re.search(r"^fatal:.*$", output, re.IGNORECASE | re.MULTILINE)
    if fatal:
        return fatal.group(0).strip()
    match = _DIAGNOSTIC_LINE.search(output)
    if match:
        return match.group(0).strip()
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def probe_remote(repo_root: Path, timeout: float | None = DEFAULT_FETCH_TIMEOUT) -> RemoteProbe:
    """List remotes and fetch them all with prune."""
    remotes = tuple(git_ops.list_remotes(repo_root))
    if not remotes:
        return RemoteProbe(remotes=())

    try:
        result = git_ops.fetch_all_prune(repo_root, timeout=timeout)
    except git_ops.GitTimeout as exc:
        logger.debug("Fetch timed out in %s", repo_root)
        return RemoteProbe(remotes, FetchOutcome.TIMED_OUT, f"no response after {exc.timeout:g}s")

    output = "\n".join(part for part in (result.stderr, result.stdout) if part)
    outcome = classify_fetch_output(result.returncode, output)
    if outcome is not FetchOutcome.OK:
        logger.debug("Fetch in %s exited %d: %s", repo_root, result.returncode, output.strip())
        return RemoteProbe(remotes, outcome, diagnostic_line(output))
    return RemoteProbe(remotes, outcome)
