"""Locate git working trees below a root directory."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_DIR = ".git"
DEFAULT_DEPTH = 2


class DiscoveryError(Exception):
    """The scan root cannot be searched."""


def is_work_tree(path: Path) -> bool:
    """Check if a directory holds git metadata."""
    return (path / GIT_DIR).is_dir()


def find_repositories(root: Path, depth: int = DEFAULT_DEPTH) -> list[Path]:
    """Find working tree roots at most ``depth`` levels below ``root``.

    Depth 0 checks ``root`` alone. Nested repositories are reported too;
    ``.git`` directories and symlinked directories are never entered.
    The result is sorted so reports are reproducible.
    """
    if depth < 0:
        raise ValueError(f"depth must be non-negative, got {depth}")
    root = root.expanduser()
    found: list[Path] = []
    try:
        if not root.is_dir():
            raise DiscoveryError(f"'{root}' is not a directory")
        root = root.resolve()
        children = list(root.iterdir())
        if is_work_tree(root):
            found.append(root)
    except OSError as exc:
        raise DiscoveryError(f"cannot read '{root}': {exc.strerror or exc}") from exc
    if depth > 0:
        for child in children:
            _walk(child, depth - 1, found)
    return sorted(found)


def _walk(path: Path, remaining: int, found: list[Path]) -> None:
    try:
        if path.name == GIT_DIR or path.is_symlink() or not path.is_dir():
            return
        if is_work_tree(path):
            found.append(path)
        if remaining == 0:
            return
        children = list(path.iterdir())
    except OSError as exc:
        logger.warning("Skipping unreadable directory %s: %s", path, exc.strerror or exc)
        return
    for child in children:
        _walk(child, remaining - 1, found)
