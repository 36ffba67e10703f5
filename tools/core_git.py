"""tools/core_git.py

Git metadata helpers.

These are used in two contexts:

1) For upload metadata, via :func:`collect_git_metadata` (branch, commit,
   describe, remote of the scanned directory).
2) For repo-relative paths, via :func:`find_repo_root` and
   :func:`repo_relative_path`.

Every helper is best-effort: a directory that is not a git checkout, or a host
without git, yields missing values rather than errors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple

from .core_cmd import run_cmd


METADATA_COMMANDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("IACSCAN_METADATA_GIT_BRANCH", ("git", "rev-parse", "--abbrev-ref", "HEAD")),
    ("IACSCAN_METADATA_GIT_COMMIT", ("git", "rev-parse", "HEAD")),
    ("IACSCAN_METADATA_GIT_COMMIT_SHORT", ("git", "rev-parse", "--short", "HEAD")),
    ("IACSCAN_METADATA_GIT_DESCRIBE", ("git", "describe", "--tags", "--always")),
    ("IACSCAN_METADATA_GIT_REMOTE", ("git", "ls-remote", "--get-url")),
)


def collect_git_metadata(directory: str) -> Dict[str, str]:
    """Run :data:`METADATA_COMMANDS` in ``directory``.

    Commands that fail are left out of the returned dict.
    """
    values: Dict[str, str] = {}
    for key, argv in METADATA_COMMANDS:
        res = run_cmd(list(argv), cwd=Path(directory) if directory else None, timeout_seconds=20)
        if res.exit_code == 0:
            values[key] = (res.stdout or "").strip()
    return values


def normalize_git_remote(remote: str) -> str:
    """Turn an SSH-style remote into host/path form.

    Examples:
      git@github.com:fizz/buzz.git   -> "github.com/fizz/buzz"
      https://github.com/fizz/buzz.git -> unchanged
    """
    at = remote.find("@")
    dotgit = remote.rfind(".git")
    if at > 0 and dotgit > 0:
        return remote[at + 1:dotgit].replace(":", "/", 1)
    return remote


def find_repo_root(directory: Optional[str]) -> Optional[Path]:
    """Return the closest ancestor of ``directory`` that holds a ``.git`` entry."""
    if not directory:
        return None
    p = Path(directory).resolve()
    for candidate in (p, *p.parents):
        if (candidate / ".git").exists():
            return candidate
    return None


def repo_relative_path(repo_root: Optional[Path], path: str) -> Optional[str]:
    """Forward-slash path of ``path`` relative to ``repo_root`` (None if outside)."""
    if repo_root is None:
        return None
    try:
        rel = Path(path).resolve().relative_to(repo_root)
    except ValueError:
        return None
    return rel.as_posix() if str(rel) != "." else None
