"""iac_scan.domain.finding

Canonical representation of one reported issue.

This is intentionally **tool-agnostic**: adapters fill ``file_path``, ``line``
and ``description`` and put everything vendor-specific (rule id, severity,
category, ...) into the opaque ``tool`` mapping.

JSON shape (camelCase, wire-stable)::

    {"filePath": "main.tf", "line": 10, "description": "...",
     "tool": {"rule_id": "...", "severity": "HIGH"},
     "repoPath": "infra/main.tf", "partialFingerprint": "9f2c..."}

``description``, ``repoPath`` and ``partialFingerprint`` are omitted when
empty. Unknown keys (the server adds its own when it returns findings in an
assessment) are kept in ``extra`` so they survive a round trip.
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tools.core_git import find_repo_root, repo_relative_path
from tools.io import read_lines

logger = logging.getLogger(__name__)

# Lines on each side of the reported line that feed the fingerprint.
FINGERPRINT_CONTEXT_LINES = 2
FINGERPRINT_LENGTH = 16


def _safe_int(v: Any) -> int:
    if v is None or isinstance(v, bool):
        return 0
    try:
        n = int(v)
    except (TypeError, ValueError):
        return 0
    return n if n > 0 else 0


@dataclass
class Finding:
    file_path: str = ""
    line: int = 0
    description: str = ""
    tool: Dict[str, str] = field(default_factory=dict)
    partial_fingerprint: str = ""
    repo_path: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.line = _safe_int(self.line)

    _KNOWN_KEYS = ("filePath", "line", "description", "tool", "partialFingerprint", "repoPath")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Finding":
        if not isinstance(d, Mapping):
            raise TypeError(f"Finding.from_dict expected mapping, got {type(d)!r}")
        tool = d.get("tool") or {}
        if not isinstance(tool, Mapping):
            raise TypeError(f"finding 'tool' must be a mapping, got {type(tool)!r}")
        return cls(
            file_path=str(d.get("filePath") or ""),
            line=_safe_int(d.get("line")),
            description=str(d.get("description") or ""),
            tool={str(k): "" if v is None else str(v) for k, v in tool.items()},
            partial_fingerprint=str(d.get("partialFingerprint") or ""),
            repo_path=str(d.get("repoPath") or ""),
            extra={k: v for k, v in d.items() if k not in cls._KNOWN_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"filePath": self.file_path, "line": self.line}
        if self.description:
            out["description"] = self.description
        out["tool"] = dict(self.tool)
        if self.repo_path:
            out["repoPath"] = self.repo_path
        if self.partial_fingerprint:
            out["partialFingerprint"] = self.partial_fingerprint
        out.update(self.extra)
        return out


def findings_to_list(findings: Iterable[Finding]) -> List[Dict[str, Any]]:
    return [f.to_dict() for f in findings]


def compute_partial_fingerprint(lines: List[str], line: int) -> str:
    """Fingerprint the neighbourhood of 1-based ``line`` in ``lines``.

    Whitespace is collapsed so re-indentation does not change the value.
    Returns "" when ``line`` is not inside the file.
    """
    if line <= 0 or line > len(lines):
        return ""
    lo = max(0, line - 1 - FINGERPRINT_CONTEXT_LINES)
    hi = min(len(lines), line + FINGERPRINT_CONTEXT_LINES)
    window = [" ".join(ln.split()) for ln in lines[lo:hi]]
    digest = hashlib.sha256("\n".join(window).encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]


def compute_partial_fingerprints(findings: Iterable[Finding], directory: str) -> None:
    """Set ``partial_fingerprint`` and ``repo_path`` on each finding.

    Each referenced file is read at most once. Unreadable files are logged and
    their findings keep an empty fingerprint.
    """
    repo_root = find_repo_root(directory)
    cache: Dict[str, Optional[List[str]]] = {}
    for f in findings:
        if not f.file_path:
            continue
        path = f.file_path if os.path.isabs(f.file_path) else os.path.join(directory, f.file_path)
        if path not in cache:
            try:
                cache[path] = read_lines(path)
            except OSError as e:
                logger.warning("Cannot fingerprint %s: %s", path, e)
                cache[path] = None
        lines = cache[path]
        if lines is not None:
            f.partial_fingerprint = compute_partial_fingerprint(lines, f.line)
        f.repo_path = repo_relative_path(repo_root, path) or ""
