"""tools/io.py

Single source of truth for tiny filesystem helpers used by tools/*.

Keep the actual implementations here and have other modules import them, so
line handling (newlines, encoding errors) does not drift between the
fingerprinting and multi-document code paths.

This module contains ONLY filesystem IO (no normalization policy).
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Union


def for_each_line(path: Union[str, Path], fn: Callable[[str], bool]) -> None:
    """Call ``fn`` with each line of ``path`` (newline stripped).

    Iteration stops as soon as ``fn`` returns False. OSError propagates.
    """
    with Path(path).open("r", encoding="utf-8", errors="replace") as f:
        for ln in f:
            if not fn(ln.rstrip("\r\n")):
                return


def read_lines(path: Union[str, Path]) -> List[str]:
    """Read every line of ``path`` (newline stripped). OSError propagates."""
    lines: List[str] = []

    def _append(ln: str) -> bool:
        lines.append(ln)
        return True

    for_each_line(path, _append)
    return lines
