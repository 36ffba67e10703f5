"""tools/hadolint/normalize.py

Hadolint JSON output -> Result.

Raw shape (``hadolint -f json``)::

    [{"code": "DL3006", "column": 1, "file": "./Dockerfile",
      "level": "warning", "line": 3, "message": "Always tag ..."}]
"""

from __future__ import annotations

import os
from typing import Any, Callable, List

from iac_scan.domain import Finding
from tools.jsondoc import as_int, as_text, path, remove_elements_if
from tools.result import Result


def _file_path(raw: str) -> str:
    return os.path.normpath(raw) if raw else raw


def parse_results(
    raw: Any,
    *,
    directory: str,
    is_excluded: Callable[[str], bool],
) -> Result:
    # Filter the raw array first and build findings from what is left, so the
    # uploaded document and the findings always agree.
    kept = remove_elements_if(raw, lambda e: is_excluded(as_text(path(e, "file"))))

    findings: List[Finding] = []
    for data in kept:
        file = as_text(path(data, "file"))
        findings.append(
            Finding(
                file_path=_file_path(file),
                line=as_int(path(data, "line")),
                tool={
                    "rule_id": as_text(path(data, "code")),
                    "message": as_text(path(data, "message")),
                    "severity": as_text(path(data, "level")),
                    "file": file,
                    "line": as_text(path(data, "line")),
                },
            )
        )

    return Result(data=kept, findings=findings, directory=directory)
