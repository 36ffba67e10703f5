"""tools/terrascan/normalize.py

Terrascan output -> Result.

Raw shape (``terrascan scan -o json``)::

    {"results": {"violations": [
        {"rule_name": "...", "description": "...", "rule_id": "AC_AWS_0214",
         "severity": "HIGH", "category": "Logging and Monitoring",
         "resource_name": "bucket", "resource_type": "aws_s3_bucket",
         "file": "main.tf", "line": 10}],
     "scan_summary": {...}}}
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

import yaml

from iac_scan.domain import Finding
from tools.jsondoc import as_int, as_text, elements, path, remove_elements_if
from tools.result import Result


def load_output(output: bytes) -> Any:
    """Decode terrascan output: JSON, or YAML when run with ``-o yaml``."""
    text = output.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return yaml.safe_load(text)


def parse_results(
    doc: Any,
    *,
    directory: str,
    is_excluded: Callable[[str], bool],
) -> Result:
    findings: List[Finding] = []
    results = path(doc, "results")
    violations = path(results, "violations")
    if isinstance(results, dict) and elements(violations):
        violations = remove_elements_if(violations, lambda e: is_excluded(as_text(path(e, "file"))))
        results["violations"] = violations
        for v in violations:
            findings.append(
                Finding(
                    file_path=as_text(path(v, "file")),
                    line=as_int(path(v, "line")),
                    description=as_text(path(v, "description")),
                    tool={
                        "category": as_text(path(v, "category")),
                        "rule_id": as_text(path(v, "rule_id")),
                        "severity": as_text(path(v, "severity")),
                    },
                )
            )
    return Result(data=doc, findings=findings, directory=directory)


def merge_violation_results(*docs: Any) -> Dict[str, Any]:
    """Merge the violations of several terrascan runs and count them by severity."""
    counts = {"total": 0, "low": 0, "medium": 0, "high": 0}
    violations: List[Dict[str, Any]] = []
    for doc in docs:
        for v in elements(path(doc, "results", "violations")):
            if not isinstance(v, dict):
                continue
            severity = as_text(v.get("severity")).lower()
            if severity in counts:
                counts[severity] += 1
            counts["total"] += 1
            violations.append(dict(v))
    return {"results": {"count": counts, "violations": violations}}
