"""iac_scan.domain.assessment

Server-side verdict over one uploaded result.

The service owns the shape of this document. The only field we interpret is
``findings``: when present it supersedes the findings computed locally. All
other keys are carried through untouched in ``extra``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .finding import Finding, findings_to_list


@dataclass
class Assessment:
    findings: List[Finding] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Assessment":
        """Parse an assessment object; raises TypeError/ValueError if garbled."""
        if not isinstance(d, Mapping):
            raise TypeError(f"assessment must be an object, got {type(d)!r}")
        raw_findings = d.get("findings")
        if raw_findings is None:
            raw_findings = []
        if not isinstance(raw_findings, list):
            raise ValueError(f"assessment findings must be a list, got {type(raw_findings)!r}")
        return cls(
            findings=[Finding.from_dict(f) for f in raw_findings],
            extra={k: v for k, v in d.items() if k != "findings"},
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out["findings"] = findings_to_list(self.findings)
        return out
