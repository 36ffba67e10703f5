"""pipeline.scanners

Central registry of supported tools.

Several parts of the repo need to agree on the *same* tool facts:
- which tools exist (CLI sub-commands, validation)
- human-friendly labels (help text)
- how to build a tool from shared options plus tool-specific CLI args

These hooks must remain *pure*: building a tool never runs it.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Callable, Dict, List, Set

from tools.consolidated import IacScanTool
from tools.hadolint import HadolintTool
from tools.terrascan import SUPPORTED_POLICY_TYPES, TerrascanTool
from tools.tool import Tool, ToolOpts


@dataclass(frozen=True)
class ScannerInfo:
    """Static metadata describing one tool integration."""

    key: str
    label: str
    build: Callable[[ToolOpts, argparse.Namespace], Tool]


def _policy_types(raw: str) -> List[str]:
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


SCANNERS: Dict[str, ScannerInfo] = {
    "hadolint": ScannerInfo(
        key="hadolint",
        label="Run hadolint to lint your Dockerfile",
        build=lambda opts, ns: HadolintTool(opts, dockerfile=getattr(ns, "dockerfile", None) or "Dockerfile"),
    ),
    "terrascan": ScannerInfo(
        key="terrascan",
        label="Run terrascan against Terraform / Kubernetes files",
        build=lambda opts, ns: TerrascanTool(opts, policy_type=getattr(ns, "policy_type", None) or ""),
    ),
    "iac-scan": ScannerInfo(
        key="iac-scan",
        label="Run hadolint and terrascan (every policy type) in one go",
        build=lambda opts, ns: IacScanTool(
            opts,
            policy_types=_policy_types(getattr(ns, "policy_types", None) or ",".join(SUPPORTED_POLICY_TYPES)),
        ),
    ),
}

SUPPORTED_SCANNERS: Set[str] = set(SCANNERS.keys())
