"""tools/consolidated.py

``iac-scan``: one command that runs every IaC check we ship.

  hadolint (if a Dockerfile exists) -> terrascan once per policy type

Tools run sequentially; each produces its own Result so uploads and
assessments stay per-tool.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence, Tuple

from tools.hadolint import HadolintTool
from tools.result import Results
from tools.terrascan import SUPPORTED_POLICY_TYPES, TerrascanTool, merge_violation_results
from tools.tool import Tool, ToolOpts

logger = logging.getLogger(__name__)


class IacScanTool(Tool):
    name = "iac-scan"

    def __init__(self, opts: Optional[ToolOpts] = None, policy_types: Sequence[str] = SUPPORTED_POLICY_TYPES) -> None:
        super().__init__(opts)
        self.policy_types = list(policy_types)

    def validate(self) -> None:
        for t in self.policy_types:
            if t not in SUPPORTED_POLICY_TYPES:
                raise ValueError(f"unsupported policy type {t!r}")

    def tools(self) -> List[Tuple[str, Tool]]:
        """(upload name, tool) pairs in run order."""
        out: List[Tuple[str, Tool]] = []
        hadolint = HadolintTool(self.opts)
        if os.path.isfile(os.path.join(self.opts.get_directory(), hadolint.dockerfile)):
            out.append((hadolint.name, hadolint))
        else:
            logger.info("No %s in %s, skipping hadolint", hadolint.dockerfile, self.opts.get_directory())
        for policy_type in self.policy_types:
            out.append(("terrascan", TerrascanTool(self.opts, policy_type=policy_type)))
        return out

    def run_all(self) -> Results:
        results = Results()
        terrascan_docs = []
        for name, tool in self.tools():
            tool.validate()
            logger.info("Running %s", name)
            result = tool.run()
            result.tool_name = name
            policy_type = getattr(tool, "policy_type", "")
            if policy_type:
                result.add_value("POLICY_TYPE", policy_type)
                terrascan_docs.append(result.data)
            results.append(result)

        if terrascan_docs:
            count = merge_violation_results(*terrascan_docs)["results"]["count"]
            logger.info(
                "terrascan found %d violations (%d high, %d medium, %d low)",
                count["total"], count["high"], count["medium"], count["low"],
            )
        return results
