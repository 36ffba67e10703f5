"""tools/terrascan/runner.py

Tool-specific execution plumbing for terrascan.

Terrascan runs either in its Docker image (scan directory mounted at /src,
custom policies at /policy) or as a local binary with ``--no-docker``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import yaml

from tools.core_cmd import run_cmd, which_or_raise
from tools.docker import SRC_MOUNT, DockerTool
from tools.jsondoc import path
from tools.result import Result
from tools.tool import Tool, ToolOpts, report_unparseable

from .normalize import load_output, parse_results

logger = logging.getLogger(__name__)

TERRASCAN_IMAGE = "tenable/terrascan:latest"
TERRASCAN_FALLBACKS = ["/opt/homebrew/bin/terrascan", "/usr/local/bin/terrascan"]
SUPPORTED_POLICY_TYPES = ("aws", "azure", "gcp", "k8s")

# terrascan exits with 3 when violations were found.
TERRASCAN_OK_EXIT_CODES = (0, 3)


def terrascan_version(program: str) -> str:
    res = run_cmd([program, "version"])
    out = (res.stdout or "").strip()
    if res.exit_code != 0 or not out:
        logger.debug("Could not determine terrascan version (exit code %s)", res.exit_code)
        return ""
    # "version: v1.18.3"
    return out.split(":", 1)[-1].strip()


class TerrascanTool(Tool):
    name = "terrascan"

    def __init__(self, opts: Optional[ToolOpts] = None, policy_type: str = "") -> None:
        super().__init__(opts)
        self.policy_type = policy_type

    def validate(self) -> None:
        if self.opts.get_custom_policies_dir():
            return
        if not self.policy_type:
            raise ValueError("--policy-type must be given unless using custom policies")
        if self.policy_type not in SUPPORTED_POLICY_TYPES:
            raise ValueError(
                f"unsupported policy type {self.policy_type!r} "
                f"(expected one of {', '.join(SUPPORTED_POLICY_TYPES)})"
            )

    def scan_args(self, scan_dir: str) -> List[str]:
        args = ["scan", "-d", scan_dir, "-o", "json"]
        if self.policy_type:
            args += ["-t", self.policy_type]
        custom = self.opts.get_custom_policies_dir()
        if custom:
            args += ["-p", custom]
        return args

    def docker_tool(self) -> DockerTool:
        directory = self.opts.get_directory()
        return DockerTool(
            name=self.name,
            image=TERRASCAN_IMAGE,
            args=self.scan_args(SRC_MOUNT),
            default_no_docker_name="terrascan",
            policy_directory=self.opts.get_custom_policies_dir(),
            directory=directory,
            ok_exit_codes=TERRASCAN_OK_EXIT_CODES,
        )

    def run(self) -> Result:
        directory = self.opts.get_directory()
        version = ""
        if self.opts.no_docker:
            program = self.opts.tool_path or which_or_raise("terrascan", fallbacks=TERRASCAN_FALLBACKS)
            dt = self.docker_tool()
            dt.args = self.scan_args(directory)
            output = self.run_docker(dt, program)
            version = terrascan_version(program)
        else:
            output = self.run_docker(self.docker_tool())

        try:
            doc = load_output(output)
        except (ValueError, yaml.YAMLError) as e:
            raise report_unparseable(self.name, output, e) from e
        if not isinstance(path(doc, "results"), dict):
            raise report_unparseable(self.name, output, ValueError("expected an object with a 'results' mapping"))

        result = parse_results(doc, directory=directory, is_excluded=self.opts.is_excluded)
        if version:
            result.add_value("TERRASCAN_VERSION", version)
        return result
