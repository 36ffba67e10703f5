"""tools/hadolint/runner.py

Tool-specific execution plumbing for hadolint.
"""

from __future__ import annotations

import json

from tools.docker import DockerTool
from tools.result import Result
from tools.tool import Tool, report_unparseable

from .normalize import parse_results

HADOLINT_IMAGE = "ghcr.io/hadolint/hadolint:latest"

# hadolint exits 1 when it reports rule violations.
HADOLINT_OK_EXIT_CODES = (0, 1)


class HadolintTool(Tool):
    name = "hadolint"

    def __init__(self, opts=None, dockerfile: str = "Dockerfile") -> None:
        super().__init__(opts)
        self.dockerfile = dockerfile

    def docker_tool(self) -> DockerTool:
        return DockerTool(
            name=self.name,
            image=HADOLINT_IMAGE,
            docker_args=["--entrypoint", "hadolint"],
            args=["-f", "json", f"./{self.dockerfile}"],
            default_no_docker_name="hadolint",
            directory=self.opts.get_directory(),
            ok_exit_codes=HADOLINT_OK_EXIT_CODES,
        )

    def run(self) -> Result:
        output = self.run_docker(self.docker_tool())
        try:
            raw = json.loads(output or b"[]")
        except ValueError as e:
            raise report_unparseable(self.name, output, e) from e
        return parse_results(raw, directory=self.opts.get_directory(), is_excluded=self.opts.is_excluded)
