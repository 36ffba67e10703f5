"""tools/tool.py

Shared tool options and the two tool roles.

* A *single* tool implements ``run() -> Result``.
* A *consolidated* tool implements ``run_all() -> Results``, typically by
  running other tools.

The orchestrator picks the role by checking for ``run_all``
(see :func:`pipeline.runner.run_tool`).
"""

from __future__ import annotations

import fnmatch
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from tools.api.types import APIConfig
from tools.core_cmd import run_local, which_or_raise
from tools.docker import DockerTool
from tools.errors import ParseError

logger = logging.getLogger(__name__)


@dataclass
class ToolOpts:
    """Options shared by every tool (mostly straight from the CLI)."""

    directory: str = ""
    exclude: List[str] = field(default_factory=list)
    upload: bool = False
    api_config: Optional[APIConfig] = None
    skip_pull: bool = False
    no_docker: bool = False
    tool_path: str = ""
    custom_policies_dir: str = ""

    def get_directory(self) -> str:
        return os.path.abspath(self.directory or os.getcwd())

    def get_custom_policies_dir(self) -> str:
        if not self.custom_policies_dir:
            return ""
        p = os.path.abspath(self.custom_policies_dir)
        if not os.path.isdir(p):
            raise ValueError(f"custom policies directory {p} does not exist")
        return p

    def is_excluded(self, path: str) -> bool:
        """True when ``path`` matches one of the ``exclude`` glob patterns.

        Patterns are tried against the path relative to the scan directory,
        against its basename, and against each of its leading directories.
        """
        if not self.exclude or not path:
            return False
        rel = path
        if os.path.isabs(path):
            rel = os.path.relpath(path, self.get_directory())
        rel = rel.replace(os.sep, "/")
        if rel.startswith("./"):
            rel = rel[2:]
        parts = rel.split("/")
        candidates = {rel, parts[-1]}
        candidates.update("/".join(parts[:i]) for i in range(1, len(parts)))
        return any(fnmatch.fnmatch(c, pattern) for pattern in self.exclude for c in candidates)


class Tool:
    name = ""

    def __init__(self, opts: Optional[ToolOpts] = None) -> None:
        self.opts = opts or ToolOpts()

    def validate(self) -> None:
        """Raise ValueError if the options cannot work for this tool."""

    def run_docker(self, docker_tool: DockerTool, program: str = "") -> bytes:
        """Run ``docker_tool`` in its container, or its binary with --no-docker.

        ``program`` overrides the binary lookup for adapters that resolve it
        themselves.
        """
        if self.opts.no_docker:
            program = program or self.opts.tool_path or which_or_raise(docker_tool.default_no_docker_name or docker_tool.name)
            logger.debug("%s: running local binary %s", self.name, program)
            return run_local(
                program,
                docker_tool.args,
                cwd=docker_tool.directory or None,
                ok_exit_codes=docker_tool.ok_exit_codes,
            )
        return docker_tool.run(skip_pull=self.opts.skip_pull)


def report_unparseable(name: str, output: bytes, err: Exception) -> ParseError:
    """Echo raw output to stderr and wrap ``err`` for the caller to raise."""
    if output:
        sys.stderr.write(output.decode("utf-8", errors="replace"))
    return ParseError(f"{name} output could not be parsed: {err}")
