"""pipeline.runner

Run one tool end-to-end:

  validate -> run (single) / run_all (consolidated)
    -> update_file_fingerprints (every Result)
    -> upload (when enabled)

Upload policy
-------------
A single tool's upload failure is fatal and propagates. Inside a consolidated
run one failed upload should not throw away the other tools' work: it is
logged and that Result keeps no assessment, so
:meth:`tools.result.Results.combined_assessments` synthesizes one from the
local findings.
"""

from __future__ import annotations

import logging
from typing import Optional

from tools.api.client import APIClient
from tools.errors import UploadError
from tools.result import Results
from tools.tool import Tool

logger = logging.getLogger(__name__)


def is_consolidated(tool: Tool) -> bool:
    return callable(getattr(tool, "run_all", None))


def run_tool(tool: Tool, client: Optional[APIClient] = None) -> Results:
    tool.validate()
    consolidated = is_consolidated(tool)
    if consolidated:
        results = tool.run_all()  # type: ignore[attr-defined]
    else:
        result = tool.run()  # type: ignore[attr-defined]
        result.tool_name = result.tool_name or tool.name
        results = Results([result])

    for result in results:
        result.update_file_fingerprints()

    opts = tool.opts
    if not opts.upload:
        return results
    if client is None or opts.api_config is None:
        raise ValueError("upload requested but no API client is configured")

    for result in results:
        name = result.tool_name or tool.name
        try:
            result.upload(client, opts.api_config.org, name)
        except UploadError as e:
            if not consolidated:
                raise
            logger.warning("Upload of %s results failed, continuing without an assessment: %s", name, e)
    return results
