"""cli.dispatch

Glue between parsed arguments and :func:`pipeline.runner.run_tool`.

Exit status
-----------
0  success
1  any other fatal error (bad options, tool failure, upload failure)
2  Docker is not installed / not running
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from cli.parser import parse_args
from iac_scan.io import write_json_atomic
from pipeline.runner import run_tool
from pipeline.scanners import SCANNERS
from tools.api import APIClient, get_api_config
from tools.errors import ScanError, is_docker_error
from tools.tool import ToolOpts

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DOCKER = 2


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_opts(args: argparse.Namespace) -> ToolOpts:
    api_config = None
    if args.upload:
        api_config = get_api_config(url=args.api_url, org=args.org)
    return ToolOpts(
        directory=args.directory,
        exclude=list(args.exclude or []),
        upload=args.upload,
        api_config=api_config,
        skip_pull=args.skip_pull,
        no_docker=args.no_docker,
        tool_path=args.tool_path,
        custom_policies_dir=args.custom_policies,
    )


def dispatch(args: argparse.Namespace) -> int:
    opts = build_opts(args)
    tool = SCANNERS[args.tool].build(opts, args)
    client = APIClient(opts.api_config) if opts.api_config is not None else None

    try:
        results = run_tool(tool, client)
    except ScanError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_DOCKER if is_docker_error(e) else EXIT_ERROR
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    doc = results.combined_assessments() if args.print_assessments else results.combined_findings()
    print(json.dumps(doc, indent=2))
    if args.output:
        try:
            write_json_atomic(Path(args.output), doc)
        except OSError as e:
            print(f"ERROR: cannot write {args.output}: {e}", file=sys.stderr)
            return EXIT_ERROR
        logger.info("Wrote %s", args.output)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(Path.cwd() / ".env")
    args = parse_args(argv)
    configure_logging(args.verbose)
    return dispatch(args)
