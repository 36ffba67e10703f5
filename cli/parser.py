"""cli.parser

Argument parser for :mod:`iac_cli`.

One sub-command per registered tool (see :mod:`pipeline.scanners`). Flags
shared by every tool are registered once by :func:`add_common_args`; the few
tool-specific flags live next to the sub-command that uses them.
"""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from pipeline.scanners import SCANNERS
from tools.terrascan import SUPPORTED_POLICY_TYPES


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--directory",
        default="",
        help="Directory to scan (default: current directory)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Skip findings in files matching GLOB (repeatable)",
    )
    parser.add_argument("--upload", action="store_true", help="Upload results for assessment")
    parser.add_argument("--org", help="Organization to upload to (default: $IACSCAN_ORG)")
    parser.add_argument("--api-url", dest="api_url", help="Assessment API base URL (default: $IACSCAN_API_URL)")
    parser.add_argument("--skip-pull", dest="skip_pull", action="store_true", help="Do not pull the Docker image")
    parser.add_argument(
        "--no-docker",
        dest="no_docker",
        action="store_true",
        help="Run the tool binary found on PATH (or --tool-path) instead of Docker",
    )
    parser.add_argument("--tool-path", dest="tool_path", default="", help="(with --no-docker) Path to the tool binary")
    parser.add_argument(
        "--custom-policies",
        dest="custom_policies",
        default="",
        help="Directory of custom policies (mounted at /policy in Docker)",
    )
    parser.add_argument(
        "--print-assessments",
        dest="print_assessments",
        action="store_true",
        help="Print combined assessments instead of combined findings",
    )
    parser.add_argument("--output", help="Also write the printed JSON to this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iac_cli",
        description="Run IaC scanners, fingerprint their findings and optionally upload them for assessment.",
    )
    sub = parser.add_subparsers(dest="tool", metavar="TOOL")
    sub.required = True

    for key, info in SCANNERS.items():
        p = sub.add_parser(key, help=info.label, description=info.label)
        add_common_args(p)
        if key == "hadolint":
            p.add_argument("--dockerfile", default="Dockerfile", help="Dockerfile path relative to --directory")
        elif key == "terrascan":
            p.add_argument(
                "--policy-type",
                dest="policy_type",
                choices=SUPPORTED_POLICY_TYPES,
                help="Policy type to scan with (required unless --custom-policies)",
            )
        elif key == "iac-scan":
            p.add_argument(
                "--policy-types",
                dest="policy_types",
                default=",".join(SUPPORTED_POLICY_TYPES),
                help="Comma-separated terrascan policy types (default: %(default)s)",
            )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
