#!/usr/bin/env python3
"""
CLI for the IaC scanning pipeline.

One sub-command per tool:
  hadolint  - lint the Dockerfile in --directory
  terrascan - scan Terraform / Kubernetes files with one policy type
  iac-scan  - hadolint (when a Dockerfile exists) + terrascan per policy type

Usage:
  python iac_cli.py terrascan -d ./infra --policy-type aws
  python iac_cli.py iac-scan -d . --exclude 'vendor/*' --upload --org my-org
  python iac_cli.py hadolint --no-docker --output findings.json

Upload settings come from IACSCAN_API_URL / IACSCAN_API_TOKEN / IACSCAN_ORG
(a .env in the current directory is honoured).
"""

from __future__ import annotations

from cli.dispatch import main

if __name__ == "__main__":
    raise SystemExit(main())
