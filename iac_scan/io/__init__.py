"""iac_scan.io

Filesystem helpers for run artifacts (combined findings / assessments
written with ``--output``).
"""

from __future__ import annotations

from .fs import read_json, write_json_atomic

__all__ = [
    "read_json",
    "write_json_atomic",
]
