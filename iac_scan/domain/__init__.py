"""iac_scan.domain

Domain objects that form the *contract* between tool adapters, the upload
pipeline and the assessment service.

Key idea
--------
Tools produce raw outputs in tool-specific formats. Adapters normalize those
into :class:`Finding` objects so fingerprinting, upload and reporting do not
need to know vendor quirks.
"""

from __future__ import annotations

from .assessment import Assessment
from .finding import Finding, compute_partial_fingerprint, compute_partial_fingerprints

__all__ = [
    "Assessment",
    "Finding",
    "compute_partial_fingerprint",
    "compute_partial_fingerprints",
]
