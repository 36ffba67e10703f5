"""iac_scan

Core package for the scan orchestrator.

It owns the pieces that every tool adapter and entrypoint agrees on:

* domain types (findings, assessments) that form the wire contract with the
  assessment service
* IO helpers for writing run artifacts

Tool execution lives under ``tools``; orchestration under ``pipeline``.
"""

from __future__ import annotations
