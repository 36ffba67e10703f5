"""tools/result.py

The outcome of one tool execution, and how it gets to the assessment service.

Lifecycle of a :class:`Result`:

  adapter parses raw output -> Result(data, findings)
    -> update_file_fingerprints()      (dedup records, once, before upload)
    -> upload(client, org, name)       (may attach an Assessment)
    -> Results.combined_*()            (end-of-run reporting)

Nothing here is persisted; a Result lives for one command invocation.
"""

from __future__ import annotations

import io
import json
import logging
import os
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from iac_scan.domain import Assessment, Finding, compute_partial_fingerprints
from iac_scan.domain.finding import findings_to_list
from tools.api.client import APIClient, Option
from tools.core_git import find_repo_root
from tools.io import for_each_line
from tools.xcp import with_ci_env, with_file_from_reader

logger = logging.getLogger(__name__)

# Repository-identity files attached to an upload (at most one per basename).
REPO_FILES = (
    ".iacscan/config.yml",
    ".lacework/config.yml",
    "CODEOWNERS",
    "docs/CODEOWNERS",
    ".github/CODEOWNERS",
)

MULTI_DOCUMENT_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class FileFingerprint:
    file_path: str
    line: int
    partial_fingerprint: str = ""
    repo_path: str = ""
    multi_document_file: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"line": self.line}
        if self.repo_path:
            out["repoPath"] = self.repo_path
        if self.partial_fingerprint:
            out["partialFingerprint"] = self.partial_fingerprint
        out["filePath"] = self.file_path
        if self.multi_document_file:
            out["multiDocumentFile"] = True
        return out


@dataclass
class Result:
    data: Any = None
    findings: Optional[List[Finding]] = None
    values: Dict[str, str] = field(default_factory=dict)
    directory: str = ""
    files: Set[str] = field(default_factory=set)
    file_fingerprints: Optional[List[FileFingerprint]] = None
    # Name the result is uploaded under; set by the orchestrator.
    tool_name: str = ""

    assessment: Optional[Assessment] = None
    assessment_raw: Optional[Dict[str, Any]] = None

    def add_file(self, path: str) -> "Result":
        self.files.add(path)
        return self

    def add_value(self, name: str, value: str) -> "Result":
        self.values[name] = value
        return self

    # -------------------------
    # Fingerprints
    # -------------------------

    def update_file_fingerprints(self) -> None:
        """Compute one :class:`FileFingerprint` per distinct (file, line)."""
        if not self.directory:
            return
        findings = self.findings or []
        compute_partial_fingerprints(findings, self.directory)

        representatives: Dict[Tuple[str, int], Finding] = {}
        # None = not probed yet; only files that have findings are ever read.
        multi_document: Dict[str, Optional[bool]] = {}
        for f in findings:
            representatives.setdefault((f.file_path, f.line), f)
            if multi_document.get(f.file_path) is None:
                multi_document[f.file_path] = self.is_multi_document(f.file_path)

        self.file_fingerprints = [
            FileFingerprint(
                file_path=f.file_path,
                line=f.line,
                partial_fingerprint=f.partial_fingerprint,
                repo_path=f.repo_path,
                multi_document_file=bool(multi_document.get(f.file_path)),
            )
            for f in representatives.values()
        ]

    def is_multi_document(self, path: str) -> bool:
        """True if ``path`` is a YAML stream with a ``---`` after its first line."""
        if not os.path.isabs(path):
            path = os.path.join(self.directory, path)
        if not path.endswith(MULTI_DOCUMENT_SUFFIXES):
            return False

        state = {"line_no": 0, "multi": False}

        def _check(line: str) -> bool:
            state["line_no"] += 1
            if state["line_no"] > 1 and line == "---":
                state["multi"] = True
                return False
            return True

        try:
            for_each_line(path, _check)
        except OSError as e:
            logger.warning("%s", e)
            return False
        return state["multi"]

    # -------------------------
    # Upload
    # -------------------------

    def _findings_part(self) -> Optional[io.BytesIO]:
        try:
            d = json.dumps(findings_to_list(self.findings or []))
        except (TypeError, ValueError) as e:
            logger.warning("Could not marshal findings: %s", e)
            return None
        return io.BytesIO(d.encode("utf-8"))

    def _fingerprints_part(self) -> Optional[io.BytesIO]:
        if self.file_fingerprints is None:
            return None
        try:
            d = json.dumps([ff.to_dict() for ff in self.file_fingerprints])
        except (TypeError, ValueError) as e:
            logger.warning("Could not marshal fingerprints: %s", e)
            return None
        return io.BytesIO(d.encode("utf-8"))

    def _repo_file_options(self, stack: ExitStack) -> List[Option]:
        repo_dir = find_repo_root(self.directory)
        if repo_dir is None:
            return []
        options: List[Option] = []
        names: Set[str] = set()
        for rel in REPO_FILES:
            p = repo_dir.joinpath(*rel.split("/"))
            name = p.name
            if name in names:
                continue
            try:
                if p.stat().st_size == 0:
                    continue
                f = stack.enter_context(p.open("rb"))
            except OSError:
                continue
            names.add(name)
            options.append(with_file_from_reader(name, name, f))
        return options

    def upload(self, client: APIClient, org: str, name: str) -> None:
        """Send this result to the service; raises UploadError on failure.

        A garbled assessment in the response is logged and ignored.
        """
        logger.info("Uploading results of %s", name)
        raw = io.BytesIO(json.dumps(self.data).encode("utf-8"))
        with ExitStack() as stack:
            options: List[Option] = [
                with_ci_env(self.directory),
                with_file_from_reader("results_json", "results.json", raw),
            ]
            options += self._repo_file_options(stack)
            if self.findings is not None:
                part = self._findings_part()
                if part is not None:
                    options.append(with_file_from_reader("findings_json", "findings.json", part))
                part = self._fingerprints_part()
                if part is not None:
                    options.append(with_file_from_reader("fingerprints_json", "fingerprints.json", part))
            response = client.xcp_post(org, name, None, self.values, *options)

        assessment = response.get("assessment")
        if isinstance(assessment, dict):
            self.assessment_raw = assessment
            try:
                self.assessment = Assessment.from_dict(assessment)
            except (TypeError, ValueError) as e:
                logger.warning("The server returned a garbled assessment: %s", e)
                self.assessment = None
                self.assessment_raw = None
        if self.assessment is None:
            logger.info("No assessment for %s was returned", name)


class Results(list):
    """Results of every tool that ran in one session, in run order."""

    def combined_findings(self) -> List[Dict[str, Any]]:
        findings: List[Finding] = []
        for result in self:
            if result.assessment is not None:
                findings.extend(result.assessment.findings)
            else:
                findings.extend(result.findings or [])
        return findings_to_list(findings)

    def combined_assessments(self) -> List[Dict[str, Any]]:
        assessments: List[Dict[str, Any]] = []
        for result in self:
            if result.assessment_raw is not None:
                assessments.append(result.assessment_raw)
            else:
                # Never uploaded (or upload failed): synthesize one from local findings.
                assessments.append(Assessment(findings=list(result.findings or [])).to_dict())
        return assessments
