import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from iac_scan.domain import Finding
from tools.api import APIClient, APIConfig, XCPRequest
from tools.errors import UploadError
from tools.result import Result
from tools.xcp import with_ci_env, with_ci_env_body

CI_ENV = {"IACSCAN_METADATA_CI_SYSTEM": "GITHUB", "GITHUB_SHA": "abc123"}


def _response(status: int = 200, body=None, json_error: bool = False) -> mock.Mock:
    resp = mock.Mock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.text = "" if body is None else str(body)
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body if body is not None else {}
    return resp


class _Recorder:
    """Session stand-in that reads file parts while they are still open."""

    def __init__(self, response: mock.Mock) -> None:
        self.response = response
        self.calls = []
        self.parts = {}
        self.readers = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for param, (filename, reader) in kwargs.get("files") or []:
            self.readers.append(reader)
            self.parts[param] = (filename, reader.read())
        return self.response


def _repo(root: Path) -> None:
    (root / ".git").mkdir()
    lines = "".join(f"line {i}\n" for i in range(1, 31))
    (root / "main.tf").write_text(lines, encoding="utf-8")


class TestUpload(unittest.TestCase):
    def setUp(self) -> None:
        self.config = APIConfig(url="https://api.example.test", token="tok", org="acme")
        patcher = mock.patch("tools.xcp.get_ci_env", return_value=dict(CI_ENV))
        self.get_ci_env = patcher.start()
        self.addCleanup(patcher.stop)

    def _result(self, directory: str) -> Result:
        result = Result(
            data={"results": {"violations": [{"file": "main.tf", "line": 10}, {"file": "main.tf", "line": 20}]}},
            findings=[
                Finding(file_path="main.tf", line=10, tool={"rule_id": "R1"}),
                Finding(file_path="main.tf", line=20, tool={"rule_id": "R2"}),
            ],
            directory=directory,
        )
        result.add_value("POLICY_TYPE", "aws")
        result.update_file_fingerprints()
        return result

    def test_request_assembly(self) -> None:
        session = _Recorder(_response(body={"assessment": {"findings": [], "score": 7}}))
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _repo(root)
            (root / ".iacscan").mkdir()
            (root / ".iacscan" / "config.yml").write_text("", encoding="utf-8")
            (root / ".lacework").mkdir()
            (root / ".lacework" / "config.yml").write_text("org: acme\n", encoding="utf-8")
            (root / "CODEOWNERS").write_text("* @acme/infra\n", encoding="utf-8")
            (root / ".github").mkdir()
            (root / ".github" / "CODEOWNERS").write_text("* @someone-else\n", encoding="utf-8")

            result = self._result(td)
            result.upload(APIClient(self.config, session=session), "acme", "terrascan")

        self.assertEqual(1, len(session.calls))
        method, url, kwargs = session.calls[0]
        self.assertEqual("POST", method)
        self.assertEqual("https://api.example.test/api/v1/org/acme/xcp/terrascan/data", url)
        self.assertEqual("Bearer tok", kwargs["headers"]["Authorization"])
        self.assertEqual(dict(CI_ENV, POLICY_TYPE="aws"), kwargs["data"])
        self.get_ci_env.assert_called_once_with(td)

        params = [p for p, _ in kwargs["files"]]
        self.assertEqual(["results_json", "config.yml", "CODEOWNERS", "findings_json", "fingerprints_json"], params)
        self.assertEqual(("config.yml", b"org: acme\n"), session.parts["config.yml"])
        self.assertEqual(("CODEOWNERS", b"* @acme/infra\n"), session.parts["CODEOWNERS"])
        self.assertTrue(all(r.closed for r in session.readers[1:3]))

        findings = json.loads(session.parts["findings_json"][1])
        fingerprints = json.loads(session.parts["fingerprints_json"][1])
        self.assertEqual(2, len(findings))
        self.assertEqual(2, len(fingerprints))
        self.assertEqual([10, 20], [f["line"] for f in fingerprints])
        self.assertTrue(all(f["repoPath"] == "main.tf" for f in fingerprints))
        self.assertEqual("results.json", session.parts["results_json"][0])

        self.assertEqual({"findings": [], "score": 7}, result.assessment_raw)
        self.assertEqual({"score": 7}, result.assessment.extra)

    def test_absent_findings_send_only_the_raw_document(self) -> None:
        session = _Recorder(_response(body={}))
        with tempfile.TemporaryDirectory() as td:
            result = Result(data={"ok": True}, directory=td)
            result.update_file_fingerprints()
            with self.assertLogs("tools.result", level="INFO"):
                result.upload(APIClient(self.config, session=session), "acme", "hadolint")
        params = [p for p, _ in session.calls[0][2]["files"]]
        self.assertEqual(["results_json"], params)
        self.assertIsNone(result.assessment)

    def test_marshal_failure_omits_only_that_part(self) -> None:
        session = _Recorder(_response(body={}))
        with tempfile.TemporaryDirectory() as td:
            _repo(Path(td))
            result = self._result(td)
            result.findings[0].extra["unserializable"] = object()
            with self.assertLogs("tools.result", level="WARNING") as logs:
                result.upload(APIClient(self.config, session=session), "acme", "terrascan")
        params = [p for p, _ in session.calls[0][2]["files"]]
        self.assertEqual(["results_json", "fingerprints_json"], params)
        self.assertTrue(any("marshal findings" in m for m in logs.output))

    def test_assessment_findings_are_parsed(self) -> None:
        body = {"assessment": {"findings": [{"filePath": "main.tf", "line": 10, "tool": {"rule_id": "R1"},
                                             "status": "open"}]}}
        session = _Recorder(_response(body=body))
        with tempfile.TemporaryDirectory() as td:
            _repo(Path(td))
            result = self._result(td)
            result.upload(APIClient(self.config, session=session), "acme", "terrascan")
        self.assertEqual(1, len(result.assessment.findings))
        self.assertEqual({"status": "open"}, result.assessment.findings[0].extra)

    def test_garbled_assessment_is_ignored(self) -> None:
        session = _Recorder(_response(body={"assessment": {"findings": "not-a-list"}}))
        with tempfile.TemporaryDirectory() as td:
            _repo(Path(td))
            result = self._result(td)
            with self.assertLogs("tools.result", level="WARNING"):
                result.upload(APIClient(self.config, session=session), "acme", "terrascan")
        self.assertIsNone(result.assessment)
        self.assertIsNone(result.assessment_raw)
        # Local findings are untouched.
        self.assertEqual(2, len(result.findings))

    def test_http_error_raises(self) -> None:
        session = _Recorder(_response(status=500, body="internal error"))
        with tempfile.TemporaryDirectory() as td:
            _repo(Path(td))
            result = self._result(td)
            with self.assertRaises(UploadError) as ctx:
                result.upload(APIClient(self.config, session=session), "acme", "terrascan")
        self.assertEqual(500, ctx.exception.status_code)
        self.assertIsNone(result.assessment)

    def test_transport_error_raises(self) -> None:
        session = mock.Mock()
        session.request.side_effect = requests.ConnectionError("connection refused")
        with tempfile.TemporaryDirectory() as td:
            result = Result(data=[], findings=[], directory=td)
            with self.assertRaises(UploadError):
                result.upload(APIClient(self.config, session=session), "acme", "hadolint")

    def test_non_json_response_means_no_assessment(self) -> None:
        session = _Recorder(_response(json_error=True))
        with tempfile.TemporaryDirectory() as td:
            result = Result(data=[], findings=[], directory=td)
            result.upload(APIClient(self.config, session=session), "acme", "hadolint")
        self.assertIsNone(result.assessment)


class TestRequestOptions(unittest.TestCase):
    def test_ci_env_goes_to_query_for_get(self) -> None:
        with mock.patch("tools.xcp.get_ci_env", return_value=dict(CI_ENV)):
            get = XCPRequest("GET", "https://x")
            with_ci_env("/work")(get)
            post = XCPRequest("POST", "https://x")
            with_ci_env("/work")(post)
            body = XCPRequest("POST", "https://x")
            with_ci_env_body("/work")(body)

        self.assertEqual(CI_ENV, get.params)
        self.assertEqual({}, get.data)
        self.assertEqual(CI_ENV, post.data)
        self.assertEqual({}, post.params)
        self.assertEqual(CI_ENV, body.json_body)


if __name__ == "__main__":
    unittest.main()
