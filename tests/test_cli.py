import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from cli.dispatch import EXIT_DOCKER, EXIT_ERROR, EXIT_OK, main
from cli.parser import parse_args
from iac_scan.domain import Finding
from iac_scan.io import read_json
from tools.errors import DockerError, DockerErrorKind, ToolExecutionError
from tools.result import Result, Results


class TestParser(unittest.TestCase):
    def test_common_flags(self) -> None:
        args = parse_args(
            ["terrascan", "-d", "infra", "--exclude", "vendor/*", "--exclude", "*.json",
             "--policy-type", "aws", "--skip-pull", "--no-docker", "--tool-path", "/bin/terrascan"]
        )
        self.assertEqual("terrascan", args.tool)
        self.assertEqual("infra", args.directory)
        self.assertEqual(["vendor/*", "*.json"], args.exclude)
        self.assertEqual("aws", args.policy_type)
        self.assertTrue(args.skip_pull and args.no_docker)
        self.assertEqual("/bin/terrascan", args.tool_path)
        self.assertFalse(args.upload)

    def test_iac_scan_defaults_to_every_policy_type(self) -> None:
        args = parse_args(["iac-scan"])
        self.assertEqual("aws,azure,gcp,k8s", args.policy_types)

    def test_tool_is_required(self) -> None:
        with mock.patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                parse_args([])


class TestMain(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("cli.dispatch.load_dotenv")
        patcher.start()
        self.addCleanup(patcher.stop)
        td = tempfile.TemporaryDirectory()
        self.addCleanup(td.cleanup)
        self.dir = td.name

    def _main(self, argv, **run_tool_kwargs):
        with mock.patch("cli.dispatch.run_tool", **run_tool_kwargs) as run_tool, \
                mock.patch("sys.stdout", new_callable=io.StringIO) as out, \
                mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = main(argv)
        return code, out.getvalue(), err.getvalue(), run_tool

    def test_docker_errors_exit_2(self) -> None:
        code, _, err, _ = self._main(
            ["hadolint", "-d", self.dir], side_effect=DockerError(DockerErrorKind.NOT_RUNNING)
        )
        self.assertEqual(EXIT_DOCKER, code)
        self.assertIn("docker server is not running", err)

    def test_tool_failures_exit_1(self) -> None:
        code, _, err, _ = self._main(
            ["hadolint", "-d", self.dir], side_effect=ToolExecutionError("docker run", 2)
        )
        self.assertEqual(EXIT_ERROR, code)
        self.assertIn("exited with code 2", err)

    def test_invalid_options_exit_1(self) -> None:
        with mock.patch("sys.stdout", new_callable=io.StringIO), \
                mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = main(["terrascan", "-d", self.dir])
        self.assertEqual(EXIT_ERROR, code)
        self.assertIn("--policy-type", err.getvalue())

    def test_prints_and_writes_combined_findings(self) -> None:
        results = Results([Result(findings=[Finding(file_path="main.tf", line=3, tool={"rule_id": "R1"})])])
        out_path = Path(self.dir) / "out" / "findings.json"
        code, out, _, run_tool = self._main(
            ["terrascan", "-d", self.dir, "--policy-type", "aws", "--output", str(out_path)],
            return_value=results,
        )
        self.assertEqual(EXIT_OK, code)
        expected = [{"filePath": "main.tf", "line": 3, "tool": {"rule_id": "R1"}}]
        self.assertIn('"filePath": "main.tf"', out)
        self.assertEqual(expected, read_json(out_path))

        tool, client = run_tool.call_args[0]
        self.assertEqual("aws", tool.policy_type)
        self.assertEqual(self.dir, tool.opts.directory)
        self.assertIsNone(client)

    def test_unwritable_output_exits_1(self) -> None:
        blocker = Path(self.dir) / "blocker"
        blocker.write_text("not a directory\n", encoding="utf-8")
        code, _, err, _ = self._main(
            ["hadolint", "-d", self.dir, "--output", str(blocker / "findings.json")],
            return_value=Results([Result(findings=[])]),
        )
        self.assertEqual(EXIT_ERROR, code)
        self.assertIn("ERROR: cannot write", err)

    def test_print_assessments(self) -> None:
        results = Results([Result(findings=[])])
        code, out, _, _ = self._main(["hadolint", "-d", self.dir, "--print-assessments"], return_value=results)
        self.assertEqual(EXIT_OK, code)
        self.assertIn('"findings": []', out)

    def test_upload_builds_client_from_env(self) -> None:
        env = {"IACSCAN_API_TOKEN": "tok", "IACSCAN_ORG": "acme", "IACSCAN_API_URL": "https://api.example.test/"}
        with mock.patch.dict(os.environ, env):
            code, _, _, run_tool = self._main(
                ["hadolint", "-d", self.dir, "--upload", "--org", "other"], return_value=Results()
            )
        self.assertEqual(EXIT_OK, code)
        tool, client = run_tool.call_args[0]
        self.assertEqual("other", tool.opts.api_config.org)
        self.assertEqual("https://api.example.test", client.config.url)

    def test_upload_without_token_fails_fast(self) -> None:
        with mock.patch.dict(os.environ, {"IACSCAN_API_TOKEN": "", "IACSCAN_ORG": "acme"}):
            with self.assertRaises(SystemExit):
                self._main(["hadolint", "-d", self.dir, "--upload"])


if __name__ == "__main__":
    unittest.main()
