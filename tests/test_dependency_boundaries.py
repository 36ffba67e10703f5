import ast
import unittest
from pathlib import Path
from typing import Iterable, List, Tuple


REPO_ROOT = Path(__file__).resolve().parents[1]

# Dependency rules:
# - iac_scan/ and tools/ never reach up into orchestration or the CLI
# - pipeline/ must not depend on cli/
FORBIDDEN_IMPORTS = {
    "iac_scan": ("pipeline", "cli"),
    "tools": ("pipeline", "cli"),
    "pipeline": ("cli",),
}


def iter_py_files(package_dir: Path) -> Iterable[Path]:
    for p in sorted(package_dir.rglob("*.py")):
        if "__pycache__" in p.parts or any(part.startswith(".") for part in p.parts):
            continue
        yield p


def imported_roots(py_file: Path) -> Iterable[Tuple[int, str]]:
    """(line, module) for every absolute import in ``py_file``."""
    tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            yield node.lineno, node.module


class TestDependencyBoundaries(unittest.TestCase):
    def test_dependency_direction_is_enforced(self) -> None:
        problems: List[str] = []
        for pkg, forbidden in FORBIDDEN_IMPORTS.items():
            for py_file in iter_py_files(REPO_ROOT / pkg):
                for lineno, module in imported_roots(py_file):
                    if module.split(".", 1)[0] in forbidden:
                        problems.append(f"{py_file.relative_to(REPO_ROOT)}:{lineno} imports {module}")

        self.assertEqual([], problems, "Forbidden imports detected (violates dependency direction)")

    def test_boundary_packages_exist(self) -> None:
        for pkg in FORBIDDEN_IMPORTS:
            self.assertTrue((REPO_ROOT / pkg).is_dir(), f"missing package directory {pkg}/")


if __name__ == "__main__":
    unittest.main()
