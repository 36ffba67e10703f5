"""tools/hadolint

Hadolint (Dockerfile linter) adapter.

This package contains the implementation: runner + normalizer.
"""

from .normalize import parse_results  # noqa: F401
from .runner import HADOLINT_IMAGE, HadolintTool  # noqa: F401
