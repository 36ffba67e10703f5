"""tools/terrascan

Terrascan (IaC policy scanner) adapter.

This package contains the implementation: runner + normalizer.
"""

from .normalize import merge_violation_results, parse_results  # noqa: F401
from .runner import SUPPORTED_POLICY_TYPES, TERRASCAN_IMAGE, TerrascanTool  # noqa: F401
