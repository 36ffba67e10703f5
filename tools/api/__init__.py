"""tools/api

Assessment service client.

All HTTP calls live here; request decoration (CI metadata, file parts) lives
in :mod:`tools.xcp`.
"""

from .client import APIClient, XCPRequest  # noqa: F401
from .types import APIConfig, get_api_config  # noqa: F401
