from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

API_URL_DEFAULT = "https://api.iacscan.dev"
API_TIMEOUT_DEFAULT = 60


@dataclass(frozen=True)
class APIConfig:
    """Connection settings for the assessment service."""
    url: str
    token: str
    org: str
    timeout_seconds: int = API_TIMEOUT_DEFAULT


def get_api_config(
    *,
    url: Optional[str] = None,
    token: Optional[str] = None,
    org: Optional[str] = None,
) -> APIConfig:
    """Resolve API settings from arguments, falling back to IACSCAN_* env vars.

    Call ``load_dotenv`` first if a project .env should be honoured.
    """
    url = url or os.environ.get("IACSCAN_API_URL", API_URL_DEFAULT)
    token = token or os.environ.get("IACSCAN_API_TOKEN")
    org = org or os.environ.get("IACSCAN_ORG")
    if not token:
        raise SystemExit("ERROR: IACSCAN_API_TOKEN is not set.")
    if not org:
        raise SystemExit("ERROR: IACSCAN_ORG is not set (or pass --org).")

    raw_timeout = os.environ.get("IACSCAN_API_TIMEOUT", "").strip()
    try:
        timeout = int(raw_timeout) if raw_timeout else API_TIMEOUT_DEFAULT
    except ValueError:
        raise SystemExit(f"ERROR: IACSCAN_API_TIMEOUT must be an integer, got {raw_timeout!r}.")

    return APIConfig(url=url.rstrip("/"), token=token, org=org, timeout_seconds=timeout)
