"""tools/api/client.py

Minimal assessment-service client.

Requests are assembled as an :class:`XCPRequest` and then decorated by option
callables (see :mod:`tools.xcp`), so callers can compose "add CI metadata",
"attach this file", ... without the client knowing about any of them.
Authentication is a bearer token from :class:`~tools.api.types.APIConfig`.
"""

from __future__ import annotations

import logging
import os
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from tools.errors import UploadError

from .types import APIConfig

logger = logging.getLogger(__name__)


@dataclass
class XCPRequest:
    method: str
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, str] = field(default_factory=dict)
    files: List[Tuple[str, Tuple[str, IO[bytes]]]] = field(default_factory=list)
    json_body: Optional[Dict[str, Any]] = None

    def set_query_params(self, values: Dict[str, str]) -> None:
        self.params.update(values)

    def set_multipart_form_data(self, values: Dict[str, str]) -> None:
        self.data.update(values)

    def set_file_reader(self, param: str, filename: str, reader: IO[bytes]) -> None:
        self.files.append((param, (filename, reader)))

    def set_body(self, body: Dict[str, Any]) -> None:
        self.json_body = body


Option = Callable[[XCPRequest], None]


class APIClient:
    def __init__(self, config: APIConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.token}"}

    def xcp_url(self, org: str, module: str) -> str:
        return f"{self.config.url}/api/v1/org/{org}/xcp/{module}/data"

    def xcp_post(
        self,
        org: str,
        module: str,
        files: Optional[Sequence[str]],
        values: Optional[Dict[str, str]],
        *options: Option,
    ) -> Dict[str, Any]:
        """POST tool data for ``module``; returns the decoded JSON response."""
        req = XCPRequest("POST", self.xcp_url(org, module))
        with ExitStack() as stack:
            for p in files or []:
                name = os.path.basename(p)
                req.set_file_reader(name, name, stack.enter_context(open(p, "rb")))
            if values:
                req.set_multipart_form_data(values)
            for opt in options:
                opt(req)
            return self.execute(req)

    def execute(self, req: XCPRequest) -> Dict[str, Any]:
        logger.debug("%s %s (%d file parts)", req.method, req.url, len(req.files))
        try:
            resp = self.session.request(
                req.method,
                req.url,
                params=req.params or None,
                data=req.data or None,
                files=req.files or None,
                json=req.json_body,
                headers=self._auth_headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise UploadError(f"{req.method} {req.url} failed: {e}") from e

        if not resp.ok:
            raise UploadError(
                f"{req.method} {req.url} returned HTTP {resp.status_code}: {resp.text[:200]!r}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError:
            logger.debug("Response from %s was not JSON", req.url)
            return {}
        return body if isinstance(body, dict) else {}
