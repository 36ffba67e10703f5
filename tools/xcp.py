"""tools/xcp.py

Request options for :meth:`tools.api.APIClient.xcp_post`.

Each ``with_*`` function returns a callable that decorates an
:class:`~tools.api.client.XCPRequest`.
"""

from __future__ import annotations

from typing import IO

from tools.api.client import Option, XCPRequest
from tools.ci_env import get_ci_env


def with_ci_env(directory: str) -> Option:
    """Include CI metadata: query params for GET, form fields otherwise."""

    def _apply(req: XCPRequest) -> None:
        if req.method == "GET":
            req.set_query_params(get_ci_env(directory))
        else:
            req.set_multipart_form_data(get_ci_env(directory))

    return _apply


def with_ci_env_body(directory: str) -> Option:
    """Include CI metadata as the JSON body of the request."""

    def _apply(req: XCPRequest) -> None:
        req.set_body(dict(get_ci_env(directory)))

    return _apply


def with_file_from_reader(param: str, filename: str, reader: IO[bytes]) -> Option:
    def _apply(req: XCPRequest) -> None:
        req.set_file_reader(param, filename, reader)

    return _apply
