"""tools/errors.py

Error kinds raised by the scanner plumbing.

Callers need to tell "the tool could not be started" (docker missing or not
running) apart from "the tool ran and failed", so Docker availability problems
carry a :class:`DockerErrorKind` tag instead of being plain strings.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ScanError(Exception):
    """Base class for every error raised by tools/*."""


class DockerErrorKind(Enum):
    NOT_RUNNING = "not_running"
    NOT_INSTALLED = "not_installed"
    UNKNOWN = "unknown"


_DOCKER_MESSAGES = {
    DockerErrorKind.NOT_RUNNING: "the docker server is not running",
    DockerErrorKind.NOT_INSTALLED: "the docker executable is not present, or is not in the PATH",
    DockerErrorKind.UNKNOWN: "unknown error checking docker availability",
}


class DockerError(ScanError):
    def __init__(self, kind: DockerErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        super().__init__(message or _DOCKER_MESSAGES[kind])


class ToolExecutionError(ScanError):
    """A scanner exited with a code that is not one of its accepted codes."""

    def __init__(self, command: str, exit_code: int, output: bytes = b"") -> None:
        self.command = command
        self.exit_code = exit_code
        self.output = output
        super().__init__(f"{command} exited with code {exit_code}")


class ParseError(ScanError):
    """Raw scanner output could not be parsed."""


class UploadError(ScanError):
    """Transport or server failure while uploading results."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def is_docker_error(err: BaseException) -> bool:
    return isinstance(err, DockerError)
