"""tools/docker.py

Run a scanner inside a Docker container.

Flow for :meth:`DockerTool.run`:

  docker info (availability) -> docker pull (best-effort) -> docker run

The availability probe runs first so "docker is not installed" and "docker is
not running" surface as distinct :class:`~tools.errors.DockerError` kinds
instead of a generic exec failure further down.
"""

from __future__ import annotations

import io
import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Collection, List, Optional

from .errors import DockerError, DockerErrorKind, ToolExecutionError

logger = logging.getLogger(__name__)

SRC_MOUNT = "/src"
POLICY_MOUNT = "/policy"
PROXY_ENV_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "NO_PROXY")


def docker_info_exit_code() -> int:
    """Exit code of ``docker info``; 127 when the executable cannot be found."""
    # ref: https://docs.docker.com/config/daemon/#check-whether-docker-is-running
    try:
        proc = subprocess.run(
            ["docker", "info"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except FileNotFoundError:
        return 127
    return proc.returncode


def classify_docker_info(exit_code: int) -> Optional[DockerError]:
    if exit_code == 0:
        return None
    if exit_code == 1:
        logger.error("This command requires docker but docker is not running")
        return DockerError(DockerErrorKind.NOT_RUNNING)
    if exit_code == 127:
        logger.error("This command requires docker but the docker command is not found")
        return DockerError(DockerErrorKind.NOT_INSTALLED)
    logger.error("This command requires docker but docker info exited with code %s", exit_code)
    return DockerError(DockerErrorKind.UNKNOWN)


def has_docker(probe: Callable[[], int] = docker_info_exit_code) -> None:
    """Raise :class:`DockerError` unless the docker daemon is usable."""
    err = classify_docker_info(probe())
    if err is not None:
        raise err


def append_proxy_env(getenv: Callable[[str], Optional[str]], args: List[str]) -> List[str]:
    """Forward proxy settings by name only; the container reads the values
    from its own environment, so they never show up in a process listing."""
    for k in PROXY_ENV_VARS:
        if getenv(k):
            args.extend(["-e", k])
        lk = k.lower()
        if getenv(lk):
            args.extend(["-e", lk])
    return args


def _fileno_target(stream: Optional[IO[Any]]) -> Optional[IO[Any]]:
    """``stream`` if subprocess can write to it directly, else None."""
    if stream is None:
        return None
    try:
        stream.fileno()
    except (AttributeError, ValueError, io.UnsupportedOperation):
        return None
    return stream


def _write_stream(stream: IO[Any], data: bytes) -> None:
    if not data:
        return
    if isinstance(stream, io.TextIOBase):
        stream.write(data.decode("utf-8", errors="replace"))
    else:
        stream.write(data)


@dataclass
class DockerTool:
    name: str
    image: str
    docker_args: List[str] = field(default_factory=list)
    args: List[str] = field(default_factory=list)
    default_no_docker_name: str = ""
    policy_directory: str = ""
    stdout: Optional[IO[Any]] = None
    stderr: Optional[IO[Any]] = None
    directory: str = ""
    ok_exit_codes: Collection[int] = (0,)

    def get_args(self, getenv: Callable[[str], Optional[str]] = os.environ.get) -> List[str]:
        args = ["run", "--rm"]
        if self.directory:
            args += ["-v", f"{self.directory}:{SRC_MOUNT}", "-w", SRC_MOUNT]
        tool_args = list(self.args)
        if self.policy_directory:
            args += ["-v", f"{self.policy_directory}:{POLICY_MOUNT}"]
            tool_args = [POLICY_MOUNT if a == self.policy_directory else a for a in tool_args]
        args += self.docker_args
        append_proxy_env(getenv, args)
        args.append(self.image)
        args += tool_args
        return args

    def pull(self) -> None:
        proc = subprocess.run(["docker", "pull", self.image], stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        if proc.returncode != 0:
            _write_stream(sys.stderr, proc.stdout or b"")
            logger.warning(
                "docker pull %s failed: %s",
                self.image,
                (proc.stderr or b"").decode("utf-8", errors="replace").strip() or f"exit code {proc.returncode}",
            )

    def run(self, skip_pull: bool = False) -> bytes:
        """Run the container and return captured stdout.

        When :attr:`stdout` is set the output is streamed there and ``b""`` is
        returned.
        """
        has_docker()
        if not skip_pull:
            self.pull()

        cmd = ["docker", *self.get_args()]
        command_str = " ".join(cmd)
        logger.info("Running %s", command_str)

        # Streams without a file descriptor (e.g. StringIO) are piped and copied.
        stderr_target = _fileno_target(self.stderr)
        if self.stderr is None or stderr_target is not None:
            stderr_arg = stderr_target
        else:
            stderr_arg = subprocess.PIPE
        stdout_target = _fileno_target(self.stdout)
        stdout_arg = stdout_target if stdout_target is not None else subprocess.PIPE

        proc = subprocess.run(cmd, stdout=stdout_arg, stderr=stderr_arg)

        if self.stderr is not None and stderr_target is None:
            _write_stream(self.stderr, proc.stderr or b"")

        output = b""
        if self.stdout is not None:
            if stdout_target is None:
                _write_stream(self.stdout, proc.stdout or b"")
        else:
            output = proc.stdout or b""

        if proc.returncode not in self.ok_exit_codes:
            raise ToolExecutionError(command_str, proc.returncode, output)
        return output
