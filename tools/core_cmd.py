"""tools/core_cmd.py

Command-execution helpers shared across scanner adapters.

This module deliberately avoids tool-specific knowledge. It provides:

* :func:`which_or_raise` - resolve executables reliably across environments.
* :func:`run_cmd` - run short helper commands (git, ``--version``) and capture
  text output.
* :func:`run_local` - run a scanner binary directly (the no-docker path) and
  return its raw stdout.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Dict, List, Optional

from .errors import ToolExecutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str


def which_or_raise(bin_name: str, fallbacks: Optional[List[str]] = None) -> str:
    """Locate an executable and return its absolute path.

    ``fallbacks`` are absolute paths tried in order when ``bin_name`` is not
    on PATH (e.g. Homebrew locations).
    """
    found = shutil.which(bin_name)
    if found:
        return found

    for candidate in fallbacks or []:
        p = Path(candidate)
        if p.exists() and os.access(str(p), os.X_OK):
            return str(p)

    raise FileNotFoundError(
        f"Executable '{bin_name}' not found on PATH.\n"
        f"Install it and ensure it's available to this Python process.\n"
        f"Tried fallbacks: {fallbacks or []}"
    )


def run_cmd(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    timeout_seconds: int = 0,
    env: Optional[Dict[str, str]] = None,
) -> CmdResult:
    """Run a subprocess and capture stdout/stderr (no ``shell=True``).

    Never raises on non-zero exit codes. A missing executable or a timeout is
    reported as exit code 127 / 124 so callers only have one failure shape to
    check.
    """
    t0 = time.time()

    env2 = None
    if env is not None:
        env2 = os.environ.copy()
        env2.update(env)

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            timeout=timeout_seconds if timeout_seconds and timeout_seconds > 0 else None,
            env=env2,
        )
    except FileNotFoundError as e:
        return CmdResult(127, time.time() - t0, " ".join(cmd), "", str(e))
    except NotADirectoryError as e:
        return CmdResult(127, time.time() - t0, " ".join(cmd), "", str(e))
    except subprocess.TimeoutExpired as e:
        return CmdResult(
            exit_code=124,
            elapsed_seconds=time.time() - t0,
            command_str=" ".join(cmd),
            stdout=e.stdout or "",
            stderr=e.stderr or "",
        )

    return CmdResult(
        exit_code=proc.returncode,
        elapsed_seconds=time.time() - t0,
        command_str=" ".join(cmd),
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def run_local(
    program: str,
    args: List[str],
    *,
    cwd: Optional[str] = None,
    ok_exit_codes: Collection[int] = (0,),
) -> bytes:
    """Run a scanner binary and return its stdout.

    Stderr is left attached to this process so tool progress stays visible.
    Raises :class:`ToolExecutionError` when the exit code is not accepted.
    """
    cmd = [program, *args]
    command_str = " ".join(cmd)
    logger.info("Running %s", command_str)
    proc = subprocess.run(cmd, cwd=cwd or None, stdout=subprocess.PIPE)
    if proc.returncode not in ok_exit_codes:
        raise ToolExecutionError(command_str, proc.returncode, proc.stdout or b"")
    return proc.stdout or b""
