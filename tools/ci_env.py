"""tools/ci_env.py

CI environment metadata sent along with every upload.

We want enough of the CI environment to tie a result back to a pipeline run
(GitHub Actions, CircleCI, GitLab, Buildkite, ...) but never anything that
could hold a credential. Variables are therefore filtered twice:

* deny by substring (``TOKEN``, ``SECRET``, ...) and by exact name, then
* allow only keys that start with a known CI prefix.

The lists live in an immutable :class:`CIEnvPolicy` so tests (and callers with
stricter needs) can pass their own.
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .core_git import collect_git_metadata, normalize_git_remote


CI_SYSTEM_KEY = "IACSCAN_METADATA_CI_SYSTEM"
GIT_REMOTE_KEY = "IACSCAN_METADATA_GIT_REMOTE"
HOSTNAME_KEY = "IACSCAN_METADATA_HOSTNAME"


@dataclass(frozen=True)
class CIEnvPolicy:
    omit_substrings: Tuple[str, ...]
    omit_exact: Tuple[str, ...]
    ci_prefixes: Tuple[str, ...]


DEFAULT_CI_ENV_POLICY = CIEnvPolicy(
    omit_substrings=(
        "SECRET", "KEY", "PRIVATE", "PASSWORD",
        "PASSPHRASE", "CREDS", "TOKEN", "AUTH",
        "ENC", "JWT",
        "_USR", "_PSW",  # Jenkins credentials()
    ),
    omit_exact=(
        "BUILDKITE_S3_SECRET_ACCESS_KEY",
        "BUILDKITE_S3_ACCESS_KEY_ID",
        "BUILDKITE_S3_ACCESS_URL",
        "BUILDKITE_COMMAND",
        "BUILDKITE_SCRIPT_PATH",
        "KEY",  # CircleCI encrypted-files decryption key
        "CI_DEPLOY_PASSWORD",
        "CI_DEPLOY_USER",
        "CI_JOB_TOKEN",
        "CI_JOB_JWT",
        "CI_REGISTRY_USER",
        "CI_REGISTRY_PASSWORD",
    ),
    ci_prefixes=("GITHUB_", "CIRCLE_", "GITLAB_", "CI_", "BUILDKITE_", "ZODIAC_"),
)


def filter_ci_env(
    environ: Mapping[str, str],
    policy: CIEnvPolicy = DEFAULT_CI_ENV_POLICY,
) -> Tuple[Dict[str, str], str]:
    """Return (kept variables keyed by uppercased name, detected CI system)."""
    values: Dict[str, str] = {}
    matched_prefixes = set()
    for name, value in environ.items():
        key = name.upper()
        if any(s in key for s in policy.omit_substrings):
            continue
        if key in policy.omit_exact:
            continue
        prefix = next((p for p in policy.ci_prefixes if key.startswith(p)), None)
        if prefix is None:
            continue
        values[key] = value
        matched_prefixes.add(prefix)

    ci_system = ""
    for prefix in policy.ci_prefixes:
        if prefix in matched_prefixes:
            ci_system = prefix.split("_", 1)[0]
            break
    return values, ci_system


def get_ci_env(
    directory: str,
    environ: Optional[Mapping[str, str]] = None,
    policy: CIEnvPolicy = DEFAULT_CI_ENV_POLICY,
) -> Dict[str, str]:
    """Collect CI + git + host metadata for the scan of ``directory``."""
    directory = os.path.normpath(directory) if directory else directory
    values, ci_system = filter_ci_env(os.environ if environ is None else environ, policy)
    values[CI_SYSTEM_KEY] = ci_system

    values.update(collect_git_metadata(directory))
    remote = values.get(GIT_REMOTE_KEY)
    if remote:
        values[GIT_REMOTE_KEY] = normalize_git_remote(remote)

    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = ""
    if hostname:
        values[HOSTNAME_KEY] = hostname

    return values
