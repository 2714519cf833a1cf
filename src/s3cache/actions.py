"""GitHub Actions step outputs and state.

The runner passes file paths in GITHUB_OUTPUT and GITHUB_STATE; values
appended there become step outputs and post-step state. State saved by the
restore step is visible to the save step as ``STATE_<name>``.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from s3cache.core.models import RestoreResult


logger = logging.getLogger(__name__)

CACHE_HIT_STATE = "cache-hit"


def _format_command(name: str, value: str) -> str:
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def _append(env_var: str, name: str, value: str, environ: Mapping[str, str]) -> bool:
    target = environ.get(env_var)
    if not target:
        return False
    with Path(target).open("a", encoding="utf-8") as f:
        f.write(_format_command(name, value))
    return True


def set_output(name: str, value: str, environ: Mapping[str, str] | None = None) -> None:
    """Set a step output; logged instead when GITHUB_OUTPUT is unset."""
    env = os.environ if environ is None else environ
    if not _append("GITHUB_OUTPUT", name, value, env):
        logger.info("Output %s=%s", name, value)


def save_state(name: str, value: str, environ: Mapping[str, str] | None = None) -> None:
    """Save state for the post step; dropped when GITHUB_STATE is unset."""
    env = os.environ if environ is None else environ
    if not _append("GITHUB_STATE", name, value, env):
        logger.debug("GITHUB_STATE not set, dropping state %s", name)


def get_state(name: str, environ: Mapping[str, str] | None = None) -> str:
    """Read state saved by an earlier step, or "" if none."""
    env = os.environ if environ is None else environ
    return env.get(f"STATE_{name}", "")


def set_restore_outputs(
    result: RestoreResult, environ: Mapping[str, str] | None = None
) -> None:
    """Publish cache-hit, cache-primary-key, and cache-matched-key."""
    set_output("cache-hit", str(result.cache_hit).lower(), environ)
    set_output("cache-primary-key", result.primary_key, environ)
    set_output("cache-matched-key", result.matched_key, environ)
