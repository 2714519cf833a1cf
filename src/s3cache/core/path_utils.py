"""Path helpers for the save flow."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable


def validate_paths(paths: Iterable[str]) -> tuple[list[str], list[str]]:
    """Partition cache paths into those that exist and those that don't.

    Entries are trimmed and blank entries dropped. Order is preserved.

    Args:
        paths: Paths as given by the user.

    Returns:
        Tuple of (valid, missing).
    """
    valid: list[str] = []
    missing: list[str] = []
    for raw in paths:
        path = raw.strip()
        if not path:
            continue
        if Path(path).exists():
            valid.append(path)
        else:
            missing.append(path)
    return valid, missing
