"""Path normalization helpers for manifest and descriptor references."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")
PARENT_TRAVERSAL_TOKEN: Final[str] = ".."


def _normalize_relative_input(candidate: str) -> tuple[str, bool]:
    """Normalize path separators and detect absolute-style inputs."""
    normalized = candidate.strip().replace("\\", "/")
    if normalized.startswith("/"):
        return normalized, True
    if WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        return normalized, True
    return normalized, False


def is_parent_traversal(relative_path: str) -> bool:
    """Return True when a manifest path starts with a parent-directory segment."""
    normalized, is_absolute_style = _normalize_relative_input(relative_path)
    if is_absolute_style:
        return False
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    return bool(parts) and parts[0] == PARENT_TRAVERSAL_TOKEN


def resolve_reference_path(base_dir: Path, candidate: str) -> Path:
    """Resolve a manifest or descriptor path against the directory that declares it."""
    normalized, is_absolute_style = _normalize_relative_input(candidate)
    if is_absolute_style:
        return Path(os.path.normpath(normalized))
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    joined = base_dir.joinpath(*parts) if parts else base_dir
    return Path(os.path.normpath(joined.absolute()))


def is_external_path(base_dir: Path, relative_path: str) -> bool:
    """Return True when a registered path lives outside the manifest directory tree."""
    if is_parent_traversal(relative_path):
        return True
    _, is_absolute_style = _normalize_relative_input(relative_path)
    if not is_absolute_style:
        return False
    root = Path(os.path.normpath(base_dir.absolute()))
    resolved = resolve_reference_path(base_dir, relative_path)
    return not _is_relative_to(path_key(resolved), path_key(root))


def path_key(path: Path) -> str:
    """Return the identity key used to match two spellings of one project file."""
    return os.path.normpath(str(path)).replace("\\", "/").casefold()


def _is_relative_to(candidate_key: str, root_key: str) -> bool:
    if candidate_key == root_key:
        return True
    return candidate_key.startswith(root_key.rstrip("/") + "/")
