"""Typed models for a parsed solution manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True, frozen=True)
class ProjectEntry:
    """A registration whose path points at a project descriptor."""

    entry_id: str
    name: str
    relative_path: str
    absolute_path: Path
    nested_path: str = ""
    is_project: bool = True


@dataclass(slots=True, frozen=True)
class FolderEntry:
    """A registration for a non-buildable container folder."""

    entry_id: str
    name: str


@dataclass(slots=True, frozen=True)
class VersionControlRecord:
    """Parallel version-control properties stored under one index."""

    index: int
    unique_name: str | None
    top_level_parent_unique_name: str | None
    project_name: str | None
    local_path: str | None


@dataclass(slots=True, frozen=True)
class VersionControlSection:
    """Version-control bookkeeping section contents."""

    name: str
    number_of_projects: int | None
    records: tuple[VersionControlRecord, ...]


@dataclass(slots=True, frozen=True)
class ManifestRegistry:
    """Everything extracted from one manifest text."""

    manifest_path: Path
    text: str
    projects: dict[str, ProjectEntry] = field(default_factory=dict)
    folders: dict[str, FolderEntry] = field(default_factory=dict)
    nesting: dict[str, str] = field(default_factory=dict)
    version_control: VersionControlSection | None = None

    @property
    def manifest_dir(self) -> Path:
        """Return the directory every registered path is relative to."""
        return self.manifest_path.parent

    def folder_names(self) -> dict[str, str]:
        """Return the folder id -> declared name table."""
        return {entry_id: folder.name for entry_id, folder in self.folders.items()}
