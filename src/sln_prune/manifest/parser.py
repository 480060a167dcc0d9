"""Solution manifest parsing."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from sln_prune.config import (
    DEFAULT_PROJECT_EXTENSIONS,
    DEFAULT_VERSION_CONTROL_SECTIONS,
    ManifestConfig,
)
from sln_prune.manifest.document import ManifestDocument
from sln_prune.manifest.grammar import (
    NESTING_SECTION_NAME,
    VERSION_CONTROL_LOCAL_PATH_KEY,
    VERSION_CONTROL_NAME_KEY,
    VERSION_CONTROL_PARENT_KEY,
    VERSION_CONTROL_UNIQUE_NAME_KEY,
    GlobalSection,
    find_count_property,
    find_section,
    scan_global_sections,
    scan_indexed_properties,
    scan_nesting_lines,
    scan_registrations,
)
from sln_prune.manifest.models import (
    FolderEntry,
    ManifestRegistry,
    ProjectEntry,
    VersionControlRecord,
    VersionControlSection,
)
from sln_prune.security import resolve_reference_path

NESTED_PATH_SEPARATOR = "/"


class ManifestParseError(Exception):
    """Raised when the manifest cannot be read or is structurally unusable."""

    code = "MANIFEST_UNREADABLE"

    def __init__(self, reason: str, path: Path | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.path = path


class NestingCycleError(ManifestParseError):
    """Raised when the nesting relation loops back on itself."""

    code = "NESTING_CYCLE"

    def __init__(self, cycle: tuple[str, ...], path: Path | None = None) -> None:
        super().__init__(f"Nesting relation contains a cycle: {' -> '.join(cycle)}", path)
        self.cycle = cycle


def default_manifest_config() -> ManifestConfig:
    """Return manifest grammar settings with built-in defaults."""
    return ManifestConfig(
        project_extensions=DEFAULT_PROJECT_EXTENSIONS,
        version_control_sections=DEFAULT_VERSION_CONTROL_SECTIONS,
    )


def read_manifest_text(manifest_path: Path) -> str:
    """Read manifest text, keeping BOM and newline style intact."""
    if not manifest_path.is_file():
        raise ManifestParseError("Manifest file does not exist.", manifest_path)
    try:
        raw = manifest_path.read_bytes()
    except OSError as error:
        raise ManifestParseError(f"Manifest file is unreadable: {error}", manifest_path) from error
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as error:
        raise ManifestParseError("Manifest file is not valid UTF-8 text.", manifest_path) from error


def load_manifest(manifest_path: Path, config: ManifestConfig | None = None) -> ManifestRegistry:
    """Read and parse the manifest at `manifest_path`."""
    resolved = manifest_path.resolve()
    text = read_manifest_text(resolved)
    return parse_manifest(text, resolved, config)


def parse_manifest(
    text: str, manifest_path: Path, config: ManifestConfig | None = None
) -> ManifestRegistry:
    """Extract registrations, nesting and version-control records from manifest text."""
    active = config or default_manifest_config()
    document = ManifestDocument.from_text(text)
    lines = document.lines
    manifest_dir = manifest_path.parent

    blocks = scan_registrations(lines)
    sections = scan_global_sections(lines)
    nesting_section = find_section(sections, (NESTING_SECTION_NAME,))
    nesting: dict[str, str] = {}
    for line in scan_nesting_lines(lines, nesting_section):
        nesting[line.child_id] = line.parent_id

    names = {block.entry_id: block.name for block in blocks}
    folders: dict[str, FolderEntry] = {}
    projects: dict[str, ProjectEntry] = {}
    for block in blocks:
        if block.is_solution_folder:
            folders.setdefault(
                block.entry_id, FolderEntry(entry_id=block.entry_id, name=block.name)
            )
            continue
        if block.entry_id in projects or not active.is_project_path(block.relative_path):
            continue
        projects[block.entry_id] = ProjectEntry(
            entry_id=block.entry_id,
            name=block.name,
            relative_path=block.relative_path,
            absolute_path=resolve_reference_path(manifest_dir, block.relative_path),
            nested_path=nested_path_for(block.entry_id, nesting, names, manifest_path),
        )

    version_control_section = find_section(sections, active.version_control_sections)
    version_control = None
    if version_control_section is not None:
        version_control = _parse_version_control(lines, version_control_section)

    return ManifestRegistry(
        manifest_path=manifest_path,
        text=text,
        projects=projects,
        folders=folders,
        nesting=nesting,
        version_control=version_control,
    )


def nested_path_for(
    entry_id: str,
    nesting: Mapping[str, str],
    names: Mapping[str, str],
    manifest_path: Path | None = None,
) -> str:
    """Return the slash-joined ancestor folder names of an entry, root-most first."""
    ancestors: list[str] = []
    seen = {entry_id}
    chain = [entry_id]
    current = nesting.get(entry_id)
    while current is not None:
        chain.append(current)
        if current in seen:
            raise NestingCycleError(tuple(chain), manifest_path)
        seen.add(current)
        name = names.get(current)
        if name is None:
            break
        ancestors.append(name)
        current = nesting.get(current)
    ancestors.reverse()
    return NESTED_PATH_SEPARATOR.join(ancestors)


def _parse_version_control(lines: list[str], section: GlobalSection) -> VersionControlSection:
    values: dict[int, dict[str, str]] = {}
    for prop in scan_indexed_properties(lines, section):
        values.setdefault(prop.index, {})[prop.key] = prop.value
    records = tuple(
        VersionControlRecord(
            index=index,
            unique_name=values[index].get(VERSION_CONTROL_UNIQUE_NAME_KEY),
            top_level_parent_unique_name=values[index].get(VERSION_CONTROL_PARENT_KEY),
            project_name=values[index].get(VERSION_CONTROL_NAME_KEY),
            local_path=values[index].get(VERSION_CONTROL_LOCAL_PATH_KEY),
        )
        for index in sorted(values)
    )
    count = find_count_property(lines, section)
    return VersionControlSection(
        name=section.name,
        number_of_projects=count[1] if count is not None else None,
        records=records,
    )
