"""Textual removal of entries from a solution manifest."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from sln_prune.config import ManifestConfig
from sln_prune.manifest.document import ManifestDocument
from sln_prune.manifest.grammar import (
    NESTING_SECTION_NAME,
    VERSION_CONTROL_UNIQUE_NAME_KEY,
    GlobalSection,
    RegistrationBlock,
    build_config_line_ids,
    find_count_property,
    find_section,
    normalize_id,
    normalize_manifest_path,
    normalize_unique_name,
    rewrite_count_property,
    scan_global_sections,
    scan_indexed_properties,
    scan_nesting_lines,
    scan_registrations,
)
from sln_prune.manifest.parser import default_manifest_config

VERSION_CONTROL_INDEX_UNRESOLVABLE = "VERSION_CONTROL_INDEX_UNRESOLVABLE"
ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"


@dataclass(slots=True, frozen=True)
class SurgeryWarning:
    """Non-fatal problem met while editing the manifest."""

    code: str
    entry_id: str
    message: str


@dataclass(slots=True, frozen=True)
class RemovedEntry:
    """Entry whose registration was deleted from the manifest."""

    entry_id: str
    name: str
    relative_path: str
    is_project: bool


@dataclass(slots=True, frozen=True)
class RemovalResult:
    """Edited manifest text plus what changed."""

    text: str
    removed: tuple[RemovedEntry, ...]
    pruned_folders: tuple[RemovedEntry, ...]
    warnings: tuple[SurgeryWarning, ...]

    @property
    def changed(self) -> bool:
        """Return True when at least one registration was deleted."""
        return bool(self.removed or self.pruned_folders)


@dataclass(slots=True)
class ManifestSurgeon:
    """Applies sequential deletions to one in-memory manifest document."""

    document: ManifestDocument
    config: ManifestConfig = field(default_factory=default_manifest_config)
    warnings: list[SurgeryWarning] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str, config: ManifestConfig | None = None) -> ManifestSurgeon:
        """Build a surgeon over manifest text."""
        return cls(
            document=ManifestDocument.from_text(text),
            config=config or default_manifest_config(),
        )

    def remove_entry(self, entry_id: str) -> RemovedEntry | None:
        """Delete one project or folder with every line keyed by its id."""
        wanted = normalize_id(entry_id)
        lines = self.document.lines
        block = _find_block(scan_registrations(lines), wanted)
        if block is None:
            self.warnings.append(
                SurgeryWarning(
                    code=ENTRY_NOT_FOUND,
                    entry_id=wanted,
                    message=f"Entry {{{wanted}}} is not registered in the manifest.",
                )
            )
            return None

        is_project = not block.is_solution_folder
        sections = scan_global_sections(lines)
        doomed: set[int] = set(block.span.indices())
        doomed.update(
            line_index
            for line_index, line_id in build_config_line_ids(lines).items()
            if line_id == wanted
        )
        nesting_section = find_section(sections, (NESTING_SECTION_NAME,))
        doomed.update(
            line.line_index
            for line in scan_nesting_lines(lines, nesting_section)
            if line.child_id == wanted
        )
        if is_project:
            version_control = find_section(sections, self.config.version_control_sections)
            if version_control is not None:
                doomed.update(self._release_version_control_index(block, version_control))

        self.document.delete_lines(doomed)
        return RemovedEntry(
            entry_id=wanted,
            name=block.name,
            relative_path=block.relative_path,
            is_project=is_project,
        )

    def _release_version_control_index(
        self, block: RegistrationBlock, section: GlobalSection
    ) -> set[int]:
        # Renumbering rewrites lines in place so the returned indices stay valid.
        lines = self.document.lines
        properties = scan_indexed_properties(lines, section)
        target_name = normalize_manifest_path(block.relative_path)
        removed_index: int | None = None
        for prop in properties:
            if prop.key != VERSION_CONTROL_UNIQUE_NAME_KEY:
                continue
            if normalize_unique_name(prop.value) == target_name:
                removed_index = prop.index
                break
        if removed_index is None:
            self.warnings.append(
                SurgeryWarning(
                    code=VERSION_CONTROL_INDEX_UNRESOLVABLE,
                    entry_id=block.entry_id,
                    message=(
                        f"Version-control index of '{block.name}' could not be resolved; "
                        "its bookkeeping entries were left in place."
                    ),
                )
            )
            return set()

        doomed: set[int] = set()
        for prop in properties:
            if prop.index == removed_index:
                doomed.add(prop.line_index)
            elif prop.index > removed_index:
                lines[prop.line_index] = f"{prop.indent}{prop.key}{prop.index - 1}{prop.rest}"
        count = find_count_property(lines, section)
        if count is not None:
            line_index, value = count
            lines[line_index] = rewrite_count_property(lines[line_index], max(0, value - 1))
        return doomed

    def remove_entries(self, entry_ids: Iterable[str]) -> list[RemovedEntry]:
        """Remove entries one after another, each fully before the next."""
        removed: list[RemovedEntry] = []
        for entry_id in entry_ids:
            entry = self.remove_entry(entry_id)
            if entry is not None:
                removed.append(entry)
        return removed

    def prune_empty_folders(self) -> list[RemovedEntry]:
        """Remove solution folders without children or items until a pass removes nothing."""
        pruned: list[RemovedEntry] = []
        while True:
            lines = self.document.lines
            nesting_section = find_section(scan_global_sections(lines), (NESTING_SECTION_NAME,))
            parents = {line.parent_id for line in scan_nesting_lines(lines, nesting_section)}
            empty = [
                block.entry_id
                for block in scan_registrations(lines)
                if block.is_solution_folder
                and not block.has_solution_items
                and block.entry_id not in parents
            ]
            if not empty:
                return pruned
            pruned.extend(self.remove_entries(empty))

    def render(self, strip_blank_lines: bool = True) -> str:
        """Return the edited manifest text."""
        if strip_blank_lines:
            self.document.strip_blank_lines()
        return self.document.render()


def _find_block(blocks: Iterable[RegistrationBlock], entry_id: str) -> RegistrationBlock | None:
    for block in blocks:
        if block.entry_id == entry_id:
            return block
    return None


def apply_removal(
    manifest_text: str,
    selected: Iterable[str],
    prune_empty_folders: bool,
    config: ManifestConfig | None = None,
) -> RemovalResult:
    """Remove selected entries, optionally prune emptied folders, and strip blank lines."""
    surgeon = ManifestSurgeon.from_text(manifest_text, config)
    ordered = list(dict.fromkeys(normalize_id(entry_id) for entry_id in selected))
    removed = surgeon.remove_entries(ordered)
    pruned: list[RemovedEntry] = []
    if prune_empty_folders:
        pruned = surgeon.prune_empty_folders()
    return RemovalResult(
        text=surgeon.render(strip_blank_lines=True),
        removed=tuple(removed),
        pruned_folders=tuple(pruned),
        warnings=tuple(surgeon.warnings),
    )


def format_removal_summary(result: RemovalResult) -> str:
    """Render the numbered list of removed projects and folders."""
    entries = [*result.removed, *result.pruned_folders]
    lines = [f"Removed {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}:"]
    for position, entry in enumerate(entries, start=1):
        suffix = "" if entry.is_project else " (folder)"
        lines.append(f"{position}. {entry.name}{suffix}")
    for warning in result.warnings:
        lines.append(f"warning: {warning.message}")
    return "\n".join(lines)
