"""Reachability of registered projects from the manifest's root projects."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from sln_prune.config import ManifestConfig
from sln_prune.graph.references import extract_references
from sln_prune.manifest import ManifestRegistry, ProjectEntry, load_manifest
from sln_prune.security import is_external_path, path_key, resolve_reference_path

DescriptorReader = Callable[[Path], str | None]

_ACTIVE = 1
_DONE = 2


class IncompleteGraphError(Exception):
    """Raised when a reachable project descriptor is missing on disk."""

    code = "INCOMPLETE_GRAPH"

    def __init__(self, missing_path: Path, entry_id: str, referenced_from: str | None) -> None:
        super().__init__(f"Project file is missing: {missing_path}")
        self.missing_path = missing_path
        self.entry_id = entry_id
        self.referenced_from = referenced_from


class ReferenceCycleError(Exception):
    """Raised when project references loop back to a project still being walked."""

    code = "REFERENCE_CYCLE"

    def __init__(self, cycle: tuple[str, ...]) -> None:
        super().__init__(f"Project references contain a cycle: {' -> '.join(cycle)}")
        self.cycle = cycle


@dataclass(slots=True, frozen=True)
class ReachabilityResult:
    """Classification of every registered project."""

    roots: tuple[ProjectEntry, ...]
    externals: tuple[ProjectEntry, ...]
    reachable_ids: frozenset[str]
    unused: tuple[ProjectEntry, ...]
    descriptors_read: int


@dataclass(slots=True, frozen=True)
class DetectionResult:
    """Unused projects of one manifest plus its folder name table."""

    registry: ManifestRegistry
    reachability: ReachabilityResult

    @property
    def unused(self) -> tuple[ProjectEntry, ...]:
        """Return removable candidates in manifest order."""
        return self.reachability.unused

    @property
    def folder_names(self) -> dict[str, str]:
        """Return the folder id -> declared name table."""
        return self.registry.folder_names()


def read_descriptor_file(path: Path) -> str | None:
    """Return descriptor text, or None when the file is missing or unreadable."""
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError:
        return None


def classify_roots(
    entries: Sequence[ProjectEntry], manifest_dir: Path
) -> tuple[tuple[ProjectEntry, ...], tuple[ProjectEntry, ...]]:
    """Split entries into roots and external projects, keeping manifest order."""
    roots: list[ProjectEntry] = []
    externals: list[ProjectEntry] = []
    for entry in entries:
        if is_external_path(manifest_dir, entry.relative_path):
            externals.append(entry)
        else:
            roots.append(entry)
    return tuple(roots), tuple(externals)


def compute_reachability(
    entries: Sequence[ProjectEntry],
    manifest_dir: Path,
    read_descriptor: DescriptorReader = read_descriptor_file,
) -> ReachabilityResult:
    """Walk references from every root and return the projects never reached.

    Any missing descriptor met during the walk aborts the run with
    IncompleteGraphError; no partial classification is ever returned.
    """
    by_key: dict[str, ProjectEntry] = {}
    for entry in entries:
        by_key.setdefault(path_key(entry.absolute_path), entry)

    roots, externals = classify_roots(entries, manifest_dir)
    root_ids = frozenset(root.entry_id for root in roots)
    working = frozenset(entry.entry_id for entry in entries) - root_ids
    state: dict[str, int] = {}
    descriptors_read = 0

    def targets(entry: ProjectEntry, referenced_from: str | None) -> list[ProjectEntry]:
        nonlocal descriptors_read
        text = read_descriptor(entry.absolute_path)
        if text is None:
            raise IncompleteGraphError(entry.absolute_path, entry.entry_id, referenced_from)
        descriptors_read += 1
        found: list[ProjectEntry] = []
        seen: set[str] = set()
        base_dir = entry.absolute_path.parent
        for edge in extract_references(text):
            target = by_key.get(path_key(resolve_reference_path(base_dir, edge.include_path)))
            # Roots are walked on their own; an edge back into one is never followed.
            if target is None or target.entry_id in seen or target.entry_id in root_ids:
                continue
            seen.add(target.entry_id)
            found.append(target)
        return found

    for root in roots:
        state[root.entry_id] = _ACTIVE
        stack: list[tuple[ProjectEntry, Iterator[ProjectEntry]]] = [
            (root, iter(targets(root, None)))
        ]
        while stack:
            current, pending = stack[-1]
            target = next(pending, None)
            if target is None:
                state[current.entry_id] = _DONE
                stack.pop()
                continue
            target_state = state.get(target.entry_id)
            if target_state == _DONE:
                continue
            if target_state == _ACTIVE:
                chain = [item.entry_id for item, _ in stack]
                start = chain.index(target.entry_id)
                raise ReferenceCycleError((*chain[start:], target.entry_id))
            state[target.entry_id] = _ACTIVE
            stack.append((target, iter(targets(target, current.entry_id))))

    reachable = frozenset(state)
    unused = tuple(
        entry
        for entry in entries
        if entry.entry_id in working and entry.entry_id not in reachable
    )
    return ReachabilityResult(
        roots=roots,
        externals=externals,
        reachable_ids=reachable,
        unused=unused,
        descriptors_read=descriptors_read,
    )


def detect_unused(
    manifest_path: Path,
    config: ManifestConfig | None = None,
    read_descriptor: DescriptorReader = read_descriptor_file,
) -> DetectionResult:
    """Parse a manifest and classify its projects as used or unused."""
    registry = load_manifest(manifest_path, config)
    reachability = compute_reachability(
        list(registry.projects.values()),
        registry.manifest_dir,
        read_descriptor=read_descriptor,
    )
    return DetectionResult(registry=registry, reachability=reachability)
