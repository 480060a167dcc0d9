"""Solution manifest grammar, parsing and text surgery."""

from .document import ManifestDocument
from .grammar import (
    GlobalSection,
    LineSpan,
    RegistrationBlock,
    normalize_id,
    scan_global_sections,
    scan_registrations,
)
from .models import (
    FolderEntry,
    ManifestRegistry,
    ProjectEntry,
    VersionControlRecord,
    VersionControlSection,
)
from .parser import (
    ManifestParseError,
    NestingCycleError,
    load_manifest,
    nested_path_for,
    parse_manifest,
    read_manifest_text,
)
from .surgeon import (
    ENTRY_NOT_FOUND,
    VERSION_CONTROL_INDEX_UNRESOLVABLE,
    ManifestSurgeon,
    RemovalResult,
    RemovedEntry,
    SurgeryWarning,
    apply_removal,
    format_removal_summary,
)

__all__ = [
    "ENTRY_NOT_FOUND",
    "FolderEntry",
    "GlobalSection",
    "LineSpan",
    "ManifestDocument",
    "ManifestParseError",
    "ManifestRegistry",
    "ManifestSurgeon",
    "NestingCycleError",
    "ProjectEntry",
    "RegistrationBlock",
    "RemovalResult",
    "RemovedEntry",
    "SurgeryWarning",
    "VERSION_CONTROL_INDEX_UNRESOLVABLE",
    "VersionControlRecord",
    "VersionControlSection",
    "apply_removal",
    "format_removal_summary",
    "load_manifest",
    "nested_path_for",
    "normalize_id",
    "parse_manifest",
    "read_manifest_text",
    "scan_global_sections",
    "scan_registrations",
]
