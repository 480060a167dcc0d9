"""Line and block grammar of the solution manifest text format."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final

GUID_PATTERN: Final[str] = (
    r"[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}"
)

SOLUTION_FOLDER_TYPE_ID: Final[str] = "2150E333-8FDC-42A3-9474-1A3956D46DE8"
NESTING_SECTION_NAME: Final[str] = "NestedProjects"
VERSION_CONTROL_COUNT_KEY: Final[str] = "SccNumberOfProjects"
VERSION_CONTROL_UNIQUE_NAME_KEY: Final[str] = "SccProjectUniqueName"
VERSION_CONTROL_PARENT_KEY: Final[str] = "SccProjectTopLevelParentUniqueName"
VERSION_CONTROL_NAME_KEY: Final[str] = "SccProjectName"
VERSION_CONTROL_LOCAL_PATH_KEY: Final[str] = "SccLocalPath"

_REGISTRATION_RE = re.compile(
    r'^\s*Project\(\s*"\{?(?P<type_id>[^"}]*)\}?"\s*\)\s*=\s*'
    r'"(?P<name>[^"]*)"\s*,\s*"(?P<path>[^"]*)"\s*,\s*"\{(?P<id>' + GUID_PATTERN + r")\}\"",
)
_END_PROJECT_RE = re.compile(r"^\s*EndProject\s*$")
_SOLUTION_ITEMS_RE = re.compile(r"^\s*ProjectSection\(\s*SolutionItems\s*\)", re.IGNORECASE)
_GLOBAL_RE = re.compile(r"^\s*(?:Global|EndGlobal)\s*$")
_GLOBAL_SECTION_RE = re.compile(
    r"^\s*GlobalSection\(\s*(?P<name>[^)]*?)\s*\)\s*=\s*(?P<timing>\S*)"
)
_END_GLOBAL_SECTION_RE = re.compile(r"^\s*EndGlobalSection\s*$")
_NESTING_LINE_RE = re.compile(
    r"^\s*\{(?P<child>" + GUID_PATTERN + r")\}\s*=\s*\{(?P<parent>" + GUID_PATTERN + r")\}\s*$"
)
_BUILD_CONFIG_LINE_RE = re.compile(
    r"^\s*\{(?P<id>" + GUID_PATTERN + r")\}\.(?P<config>[^=]*\|[^=]*?)\s*=.*$"
)
_INDEXED_PROPERTY_RE = re.compile(
    r"^(?P<indent>\s*)(?P<key>Scc[A-Za-z]+?)(?P<index>\d+)(?P<rest>\s*=\s*(?P<value>.*?)\s*)$"
)
_COUNT_PROPERTY_RE = re.compile(
    r"^(?P<prefix>\s*" + VERSION_CONTROL_COUNT_KEY + r"\s*=\s*)(?P<count>\d+)(?P<suffix>\s*)$"
)
_VALUE_ESCAPE_RE = re.compile(r"\\\\|\\u(?P<code>[0-9A-Fa-f]{4})")


@dataclass(slots=True, frozen=True)
class LineSpan:
    """Inclusive 0-based line range."""

    start: int
    end: int

    def indices(self) -> range:
        """Return every line index covered by the span."""
        return range(self.start, self.end + 1)


@dataclass(slots=True, frozen=True)
class RegistrationBlock:
    """`Project(...) = ...` line through its `EndProject` terminator."""

    entry_id: str
    type_id: str
    name: str
    relative_path: str
    span: LineSpan
    has_solution_items: bool = False

    @property
    def is_solution_folder(self) -> bool:
        """Return True when the registration uses the solution-folder type id."""
        return self.type_id == SOLUTION_FOLDER_TYPE_ID


@dataclass(slots=True, frozen=True)
class GlobalSection:
    """`GlobalSection(name) = timing` header through `EndGlobalSection`."""

    name: str
    timing: str
    span: LineSpan

    def body(self) -> range:
        """Return line indices strictly between header and terminator."""
        return range(self.span.start + 1, self.span.end)


@dataclass(slots=True, frozen=True)
class NestingLine:
    """`{child} = {parent}` line inside the nesting section."""

    line_index: int
    child_id: str
    parent_id: str


@dataclass(slots=True, frozen=True)
class IndexedProperty:
    """Version-control property keyed by a trailing 0-based index."""

    line_index: int
    indent: str
    key: str
    index: int
    rest: str
    value: str


def normalize_id(raw: str) -> str:
    """Return the canonical form of a manifest identifier (no braces, upper case)."""
    return raw.strip().strip("{}").strip().upper()


def scan_registrations(lines: Sequence[str]) -> tuple[RegistrationBlock, ...]:
    """Locate every registration block in manifest order."""
    blocks: list[RegistrationBlock] = []
    index = 0
    total = len(lines)
    while index < total:
        match = _REGISTRATION_RE.match(lines[index])
        if match is None:
            index += 1
            continue
        end = _find_block_end(lines, index)
        blocks.append(
            RegistrationBlock(
                entry_id=normalize_id(match.group("id")),
                type_id=normalize_id(match.group("type_id")),
                name=match.group("name"),
                relative_path=match.group("path"),
                span=LineSpan(start=index, end=end),
                has_solution_items=any(
                    _SOLUTION_ITEMS_RE.match(lines[line_index])
                    for line_index in range(index + 1, end)
                ),
            )
        )
        index = end + 1
    return tuple(blocks)


def _find_block_end(lines: Sequence[str], start: int) -> int:
    # An unterminated block covers only its registration line.
    for candidate in range(start + 1, len(lines)):
        line = lines[candidate]
        if _END_PROJECT_RE.match(line):
            return candidate
        if _REGISTRATION_RE.match(line) or _GLOBAL_RE.match(line):
            return start
    return start


def scan_global_sections(lines: Sequence[str]) -> tuple[GlobalSection, ...]:
    """Locate every global section in manifest order."""
    sections: list[GlobalSection] = []
    index = 0
    total = len(lines)
    while index < total:
        match = _GLOBAL_SECTION_RE.match(lines[index])
        if match is None:
            index += 1
            continue
        end = index
        for candidate in range(index + 1, total):
            if _END_GLOBAL_SECTION_RE.match(lines[candidate]):
                end = candidate
                break
            if _GLOBAL_SECTION_RE.match(lines[candidate]) or _GLOBAL_RE.match(lines[candidate]):
                end = candidate - 1
                break
        else:
            end = total - 1
        sections.append(
            GlobalSection(
                name=match.group("name"),
                timing=match.group("timing"),
                span=LineSpan(start=index, end=end),
            )
        )
        index = end + 1
    return tuple(sections)


def find_section(sections: Iterable[GlobalSection], names: Iterable[str]) -> GlobalSection | None:
    """Return the first section whose name matches one of `names` (case-insensitive)."""
    wanted = {name.lower() for name in names}
    for section in sections:
        if section.name.lower() in wanted:
            return section
    return None


def scan_nesting_lines(lines: Sequence[str], section: GlobalSection | None) -> list[NestingLine]:
    """Return nesting relation lines of the nesting section."""
    if section is None:
        return []
    output: list[NestingLine] = []
    for line_index in section.body():
        match = _NESTING_LINE_RE.match(lines[line_index])
        if match is None:
            continue
        output.append(
            NestingLine(
                line_index=line_index,
                child_id=normalize_id(match.group("child")),
                parent_id=normalize_id(match.group("parent")),
            )
        )
    return output


def build_config_line_ids(lines: Sequence[str]) -> dict[int, str]:
    """Map line index to entry id for every build-configuration line."""
    output: dict[int, str] = {}
    for line_index, line in enumerate(lines):
        match = _BUILD_CONFIG_LINE_RE.match(line)
        if match is not None:
            output[line_index] = normalize_id(match.group("id"))
    return output


def scan_indexed_properties(
    lines: Sequence[str], section: GlobalSection | None
) -> list[IndexedProperty]:
    """Return `Scc<Key><N> = value` lines of the version-control section."""
    if section is None:
        return []
    output: list[IndexedProperty] = []
    for line_index in section.body():
        match = _INDEXED_PROPERTY_RE.match(lines[line_index])
        if match is None:
            continue
        output.append(
            IndexedProperty(
                line_index=line_index,
                indent=match.group("indent"),
                key=match.group("key"),
                index=int(match.group("index")),
                rest=match.group("rest"),
                value=match.group("value"),
            )
        )
    return output


def find_count_property(
    lines: Sequence[str], section: GlobalSection | None
) -> tuple[int, int] | None:
    """Return `(line_index, count)` of the project-count property, if present."""
    if section is None:
        return None
    for line_index in section.body():
        match = _COUNT_PROPERTY_RE.match(lines[line_index])
        if match is not None:
            return line_index, int(match.group("count"))
    return None


def rewrite_count_property(line: str, count: int) -> str:
    """Return the count property line carrying a new value."""
    match = _COUNT_PROPERTY_RE.match(line)
    if match is None:
        return line
    return f"{match.group('prefix')}{count}{match.group('suffix')}"


def normalize_unique_name(value: str) -> str:
    """Decode a version-control unique name into the form `normalize_manifest_path` returns."""
    decoded = _VALUE_ESCAPE_RE.sub(_decode_value_escape, value.strip())
    return decoded.replace("\\", "/").casefold()


def normalize_manifest_path(value: str) -> str:
    """Normalize a registration path for comparison with version-control unique names."""
    return value.strip().replace("\\", "/").casefold()


def _decode_value_escape(match: re.Match[str]) -> str:
    # Doubled backslashes and \uXXXX code points are the escapes found in Scc values.
    code = match.group("code")
    if code is None:
        return "\\"
    return chr(int(code, 16))
