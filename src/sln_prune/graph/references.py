"""Project reference extraction from project descriptor text."""

from __future__ import annotations

import re
from dataclasses import dataclass

from sln_prune.manifest.grammar import GUID_PATTERN, normalize_id

_XML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_REFERENCE_RE = re.compile(
    r"<ProjectReference\b(?P<attrs>[^>]*?)(?:/>|>(?P<body>.*?)</ProjectReference\s*>)",
    re.DOTALL | re.IGNORECASE,
)
_INCLUDE_RE = re.compile(
    r"""\bInclude\s*=\s*(?:"(?P<double>[^"]*)"|'(?P<single>[^']*)')""",
    re.IGNORECASE,
)
_PROJECT_ID_RE = re.compile(
    r"<Project>\s*\{?(?P<id>" + GUID_PATTERN + r")\}?\s*</Project>",
    re.IGNORECASE,
)


@dataclass(slots=True, frozen=True)
class ReferenceEdge:
    """Declared reference from a descriptor to another project file."""

    include_path: str
    declared_id: str | None


def _mask_comments(text: str) -> str:
    return _XML_COMMENT_RE.sub(lambda match: " " * len(match.group(0)), text)


def extract_references(text: str) -> list[ReferenceEdge]:
    """Return declared project references in order of appearance."""
    edges: list[ReferenceEdge] = []
    for match in _REFERENCE_RE.finditer(_mask_comments(text)):
        include = _INCLUDE_RE.search(match.group("attrs"))
        if include is None:
            continue
        include_path = include.group("double")
        if include_path is None:
            include_path = include.group("single")
        include_path = include_path.strip()
        if not include_path:
            continue
        declared_id = None
        body = match.group("body")
        if body is not None:
            id_match = _PROJECT_ID_RE.search(body)
            if id_match is not None:
                declared_id = normalize_id(id_match.group("id"))
        edges.append(ReferenceEdge(include_path=include_path, declared_id=declared_id))
    return edges
