"""In-memory line buffer for one manifest text."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

_BOM = "\ufeff"


@dataclass(slots=True)
class ManifestDocument:
    """Manifest text split into lines, remembering newline style and BOM."""

    lines: list[str] = field(default_factory=list)
    newline: str = "\n"
    has_bom: bool = False
    trailing_newline: bool = True

    @classmethod
    def from_text(cls, text: str) -> ManifestDocument:
        """Split manifest text into a document."""
        has_bom = text.startswith(_BOM)
        if has_bom:
            text = text[len(_BOM) :]
        newline = "\r\n" if "\r\n" in text else "\n"
        unified = text.replace("\r\n", "\n").replace("\r", "\n")
        trailing_newline = unified.endswith("\n")
        lines = unified.split("\n")
        if trailing_newline:
            lines.pop()
        return cls(
            lines=lines,
            newline=newline,
            has_bom=has_bom,
            trailing_newline=trailing_newline,
        )

    def delete_lines(self, indices: Iterable[int]) -> int:
        """Delete the given line indices in one pass and return how many were removed."""
        doomed = {index for index in indices if 0 <= index < len(self.lines)}
        if not doomed:
            return 0
        self.lines = [line for index, line in enumerate(self.lines) if index not in doomed]
        return len(doomed)

    def strip_blank_lines(self) -> int:
        """Drop blank or whitespace-only lines."""
        return self.delete_lines(
            index for index, line in enumerate(self.lines) if not line.strip()
        )

    def render(self) -> str:
        """Join lines back into manifest text."""
        body = self.newline.join(self.lines)
        if self.trailing_newline and self.lines:
            body += self.newline
        if self.has_bom:
            body = _BOM + body
        return body
