from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from ..errors import PatchAnomalyError


UTF8_BOM = b"\xef\xbb\xbf"
SURROGATES = "surrogateescape"


class WorkspaceViolation(ValueError):
    pass


@dataclass(frozen=True)
class TextLayout:
    """How a file's lines are put back on disk byte for byte."""

    newline: str = "\n"
    bom: bool = False
    final_newline: bool = True


@dataclass(frozen=True)
class MountRoot:
    """File access scoped to a mounted image's root directory."""

    root: Path

    @classmethod
    def from_path(cls, root: str | Path) -> "MountRoot":
        p = Path(root).expanduser()
        try:
            p = p.resolve()
        except OSError:
            p = p.absolute()
        return cls(root=p)

    def resolve_rel(self, rel: str | Path) -> Path:
        rp = Path(rel)
        if rp.is_absolute():
            raise WorkspaceViolation(f"Absolute paths are not allowed: {rel}")

        candidate = (self.root / rp).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as e:
            raise WorkspaceViolation(f"Path escapes mount root: {rel}") from e
        return candidate

    def resolve_one(self, pattern: str) -> Path:
        """Resolve a pattern with single-segment ``*`` wildcards to exactly one file."""

        matches = sorted(p for p in self.root.glob(pattern) if p.is_file())
        if not matches:
            raise PatchAnomalyError(f"No file matches {pattern} under {self.root}")
        if len(matches) > 1:
            listed = ", ".join(str(m.relative_to(self.root)) for m in matches)
            raise PatchAnomalyError(f"Expected one file for {pattern}, found {len(matches)}: {listed}")
        return self.resolve_rel(matches[0].relative_to(self.root))

    def exists(self, rel: str | Path) -> bool:
        return self.resolve_rel(rel).exists()

    def read_text(self, rel: str | Path) -> Tuple[str, bool]:
        """Return (text, had_bom). Bytes that are not UTF-8 survive as surrogates."""

        data = self.resolve_rel(rel).read_bytes()
        bom = data.startswith(UTF8_BOM)
        if bom:
            data = data[len(UTF8_BOM) :]
        return data.decode("utf-8", errors=SURROGATES), bom

    def write_text(self, rel: str | Path, content: str, *, bom: bool = False) -> None:
        p = self.resolve_rel(rel)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes((UTF8_BOM if bom else b"") + content.encode("utf-8", errors=SURROGATES))

    def read_lines(self, rel: str | Path) -> Tuple[List[str], TextLayout]:
        """Split on the file's own line ending and remember how to put it back."""

        txt, bom = self.read_text(rel)
        newline = "\r\n" if "\r\n" in txt else "\n"
        final_newline = txt.endswith(newline)
        lines = txt.split(newline) if txt else []
        if final_newline:
            lines.pop()
        return lines, TextLayout(newline=newline, bom=bom, final_newline=final_newline)

    def write_lines(self, rel: str | Path, lines: List[str], layout: TextLayout = TextLayout()) -> None:
        content = layout.newline.join(lines)
        if lines and layout.final_newline:
            content += layout.newline
        self.write_text(rel, content, bom=layout.bom)

    def remove(self, rel: str | Path) -> None:
        self.resolve_rel(rel).unlink()
