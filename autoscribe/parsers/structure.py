"""Data models for documentable source spans.

Defines the languages the extractor understands, the kinds of
constructs it collects, and the Span dataclass shared between the
extractor, the documentation client and the splicer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class Language(str, Enum):
    """Grammar used to parse a source file."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"

    @classmethod
    def from_path(cls, path: str | Path) -> Language:
        """Pick a grammar from a file suffix.

        Unknown suffixes use TSX, which accepts both JSX and type
        annotations.
        """
        suffix = Path(path).suffix.lower()
        if suffix in (".js", ".jsx", ".mjs", ".cjs"):
            return cls.JAVASCRIPT
        if suffix in (".ts", ".mts", ".cts"):
            return cls.TYPESCRIPT
        return cls.TSX


class SpanKind(str, Enum):
    """Construct a span was extracted from."""

    FILE = "file"
    FUNCTION = "function"
    ARROW_FUNCTION = "arrow_function"
    CLASS_METHOD = "class_method"
    OBJECT_METHOD = "object_method"


class DocKind(str, Enum):
    """Kind of documentation requested from the model."""

    FILE = "file"
    FUNCTION = "function"


@dataclass(frozen=True)
class Span:
    """A contiguous range of source text for one documentable construct.

    Offsets index the decoded source string, so
    ``source[span.start_offset:span.end_offset] == span.source_text``.

    Attributes:
        name: Identifier of the construct, or None for the whole file.
        kind: Which construct the span came from.
        source_text: The text between start_offset and end_offset.
        start_offset: Index of the first character of the span.
        end_offset: Index one past the last character of the span.
        line_number: 1-based line on which the span starts.
    """

    name: Optional[str]
    kind: SpanKind
    source_text: str
    start_offset: int
    end_offset: int
    line_number: int = 1

    @property
    def doc_kind(self) -> DocKind:
        """Documentation kind to request for this span."""
        return DocKind.FILE if self.kind == SpanKind.FILE else DocKind.FUNCTION

    def overlaps(self, other: Span) -> bool:
        """Whether the two spans share at least one character."""
        return (
            self.start_offset < other.end_offset
            and other.start_offset < self.end_offset
        )

    def contains(self, other: Span) -> bool:
        """Whether other lies entirely inside this span."""
        return (
            self.start_offset <= other.start_offset
            and other.end_offset <= self.end_offset
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        The source text is omitted; offsets locate it in the file.
        """
        return {
            "name": self.name,
            "kind": self.kind.value,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "line_number": self.line_number,
        }

    @classmethod
    def for_file(cls, source: str) -> Span:
        """Build the span covering an entire file."""
        return cls(
            name=None,
            kind=SpanKind.FILE,
            source_text=source,
            start_offset=0,
            end_offset=len(source),
            line_number=1,
        )
