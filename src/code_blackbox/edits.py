"""
Edit value types for code-blackbox.

All line numbers are 1-based. Inline column ranges are 1-based and
half-open: ``[start, end)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class InlineEdit:
    """Replace a column range on a single line."""

    line: int
    start: int
    end: int
    text: str
    priority: int = 0

    def overlaps(self, other: InlineEdit) -> bool:
        # Zero-width insertions only clash when strictly inside another range
        if self.line != other.line:
            return False
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class LineReplaceEdit:
    """Rewrite a whole line."""

    line: int
    text: str
    priority: int = 0


@dataclass(frozen=True)
class BlockEdit:
    """
    Collapse an inclusive line range.

    The anchor line receives the line marker (keeping its indentation),
    every other line of the range becomes empty.
    """

    start: int
    end: int
    line: int
    priority: int = 0

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def overlaps(self, other: BlockEdit) -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end


@dataclass(frozen=True)
class LineWindow:
    """Inclusive 1-based line range restricting where edits apply."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError(f"Window start must be >= 1, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} is before start {self.start}")

    @classmethod
    def whole(cls, line_count: int) -> LineWindow:
        return cls(1, max(1, line_count))

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end

    def intersects(self, start: int, end: int) -> bool:
        return end >= self.start and start <= self.end

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass
class EditPlan:
    """All edits planned for one redaction call."""

    inline: list[InlineEdit] = field(default_factory=list)
    replace: list[LineReplaceEdit] = field(default_factory=list)
    blocks: list[BlockEdit] = field(default_factory=list)

    def extend(self, other: EditPlan) -> None:
        self.inline.extend(other.inline)
        self.replace.extend(other.replace)
        self.blocks.extend(other.blocks)

    def __len__(self) -> int:
        return len(self.inline) + len(self.replace) + len(self.blocks)
