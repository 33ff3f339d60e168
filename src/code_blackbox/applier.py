"""
Edit application for code-blackbox.

Resolves planned edits against each other and rewrites the line list:

1. blocks intersecting the window, highest priority first (earlier start
   breaks ties), accepted greedily unless they intersect an accepted block;
2. line replacements inside the window and outside accepted blocks, unless
   a higher-priority inline edit sits on the same line;
3. inline edits inside the window on lines no block or replacement claimed,
   applied right-to-left so earlier column offsets stay valid.

A block that only intersects the window is still applied in full. Rewritten
lines keep a trailing ``\\r`` so CRLF files keep their line endings.
"""

from __future__ import annotations

from collections import defaultdict

from .config import HIDDEN_LINE
from .edits import BlockEdit, EditPlan, InlineEdit, LineReplaceEdit, LineWindow
from .utils import leading_whitespace


def select_blocks(blocks: list[BlockEdit], window: LineWindow) -> list[BlockEdit]:
    """Pick the non-overlapping blocks to apply."""
    pending = sorted(
        (b for b in blocks if not b.is_empty and window.intersects(b.start, b.end)),
        key=lambda b: (-b.priority, b.start),
    )

    accepted: list[BlockEdit] = []
    for block in pending:
        if any(block.overlaps(applied) for applied in accepted):
            continue
        accepted.append(block)
    return accepted


def select_replacements(
    replace: list[LineReplaceEdit],
    accepted: list[BlockEdit],
    window: LineWindow,
    line_count: int,
) -> dict[int, LineReplaceEdit]:
    """Pick at most one replacement per line."""
    chosen: dict[int, LineReplaceEdit] = {}
    for edit in replace:
        if not 1 <= edit.line <= line_count:
            continue
        if not window.contains(edit.line):
            continue
        if any(block.contains(edit.line) for block in accepted):
            continue
        current = chosen.get(edit.line)
        if current is None or edit.priority > current.priority:
            chosen[edit.line] = edit
    return chosen


def select_inline(edits: list[InlineEdit]) -> list[InlineEdit]:
    """Drop inline edits that overlap a higher-priority (or earlier) one on the same line."""
    accepted: list[InlineEdit] = []
    for edit in sorted(edits, key=lambda e: (-e.priority, e.start)):
        if any(edit.overlaps(other) for other in accepted):
            continue
        accepted.append(edit)
    return accepted


def keep_line_ending(original: str, text: str) -> str:
    """Carry a CRLF file's trailing ``\\r`` over to a rewritten line."""
    if original.endswith("\r") and not text.endswith("\r"):
        return f"{text}\r"
    return text


def apply_edits(
    lines: list[str],
    plan: EditPlan,
    window: LineWindow | None = None,
    line_marker: str = HIDDEN_LINE,
) -> list[str]:
    """
    Apply a plan to a list of lines.

    A line replacement claims its whole line unless an inline edit on the
    same line has a higher priority; the replacement is then dropped and
    the inline edits apply instead.

    Args:
        lines: Source lines (not modified)
        plan: Planned edits
        window: Inclusive line range outside of which edits are skipped
        line_marker: Text placed on the anchor line of collapsed blocks

    Returns:
        A new list with exactly as many lines as the input
    """
    result = list(lines)
    if window is None:
        window = LineWindow.whole(len(result))

    accepted = select_blocks(plan.blocks, window)
    touched: set[int] = set()

    for block in accepted:
        if block.start < 1 or block.end > len(result):
            continue
        base = result[block.line - 1]
        indent = leading_whitespace(base.rstrip("\r"))
        result[block.line - 1] = keep_line_ending(base, f"{indent}{line_marker}")
        for number in range(block.line + 1, block.end + 1):
            result[number - 1] = keep_line_ending(result[number - 1], "")
        touched.update(range(block.start, block.end + 1))

    grouped: dict[int, list[InlineEdit]] = defaultdict(list)
    for edit in plan.inline:
        if not 1 <= edit.line <= len(result):
            continue
        if not window.contains(edit.line) or edit.line in touched:
            continue
        grouped[edit.line].append(edit)

    for number, edit in select_replacements(plan.replace, accepted, window, len(result)).items():
        if any(inline.priority > edit.priority for inline in grouped.get(number, ())):
            continue
        result[number - 1] = keep_line_ending(result[number - 1], edit.text)
        grouped.pop(number, None)

    for number, edits in grouped.items():
        text = result[number - 1]
        for edit in sorted(select_inline(edits), key=lambda e: e.start, reverse=True):
            start = max(edit.start - 1, 0)
            end = max(edit.end - 1, start)
            text = f"{text[:start]}{edit.text}{text[end:]}"
        result[number - 1] = text

    return result
