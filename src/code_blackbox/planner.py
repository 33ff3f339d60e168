"""
Edit planning for code-blackbox.

Turns each CandidateNode into edits whose shape depends on how many lines
the hidden span covers:

- one line: an InlineEdit over the exact column range;
- a two-line body: a LineReplaceEdit putting the line marker right after the
  opening brace (no blank filler for trivial bodies);
- anything longer: a BlockEdit over the interior lines.

Multi-line initializers hide their lead line with an InlineEdit running to
the end of that line, so other declarators on it keep their own edits.
Collapsed declarations that share a line with another statement are hidden
over their own columns only.

Nothing before a body's opening brace or before an initializer's lead token
is ever part of an edit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import HIDDEN_INLINE, HIDDEN_LINE
from .edits import BlockEdit, EditPlan, InlineEdit, LineReplaceEdit
from .selector import CandidateNode
from .tree_cache import ParsedSource, Position
from .utils import leading_whitespace

if TYPE_CHECKING:
    from tree_sitter import Node


def last_line(node: Node) -> int:
    """1-based last line of a node, ignoring an end sitting at column 0."""
    start_row = node.start_point[0]
    end_row, end_column = node.end_point[0], node.end_point[1]
    if end_column == 0 and end_row > start_row:
        end_row -= 1
    return end_row + 1


class EditPlanner:
    """Plans the edits for candidates of one parsed file."""

    def __init__(
        self,
        parsed: ParsedSource,
        line_marker: str = HIDDEN_LINE,
        inline_marker: str = HIDDEN_INLINE,
    ):
        self.parsed = parsed
        self.lines = parsed.lines
        self.line_marker = line_marker
        self.inline_marker = inline_marker

    def _line(self, number: int) -> str:
        if 1 <= number <= len(self.lines):
            return self.lines[number - 1]
        return ""

    def plan(self, candidate: CandidateNode) -> EditPlan:
        if candidate.is_collapse:
            return self.plan_collapse(candidate.node, candidate.priority, candidate.start)
        if candidate.is_block_body:
            return self.plan_body(candidate.target, candidate.priority)
        return self.plan_value(candidate.target, candidate.lead, candidate.priority)

    def plan_all(self, candidates: list[CandidateNode]) -> EditPlan:
        plan = EditPlan()
        for candidate in candidates:
            plan.extend(self.plan(candidate))
        return plan

    def _line_end(self, number: int) -> int:
        """1-based column just past the last character, before any ``\\r``."""
        return len(self._line(number).rstrip("\r")) + 1

    def plan_collapse(self, node: Node, priority: int, start: Position | None = None) -> EditPlan:
        """
        Hide a whole declaration, name and signature included.

        Lines that also hold part of another statement are only hidden over
        the declaration's own columns; every other line is collapsed.
        """
        plan = EditPlan()
        first = start or self.parsed.start(node)
        end = self.parsed.end(node)
        end_line = last_line(node)

        shared_first = bool(self._line(first.line)[: first.column - 1].strip())
        shared_last = end_line == end.line and bool(
            self._line(end.line)[end.column - 1:].strip().lstrip(";").strip()
        )

        if not shared_first and not shared_last:
            plan.blocks.append(BlockEdit(start=first.line, end=end_line, line=first.line, priority=priority))
            return plan

        if first.line == end_line:
            plan.inline.append(
                InlineEdit(
                    line=first.line,
                    start=first.column,
                    end=end.column,
                    text=self.inline_marker,
                    priority=priority,
                )
            )
            return plan

        block_start = first.line
        if shared_first:
            plan.inline.append(
                InlineEdit(
                    line=first.line,
                    start=first.column,
                    end=self._line_end(first.line),
                    text=self.inline_marker,
                    priority=priority,
                )
            )
            block_start += 1

        block_end = end_line
        if shared_last:
            last = self._line(end_line)
            rest = last[end.column - 1:]
            plan.inline.append(
                InlineEdit(
                    line=end_line,
                    start=len(leading_whitespace(last)) + 1,
                    end=end.column + len(rest) - len(rest.lstrip(" \t")),
                    text="",
                    priority=priority,
                )
            )
            block_end -= 1

        if block_start <= block_end:
            plan.blocks.append(
                BlockEdit(start=block_start, end=block_end, line=block_start, priority=priority)
            )
        return plan

    def plan_body(self, body: Node, priority: int) -> EditPlan:
        """Hide the statements of a ``{ ... }`` body, keeping both braces."""
        plan = EditPlan()
        start = self.parsed.start(body)
        end = self.parsed.end(body)

        if start.line == end.line:
            # Interior only: after "{" and before "}"
            plan.inline.append(
                InlineEdit(
                    line=start.line,
                    start=start.column + 1,
                    end=end.column - 1,
                    text=f" {self.inline_marker} ",
                    priority=priority,
                )
            )
            return plan

        opening = self._line(start.line)
        brace = start.column - 1

        if end.line == start.line + 1:
            plan.replace.append(
                LineReplaceEdit(
                    line=start.line,
                    text=f"{opening[:brace + 1]} {self.line_marker}",
                    priority=priority,
                )
            )
        else:
            if opening[brace + 1:].strip():
                plan.replace.append(
                    LineReplaceEdit(line=start.line, text=opening[:brace + 1], priority=priority)
                )
            plan.blocks.append(
                BlockEdit(start=start.line + 1, end=end.line - 1, line=start.line + 1, priority=priority)
            )

        closing = self._line(end.line)
        close = end.column - 2
        if closing[:close].strip():
            plan.replace.append(
                LineReplaceEdit(
                    line=end.line,
                    text=f"{leading_whitespace(closing)}{closing[close:]}",
                    priority=priority,
                )
            )
        return plan

    def plan_value(self, value: Node, lead: Node | None, priority: int) -> EditPlan:
        """
        Hide an initializer-shaped value introduced by a lead token.

        The lead is ``=`` for initializers, ``=>`` for concise arrow bodies and
        ``default`` for default-export expressions.
        """
        plan = EditPlan()
        lead_text = self.parsed.node_text(lead) if lead is not None else ""
        lead_start: Position = self.parsed.start(lead if lead is not None else value)
        value_end = self.parsed.end(value)
        end_line = last_line(value)
        replacement = f"{lead_text} {self.inline_marker}" if lead_text else self.inline_marker

        if lead_start.line == value_end.line:
            plan.inline.append(
                InlineEdit(
                    line=lead_start.line,
                    start=lead_start.column,
                    end=value_end.column,
                    text=replacement,
                    priority=priority,
                )
            )
            return plan

        # From the trimmed text before the lead token to the end of its line
        prefix = self._line(lead_start.line)[: lead_start.column - 1]
        if prefix.strip():
            start, text = len(prefix.rstrip()) + 1, f" {replacement}"
        else:
            start, text = lead_start.column, replacement
        plan.inline.append(
            InlineEdit(
                line=lead_start.line,
                start=start,
                end=self._line_end(lead_start.line),
                text=text,
                priority=priority,
            )
        )

        if end_line == value_end.line:
            last = self._line(end_line)
            trailing = last[value_end.column - 1:].strip()
            text = f"{leading_whitespace(last)}{trailing}" if trailing else ""
            plan.replace.append(LineReplaceEdit(line=end_line, text=text, priority=priority))
            block_end = end_line - 1
        else:
            block_end = end_line

        if block_end >= lead_start.line + 1:
            plan.blocks.append(
                BlockEdit(
                    start=lead_start.line + 1,
                    end=block_end,
                    line=lead_start.line + 1,
                    priority=priority,
                )
            )
        return plan


def plan_edits(
    parsed: ParsedSource,
    candidates: list[CandidateNode],
    line_marker: str = HIDDEN_LINE,
    inline_marker: str = HIDDEN_INLINE,
) -> EditPlan:
    """Plan the edits for every candidate of a parsed file."""
    return EditPlanner(parsed, line_marker, inline_marker).plan_all(candidates)
