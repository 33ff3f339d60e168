"""Tests for edit planning."""

from code_blackbox.config import HIDDEN_INLINE, HIDDEN_LINE
from code_blackbox.edits import BlockEdit, InlineEdit, LineReplaceEdit
from code_blackbox.planner import EditPlanner, last_line, plan_edits
from code_blackbox.selector import CandidateKind, select_candidates
from code_blackbox.tree_cache import parse_source


def plan_for(text: str, path: str = "sample.ts"):
    parsed = parse_source(path, text)
    return plan_edits(parsed, select_candidates(parsed))


class TestBodyShapes:
    """Tests for statement-block bodies of each line span."""

    def test_single_line_body(self):
        """Test a one-line body becomes an inline edit over its interior."""
        text = "export function one(): number { return 1 }\n"
        plan = plan_for(text)

        assert plan.replace == []
        assert plan.blocks == []
        assert len(plan.inline) == 1

        edit = plan.inline[0]
        line = text.split("\n")[0]
        assert line[edit.start - 2] == "{"
        assert line[edit.end - 1] == "}"
        assert edit.text == f" {HIDDEN_INLINE} "
        assert edit.priority == 3

    def test_two_line_body(self):
        """Test a two-line body puts the marker after the opening brace."""
        plan = plan_for("export function noop(): void {\n}\n")

        assert plan.inline == []
        assert plan.blocks == []
        assert plan.replace == [
            LineReplaceEdit(line=1, text=f"export function noop(): void {{ {HIDDEN_LINE}", priority=3)
        ]

    def test_multi_line_body(self):
        """Test a longer body collapses its interior lines."""
        plan = plan_for("export function add(a: number, b: number) {\n  const s = a + b\n  return s\n}\n")

        assert plan.inline == []
        assert plan.replace == []
        assert plan.blocks == [BlockEdit(start=2, end=3, line=2, priority=3)]

    def test_body_tokens_on_brace_lines_are_stripped(self):
        """Test statements sharing a line with a brace are removed."""
        text = "export function f() { const a = 1\n  use(a)\n  return a }\n"
        plan = plan_for(text)

        assert plan.blocks == [BlockEdit(start=2, end=2, line=2, priority=3)]
        assert LineReplaceEdit(line=1, text="export function f() {", priority=3) in plan.replace
        assert LineReplaceEdit(line=3, text="  }", priority=3) in plan.replace


class TestValueShapes:
    """Tests for initializer-shaped targets."""

    def test_single_line_initializer(self):
        """Test a one-line initializer is replaced from `=` to its end."""
        text = "export const answer: number = 42;\n"
        plan = plan_for(text)

        assert len(plan.inline) == 1
        edit = plan.inline[0]
        line = text.split("\n")[0]
        assert line[edit.start - 1] == "="
        assert line[edit.end - 1:] == ";"
        assert edit.text == f"= {HIDDEN_INLINE}"
        assert edit.priority == 2

    def test_multi_line_initializer(self):
        """Test a multi-line initializer rewrites lead and last lines around a block."""
        text = "export const config = {\n  a: 1,\n  b: 2,\n} as const\n"
        plan = plan_for(text)

        assert plan.inline == [
            InlineEdit(line=1, start=20, end=24, text=f" = {HIDDEN_INLINE}", priority=2)
        ]
        assert plan.replace == [LineReplaceEdit(line=4, text="", priority=2)]
        assert plan.blocks == [BlockEdit(start=2, end=3, line=2, priority=2)]

    def test_trailing_tokens_are_kept(self):
        """Test tokens after the initializer survive on its last line."""
        text = "export const x = compute(\n  1,\n  2\n);\n"
        plan = plan_for(text)

        assert LineReplaceEdit(line=4, text=";", priority=2) in plan.replace

    def test_two_line_initializer_has_no_block(self):
        """Test an initializer spanning two lines needs no block."""
        text = "export const pair = [\n  1, 2]\n"
        plan = plan_for(text)

        assert plan.blocks == []
        assert [edit.line for edit in plan.inline] == [1]
        assert [edit.line for edit in plan.replace] == [2]

    def test_concise_arrow_body(self):
        """Test a concise arrow body is replaced after `=>`."""
        parsed = parse_source("a.ts", "export const f = () => 1\n")
        arrow = [c for c in select_candidates(parsed) if c.kind is CandidateKind.ARROW_FUNCTION][0]
        plan = EditPlanner(parsed).plan(arrow)

        assert plan.inline == [
            InlineEdit(line=1, start=21, end=25, text=f"=> {HIDDEN_INLINE}", priority=1)
        ]

    def test_default_export_expression(self):
        """Test a default-export value is replaced after `default`."""
        plan = plan_for("export default {\n  name: 'x',\n}\n")

        assert plan.inline == [
            InlineEdit(line=1, start=7, end=17, text=f" default {HIDDEN_INLINE}", priority=3)
        ]


class TestCollapse:
    """Tests for whole-declaration collapses."""

    def test_collapse_covers_whole_declaration(self):
        """Test a private function is one block anchored at its first line."""
        plan = plan_for("function secret() {\n  return 1\n}\n")

        assert plan.blocks == [BlockEdit(start=1, end=3, line=1, priority=3)]

    def test_single_line_collapse(self):
        """Test a one-line private declaration is still a block."""
        plan = plan_for("const hidden = 42\n")

        assert plan.blocks == [BlockEdit(start=1, end=1, line=1, priority=3)]

    def test_collapse_sharing_a_line_is_inline(self):
        """Test a private declaration next to an export is hidden over its own columns."""
        plan = plan_for("const a = 1; export function f() { return a }\n")

        assert plan.blocks == []
        assert InlineEdit(line=1, start=1, end=13, text=HIDDEN_INLINE, priority=3) in plan.inline

    def test_collapse_with_shared_last_line(self):
        """Test only the declaration's tail is removed from a shared last line."""
        plan = plan_for("function a() {\n  return 1\n} export const b = 2\n")

        assert BlockEdit(start=1, end=2, line=1, priority=3) in plan.blocks
        assert InlineEdit(line=3, start=1, end=3, text="", priority=3) in plan.inline

    def test_trailing_semicolon_is_not_shared(self):
        """Test a lone `;` after a member does not count as another statement."""
        text = "export class A {\n  private x = 1;\n}\n"
        plan = plan_for(text)

        assert plan.blocks == [BlockEdit(start=2, end=2, line=2, priority=3)]
        assert plan.inline == []

    def test_collapse_starts_at_decorators(self):
        """Test a hidden member's decorators are collapsed with it."""
        text = (
            "export class Api {\n"
            "  @Log()\n"
            "  private secret(): string {\n"
            "    return 'x'\n"
            "  }\n"
            "}\n"
        )
        plan = plan_for(text)

        assert plan.blocks == [BlockEdit(start=2, end=5, line=2, priority=3)]


class TestMarkers:
    """Tests for custom marker text."""

    def test_custom_markers(self):
        """Test the planner renders the markers it is given."""
        parsed = parse_source("a.ts", "export function f() {\n}\nexport const x = 1\n")
        planner = EditPlanner(parsed, line_marker="// redacted", inline_marker="/* redacted */")
        plan = planner.plan_all(select_candidates(parsed))

        assert plan.replace[0].text == "export function f() { // redacted"
        assert plan.inline[0].text == "= /* redacted */"


class TestLastLine:
    """Tests for node end lines."""

    def test_last_line_of_block(self):
        """Test the last line of a multi-line node."""
        parsed = parse_source("a.ts", "export function f() {\n  return 1\n}\n")
        function = parsed.root.named_children[0].named_children[0]
        assert last_line(function) == 3
