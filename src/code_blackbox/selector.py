"""
Node selection for code-blackbox.

Walks a parsed TypeScript/JavaScript tree and classifies every declaration
that may hide implementation: exported functions, members of exported
classes, exported variable initializers, function values assigned to
exported variables, default-export expressions, and the declarations that
must disappear entirely (non-exported top-level declarations and
private/protected members of exported classes).

Selection rules and priorities live here and nowhere else; the planner only
turns a CandidateNode into edits.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .tree_cache import ParsedSource, Position

if TYPE_CHECKING:
    from tree_sitter import Node


class CandidateKind(str, Enum):
    """The closed set of redaction targets."""

    FUNCTION = "function"
    METHOD = "method"
    PROPERTY = "property"
    VARIABLE = "variable"
    ARROW_FUNCTION = "arrow_function"
    FUNCTION_EXPRESSION = "function_expression"
    DEFAULT_EXPORT = "default_export"
    COLLAPSE = "collapse"


# Outer, structural hides must beat narrower hides nested inside them
PRIORITIES: dict[CandidateKind, int] = {
    CandidateKind.COLLAPSE: 3,
    CandidateKind.FUNCTION: 3,
    CandidateKind.METHOD: 3,
    CandidateKind.DEFAULT_EXPORT: 3,
    CandidateKind.PROPERTY: 2,
    CandidateKind.VARIABLE: 2,
    CandidateKind.ARROW_FUNCTION: 1,
    CandidateKind.FUNCTION_EXPRESSION: 1,
}

FUNCTION_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
}

FUNCTION_SIGNATURES = {"function_signature"}

CLASS_DECLARATIONS = {
    "class_declaration",
    "abstract_class_declaration",
}

VARIABLE_STATEMENTS = {
    "lexical_declaration",
    "variable_declaration",
}

FUNCTION_EXPRESSIONS = {
    "function_expression",
    "function",
    "generator_function",
}

CLASS_MEMBERS = {
    "method_definition",
    "method_signature",
    "abstract_method_signature",
    "public_field_definition",
    "field_definition",
    "class_static_block",
}

FIELD_MEMBERS = {
    "public_field_definition",
    "field_definition",
}

# Default-export values that only name something declared elsewhere
REFERENCE_EXPRESSIONS = {
    "identifier",
    "member_expression",
    "nested_identifier",
    "this",
}

HIDDEN_MODIFIERS = {"private", "protected"}


@dataclass
class CandidateNode:
    """A declaration or expression selected for redaction."""

    kind: CandidateKind
    node: Node
    target: Node
    start: Position
    end: Position
    lead: Node | None = None
    exported: bool = True
    private: bool = False

    @property
    def priority(self) -> int:
        return PRIORITIES[self.kind]

    @property
    def is_block_body(self) -> bool:
        return self.target.type == "statement_block"

    @property
    def is_collapse(self) -> bool:
        return self.kind is CandidateKind.COLLAPSE


def walk(root: Node) -> Iterator[Node]:
    """Pre-order traversal over named nodes without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.named_children))


def find_token(node: Node, token: str) -> Node | None:
    """Return the first direct child token of the given type."""
    for child in node.children:
        if child.type == token:
            return child
    return None


def is_top_level(node: Node) -> bool:
    parent = node.parent
    return parent is not None and parent.type == "program"


def first_decorator(member: Node) -> Node | None:
    """Return the first of the decorators written directly above a class member."""
    first = None
    sibling = member.prev_named_sibling
    while sibling is not None and sibling.type == "decorator":
        first = sibling
        sibling = sibling.prev_named_sibling
    return first


class VisibilityClassifier:
    """
    Answers "is this declaration exported" and "is this member hidden".

    A declaration is exported when it sits directly under an ``export``
    statement, or when it is declared at the top level and named by a local
    ``export { ... }`` clause or an ``export default name`` statement.
    """

    def __init__(self, parsed: ParsedSource):
        self.parsed = parsed
        self.exported_names = self._collect_exported_names()

    def _collect_exported_names(self) -> set[str]:
        names: set[str] = set()
        for statement in self.parsed.root.named_children:
            if statement.type != "export_statement":
                continue
            # Re-exports from another module name nothing declared here
            if statement.child_by_field_name("source") is not None:
                continue

            value = statement.child_by_field_name("value")
            if value is not None and value.type == "identifier":
                names.add(self.parsed.node_text(value))

            for clause in statement.named_children:
                if clause.type != "export_clause":
                    continue
                for specifier in clause.named_children:
                    if specifier.type != "export_specifier":
                        continue
                    local = specifier.child_by_field_name("name")
                    if local is not None:
                        names.add(self.parsed.node_text(local))
        return names

    def declared_names(self, node: Node) -> set[str]:
        if node.type in VARIABLE_STATEMENTS:
            names = set()
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name = declarator.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    names.add(self.parsed.node_text(name))
            return names

        name = node.child_by_field_name("name")
        if name is None:
            return set()
        return {self.parsed.node_text(name)}

    def is_exported(self, node: Node) -> bool:
        parent = node.parent
        if parent is None:
            return False
        if parent.type == "export_statement":
            return True
        if parent.type != "program":
            return False
        return bool(self.declared_names(node) & self.exported_names)

    def is_exported_class(self, node: Node) -> bool:
        if node.type == "class":
            parent = node.parent
            return parent is not None and parent.type == "export_statement"
        return self.is_exported(node)

    def is_hidden_member(self, member: Node) -> bool:
        for child in member.children:
            if child.type == "accessibility_modifier":
                if self.parsed.node_text(child).strip() in HIDDEN_MODIFIERS:
                    return True
        name = member_name(member)
        return name is not None and name.type == "private_property_identifier"


def member_name(member: Node) -> Node | None:
    """Return the name node of a class member (TS uses 'name', JS 'property')."""
    name = member.child_by_field_name("name")
    if name is None:
        name = member.child_by_field_name("property")
    return name


class NodeSelector:
    """Selects every redaction candidate in a parsed file."""

    def __init__(self, parsed: ParsedSource, classifier: VisibilityClassifier | None = None):
        self.parsed = parsed
        self.classifier = classifier or VisibilityClassifier(parsed)

    def _candidate(
        self,
        kind: CandidateKind,
        node: Node,
        target: Node,
        lead: Node | None = None,
        exported: bool = True,
        private: bool = False,
    ) -> CandidateNode:
        return CandidateNode(
            kind=kind,
            node=node,
            target=target,
            start=self.parsed.start(target),
            end=self.parsed.end(target),
            lead=lead,
            exported=exported,
            private=private,
        )

    def _collapse(
        self,
        node: Node,
        exported: bool = False,
        private: bool = False,
        first: Node | None = None,
    ) -> CandidateNode:
        candidate = self._candidate(CandidateKind.COLLAPSE, node, node, exported=exported, private=private)
        if first is not None:
            candidate.start = self.parsed.start(first)
        return candidate

    def select(self) -> list[CandidateNode]:
        candidates: list[CandidateNode] = []
        for node in walk(self.parsed.root):
            candidates.extend(self._classify(node))
        candidates.sort(key=lambda c: (c.start.line, c.start.column, -c.priority))
        return candidates

    def _classify(self, node: Node) -> list[CandidateNode]:
        node_type = node.type

        if node_type in FUNCTION_DECLARATIONS:
            return self._select_function(node)
        if node_type in FUNCTION_SIGNATURES:
            if is_top_level(node) and not self.classifier.is_exported(node):
                return [self._collapse(node)]
            return []
        if node_type in CLASS_DECLARATIONS or node_type == "class":
            return self._select_class(node)
        if node_type in VARIABLE_STATEMENTS:
            return self._select_variables(node)
        if node_type == "export_statement":
            return self._select_default_export(node)
        return []

    def _select_function(self, node: Node) -> list[CandidateNode]:
        if self.classifier.is_exported(node):
            body = node.child_by_field_name("body")
            if body is None:
                return []
            return [self._candidate(CandidateKind.FUNCTION, node, body)]
        if is_top_level(node):
            return [self._collapse(node)]
        return []

    def _select_class(self, node: Node) -> list[CandidateNode]:
        if not self.classifier.is_exported_class(node):
            if node.type != "class" and is_top_level(node):
                return [self._collapse(node)]
            return []

        body = node.child_by_field_name("body")
        if body is None:
            return []

        candidates = []
        for member in body.named_children:
            if member.type not in CLASS_MEMBERS:
                continue
            if self.classifier.is_hidden_member(member):
                candidates.append(
                    self._collapse(member, exported=True, private=True, first=first_decorator(member))
                )
                continue
            candidate = self._select_member(member)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def _select_member(self, member: Node) -> CandidateNode | None:
        if member.type == "method_definition":
            body = member.child_by_field_name("body")
            if body is None:
                return None
            return self._candidate(CandidateKind.METHOD, member, body)

        if member.type == "class_static_block":
            body = member.child_by_field_name("body")
            if body is None:
                body = find_token(member, "statement_block")
            if body is None:
                return None
            return self._candidate(CandidateKind.METHOD, member, body)

        if member.type in FIELD_MEMBERS:
            value = member.child_by_field_name("value")
            equals = find_token(member, "=")
            if value is None or equals is None:
                return None
            return self._candidate(CandidateKind.PROPERTY, member, value, lead=equals)

        return None

    def _select_variables(self, node: Node) -> list[CandidateNode]:
        if not self.classifier.is_exported(node):
            if is_top_level(node):
                return [self._collapse(node)]
            return []

        candidates = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            equals = find_token(declarator, "=")
            if value is None or equals is None:
                continue

            candidates.append(
                self._candidate(CandidateKind.VARIABLE, declarator, value, lead=equals)
            )

            if value.type == "arrow_function":
                candidate = self._select_arrow(value, CandidateKind.ARROW_FUNCTION)
                if candidate is not None:
                    candidates.append(candidate)
            elif value.type in FUNCTION_EXPRESSIONS:
                body = value.child_by_field_name("body")
                if body is not None:
                    candidates.append(
                        self._candidate(CandidateKind.FUNCTION_EXPRESSION, value, body)
                    )
        return candidates

    def _select_arrow(self, arrow: Node, kind: CandidateKind) -> CandidateNode | None:
        body = arrow.child_by_field_name("body")
        if body is None:
            return None
        if body.type == "statement_block":
            return self._candidate(kind, arrow, body)
        return self._candidate(kind, arrow, body, lead=find_token(arrow, "=>"))

    def _select_default_export(self, node: Node) -> list[CandidateNode]:
        value = node.child_by_field_name("value")
        if value is None or find_token(node, "default") is None:
            return []

        if value.type == "arrow_function":
            candidate = self._select_arrow(value, CandidateKind.DEFAULT_EXPORT)
            return [candidate] if candidate is not None else []

        if value.type in FUNCTION_EXPRESSIONS:
            body = value.child_by_field_name("body")
            if body is None:
                return []
            return [self._candidate(CandidateKind.DEFAULT_EXPORT, value, body)]

        # Class expressions are walked as exported classes
        if value.type == "class" or value.type in REFERENCE_EXPRESSIONS:
            return []

        return [
            self._candidate(
                CandidateKind.DEFAULT_EXPORT, node, value, lead=find_token(node, "default")
            )
        ]


def select_candidates(parsed: ParsedSource) -> list[CandidateNode]:
    """Select all redaction candidates of a parsed file."""
    return NodeSelector(parsed).select()
