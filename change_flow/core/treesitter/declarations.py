"""
Tree-sitter declaration index for JavaScript/TypeScript/TSX source.

Collects every function-like construct with its line span. Nested constructs
are recorded on their own, so spans may nest; the outer span is never narrowed.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node, Tree

from ..models import Declaration, DeclarationKind

ANONYMOUS = "anonymous"
ANONYMOUS_CLASS = "Class"
ANONYMOUS_METHOD = "method"

FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
CLASS_NODES = {"class_declaration", "class", "abstract_class_declaration"}
CLASS_FIELDS = {"field_definition", "public_field_definition"}
NAME_NODES = {
    "identifier",
    "property_identifier",
    "private_property_identifier",
    "shorthand_property_identifier",
    "type_identifier",
}


def extract_declarations(tree: Tree, source: bytes) -> List[Declaration]:
    declarations: List[Declaration] = []
    for node in _walk(tree.root_node):
        declarations.extend(_declarations_at(node, source))
    return declarations


def _declarations_at(node: Node, source: bytes) -> List[Declaration]:
    if node.type in FUNCTION_DECLARATIONS:
        name = _identifier(node.child_by_field_name("name"), source) or ANONYMOUS
        return [_build(name, node, DeclarationKind.FUNCTION)]

    if node.type in FUNCTION_VALUES and _parent_type(node) == "export_statement":
        # export default function () {}
        name = _identifier(node.child_by_field_name("name"), source) or ANONYMOUS
        return [_build(name, node, DeclarationKind.FUNCTION)]

    if node.type == "variable_declarator":
        return _variable_declarations(node, source)

    if node.type == "method_definition" and _parent_type(node) == "class_body":
        method = _identifier(node.child_by_field_name("name"), source) or ANONYMOUS_METHOD
        return [_build(f"{_class_name(node, source)}.{method}", node, DeclarationKind.METHOD)]

    if node.type in CLASS_FIELDS and _parent_type(node) == "class_body":
        value = node.child_by_field_name("value")
        if value is None or value.type not in FUNCTION_VALUES:
            return []
        name_node = node.child_by_field_name("name") or node.child_by_field_name("property")
        method = _identifier(name_node, source) or ANONYMOUS_METHOD
        return [_build(f"{_class_name(node, source)}.{method}", node, DeclarationKind.METHOD)]

    return []


def _variable_declarations(declarator: Node, source: bytes) -> List[Declaration]:
    value = declarator.child_by_field_name("value")
    if value is None:
        return []
    binding = _identifier(declarator.child_by_field_name("name"), source) or ANONYMOUS

    if value.type in FUNCTION_VALUES:
        return [_build(binding, value, DeclarationKind.ARROW)]

    if value.type == "object":
        return _object_methods(binding, value, source)

    return []


def _object_methods(binding: str, obj: Node, source: bytes) -> List[Declaration]:
    """Methods of an object literal bound to a variable, e.g. ``const api = { get() {} }``."""
    methods: List[Declaration] = []
    for member in obj.named_children:
        if member.type == "method_definition":
            method = _identifier(member.child_by_field_name("name"), source) or ANONYMOUS_METHOD
            methods.append(_build(f"{binding}.{method}", member, DeclarationKind.METHOD))
        elif member.type == "pair":
            value = member.child_by_field_name("value")
            if value is None or value.type not in FUNCTION_VALUES:
                continue
            method = _identifier(member.child_by_field_name("key"), source) or ANONYMOUS_METHOD
            methods.append(_build(f"{binding}.{method}", member, DeclarationKind.METHOD))
    return methods


def _class_name(member: Node, source: bytes) -> str:
    body = member.parent
    class_node = body.parent if body is not None else None
    if class_node is None or class_node.type not in CLASS_NODES:
        return ANONYMOUS_CLASS
    return _identifier(class_node.child_by_field_name("name"), source) or ANONYMOUS_CLASS


def _build(name: str, node: Node, kind: DeclarationKind) -> Declaration:
    start_line, end_line = _line_span(node)
    return Declaration(name=name, start_line=start_line, end_line=end_line, kind=kind)


def _identifier(node: Optional[Node], source: bytes) -> Optional[str]:
    if node is None or node.type not in NAME_NODES:
        return None
    return _node_text(source, node) or None


def _parent_type(node: Node) -> Optional[str]:
    return node.parent.type if node.parent is not None else None


def _line_span(node: Node) -> Tuple[int, int]:
    return node.start_point[0] + 1, node.end_point[0] + 1


def _node_text(source: bytes, node: Optional[Node]) -> str:
    if not node:
        return ""
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
