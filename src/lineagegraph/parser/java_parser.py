"""Java routine extraction using tree-sitter."""

from __future__ import annotations

import textwrap
from pathlib import Path

from lineagegraph.parser.models import (
    CallSite,
    FileRoutines,
    Routine,
    SymbolKind,
    SymbolReference,
)

_TYPE_DECLARATIONS = {
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
}

_ROUTINE_DECLARATIONS = {"method_declaration", "constructor_declaration"}

_CALL_NODE_TYPES = {"method_invocation", "object_creation_expression"}


def is_available() -> bool:
    """Check if tree-sitter and the Java grammar are importable."""
    try:
        import tree_sitter  # noqa: F401
        import tree_sitter_java  # noqa: F401
    except ImportError:
        return False
    return True


def parse_java_file(file_path: str, source: str | None = None) -> FileRoutines:
    """Parse a Java file and extract its methods and constructors."""
    from tree_sitter import Language, Parser
    import tree_sitter_java

    if source is None:
        source = Path(file_path).read_text(encoding="utf-8", errors="replace")

    result = FileRoutines(file_path=file_path, language="java")

    try:
        parser = Parser(Language(tree_sitter_java.language()))
        tree = parser.parse(source.encode("utf-8"))
    except Exception as e:
        result.errors.append(f"tree-sitter parse error: {e}")
        return result

    if tree.root_node.has_error:
        result.errors.append("tree-sitter reported syntax errors; extraction is partial")

    _walk_types(tree.root_node, file_path, result)
    return result


def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _walk_types(node, file_path: str, result: FileRoutines, parent_name: str = "") -> None:
    """Find type declarations and extract the routines in their bodies."""
    for child in node.named_children:
        if child.type not in _TYPE_DECLARATIONS:
            _walk_types(child, file_path, result, parent_name)
            continue

        name_node = child.child_by_field_name("name")
        body = child.child_by_field_name("body")
        if name_node is None or body is None:
            continue
        qualified = f"{parent_name}.{_text(name_node)}" if parent_name else _text(name_node)
        fields = _collect_fields(body)

        for member in body.named_children:
            if member.type in _ROUTINE_DECLARATIONS:
                result.routines.append(_extract_routine(member, file_path, fields, qualified))
            elif member.type == "enum_body_declarations":
                for inner in member.named_children:
                    if inner.type in _ROUTINE_DECLARATIONS:
                        result.routines.append(
                            _extract_routine(inner, file_path, fields, qualified)
                        )

        _walk_types(body, file_path, result, qualified)


def _collect_fields(body) -> dict[str, str]:
    """Field declarations of a type body: name -> declaration text."""
    fields: dict[str, str] = {}
    for member in body.named_children:
        if member.type not in ("field_declaration", "constant_declaration"):
            continue
        for declarator in member.children_by_field_name("declarator"):
            name = declarator.child_by_field_name("name")
            if name is not None:
                fields.setdefault(_text(name), _collapse(_text(member)))
    return fields


def _extract_routine(node, file_path: str, fields: dict[str, str], parent_name: str) -> Routine:
    name = _text(node.child_by_field_name("name"))
    start_row, start_col = node.start_point[0], node.start_point[1]
    # First line starts at the node, so re-add its indent before dedenting
    text = textwrap.dedent(" " * start_col + _text(node))

    locals_ = _collect_locals(node)
    body = node.child_by_field_name("body")
    calls: list[CallSite] = []
    references: list[SymbolReference] = []
    if body is not None:
        _walk_body(body, locals_, fields, calls, references)

    return Routine(
        name=name,
        qualified_name=f"{parent_name}.{name}",
        file_path=file_path,
        line_start=start_row + 1,
        line_end=node.end_point[0] + 1,
        source=text.strip("\n"),
        parent=parent_name,
        calls=calls,
        references=references,
    )


def _collect_locals(node) -> dict[str, str]:
    """Parameters and local variables of a routine: name -> declaration."""
    scope: dict[str, str] = {}
    params = node.child_by_field_name("parameters")
    if params is not None:
        for param in params.named_children:
            if param.type in ("formal_parameter", "spread_parameter"):
                name = param.child_by_field_name("name")
                if name is None:
                    name = next(
                        (c for c in param.named_children if c.type == "variable_declarator"),
                        None,
                    )
                    name = name.child_by_field_name("name") if name is not None else None
                if name is not None:
                    scope.setdefault(_text(name), _collapse(_text(param)))

    stack = [node.child_by_field_name("body")]
    while stack:
        current = stack.pop()
        if current is None:
            continue
        if current.type == "local_variable_declaration":
            for declarator in current.children_by_field_name("declarator"):
                name = declarator.child_by_field_name("name")
                if name is not None:
                    scope.setdefault(_text(name), _collapse(_text(current)))
        elif current.type == "enhanced_for_statement":
            type_node = current.child_by_field_name("type")
            name = current.child_by_field_name("name")
            if name is not None and type_node is not None:
                scope.setdefault(_text(name), f"{_text(type_node)} {_text(name)}")
        stack.extend(reversed(current.named_children))
    return scope


def _walk_body(
    node,
    locals_: dict[str, str],
    fields: dict[str, str],
    calls: list[CallSite],
    references: list[SymbolReference],
) -> None:
    """Pre-order walk collecting call sites and references in source order."""
    if node.type in _CALL_NODE_TYPES:
        target = _call_target(node)
        if target:
            calls.append(
                CallSite(target=target, line=node.start_point[0] + 1, column=node.start_point[1])
            )

    if node.type == "field_access":
        obj = node.child_by_field_name("object")
        field = node.child_by_field_name("field")
        if obj is not None and obj.type == "this" and field is not None:
            decl = fields.get(_text(field))
            if decl is not None:
                references.append(
                    SymbolReference(
                        expression=_text(node),
                        declaration=decl,
                        kind=SymbolKind.FIELD,
                        line=node.start_point[0] + 1,
                    )
                )
            return

    if node.type == "identifier" and _is_reference_position(node):
        name = _text(node)
        if name in locals_:
            references.append(
                SymbolReference(
                    expression=name,
                    declaration=locals_[name],
                    kind=SymbolKind.VARIABLE,
                    line=node.start_point[0] + 1,
                )
            )
        elif name in fields:
            references.append(
                SymbolReference(
                    expression=name,
                    declaration=fields[name],
                    kind=SymbolKind.FIELD,
                    line=node.start_point[0] + 1,
                )
            )
        return

    for child in node.children:
        _walk_body(child, locals_, fields, calls, references)


def _is_reference_position(node) -> bool:
    """An identifier is a use unless it names a declaration, method or member."""
    parent = node.parent
    if parent is None:
        return True
    if parent.type in ("variable_declarator", "formal_parameter", "catch_formal_parameter"):
        return parent.child_by_field_name("name") != node
    if parent.type == "method_invocation":
        return parent.child_by_field_name("name") != node
    if parent.type == "field_access":
        return parent.child_by_field_name("field") != node
    if parent.type == "enhanced_for_statement":
        return parent.child_by_field_name("name") != node
    if parent.type in ("labeled_statement", "break_statement", "continue_statement"):
        return False
    return True


def _call_target(node) -> str:
    """Dotted callee name for a call node, e.g. ``this.load`` or ``Reader``."""
    if node.type == "object_creation_expression":
        type_node = node.child_by_field_name("type")
        if type_node is None:
            return ""
        return _text(type_node).split("<")[0].strip()

    name = node.child_by_field_name("name")
    if name is None:
        return ""
    obj = node.child_by_field_name("object")
    if obj is None:
        return _text(name)
    obj_text = _text(obj)
    if obj.type in ("identifier", "this", "field_access", "super"):
        return f"{obj_text}.{_text(name)}"
    return _text(name)
