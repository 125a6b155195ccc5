"""Python routine extraction using the built-in ast module."""

from __future__ import annotations

import ast
import textwrap
from pathlib import Path

from lineagegraph.parser.models import (
    CallSite,
    FileRoutines,
    Routine,
    SymbolKind,
    SymbolReference,
)

_SELF_NAMES = ("self", "cls")


def parse_python_file(file_path: str, source: str | None = None) -> FileRoutines:
    """Parse a Python file and extract its functions and methods."""
    if source is None:
        source = Path(file_path).read_text(encoding="utf-8", errors="replace")

    result = FileRoutines(file_path=file_path, language="python")

    try:
        tree = ast.parse(source, filename=file_path)
    except SyntaxError as e:
        result.errors.append(f"SyntaxError: {e}")
        return result

    lines = source.splitlines()
    module_vars = _collect_declarations(tree.body, source)
    _extract_from_body(tree.body, file_path, source, lines, result, module_vars, {})
    return result


def _extract_from_body(
    body: list[ast.stmt],
    file_path: str,
    source: str,
    lines: list[str],
    result: FileRoutines,
    module_vars: dict[str, str],
    class_fields: dict[str, str],
    parent_name: str = "",
) -> None:
    """Extract routines from a module or class body, recursing into classes."""
    for node in body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            result.routines.append(
                _extract_routine(
                    node, file_path, source, lines, module_vars, class_fields, parent_name
                )
            )
        elif isinstance(node, ast.ClassDef):
            qualified = f"{parent_name}.{node.name}" if parent_name else node.name
            fields = _collect_declarations(node.body, source)
            fields.update(_collect_instance_fields(node, source))
            _extract_from_body(
                node.body, file_path, source, lines, result, module_vars, fields, qualified
            )


def _extract_routine(
    node: ast.FunctionDef | ast.AsyncFunctionDef,
    file_path: str,
    source: str,
    lines: list[str],
    module_vars: dict[str, str],
    class_fields: dict[str, str],
    parent_name: str,
) -> Routine:
    start = min([d.lineno for d in node.decorator_list] + [node.lineno])
    end = node.end_lineno or node.lineno
    text = textwrap.dedent("\n".join(lines[start - 1 : end]))

    locals_ = _collect_locals(node, source)
    calls, call_funcs = _extract_calls(node)
    references = _extract_references(
        node, source, locals_, module_vars, class_fields, call_funcs
    )

    return Routine(
        name=node.name,
        qualified_name=f"{parent_name}.{node.name}" if parent_name else node.name,
        file_path=file_path,
        line_start=start,
        line_end=end,
        source=text,
        parent=parent_name,
        calls=calls,
        references=references,
    )


def _declaration_text(node: ast.AST, source: str) -> str:
    """Single-line declaration text for a statement or argument."""
    segment = ast.get_source_segment(source, node) or ""
    if isinstance(node, (ast.For, ast.AsyncFor, ast.With, ast.AsyncWith)):
        segment = segment.splitlines()[0] if segment else ""
    return " ".join(segment.split())


def _assigned_names(target: ast.AST) -> list[str]:
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        names = []
        for elt in target.elts:
            names.extend(_assigned_names(elt))
        return names
    if isinstance(target, ast.Starred):
        return _assigned_names(target.value)
    return []


def _collect_declarations(body: list[ast.stmt], source: str) -> dict[str, str]:
    """Module- or class-level assignments: name -> declaration text."""
    decls: dict[str, str] = {}
    for node in body:
        if isinstance(node, ast.Assign):
            for target in node.targets:
                for name in _assigned_names(target):
                    decls.setdefault(name, _declaration_text(node, source))
        elif isinstance(node, ast.AnnAssign):
            for name in _assigned_names(node.target):
                decls.setdefault(name, _declaration_text(node, source))
    return decls


def _collect_instance_fields(node: ast.ClassDef, source: str) -> dict[str, str]:
    """Fields created by ``self.x = ...`` anywhere in the class's methods."""
    fields: dict[str, str] = {}
    for method in node.body:
        if not isinstance(method, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        for child in ast.walk(method):
            if isinstance(child, ast.Assign):
                targets = child.targets
            elif isinstance(child, (ast.AnnAssign, ast.AugAssign)):
                targets = [child.target]
            else:
                continue
            for target in targets:
                if (
                    isinstance(target, ast.Attribute)
                    and isinstance(target.value, ast.Name)
                    and target.value.id in _SELF_NAMES
                ):
                    fields.setdefault(target.attr, _declaration_text(child, source))
    return fields


def _collect_locals(
    node: ast.FunctionDef | ast.AsyncFunctionDef, source: str
) -> dict[str, str]:
    """Parameters and names bound inside the function: name -> declaration."""
    scope: dict[str, str] = {}
    args = node.args
    all_args = args.posonlyargs + args.args + args.kwonlyargs
    if args.vararg:
        all_args.append(args.vararg)
    if args.kwarg:
        all_args.append(args.kwarg)
    for arg in all_args:
        if arg.arg in _SELF_NAMES:
            continue
        scope.setdefault(arg.arg, _declaration_text(arg, source))

    bindings = []
    for child in ast.walk(node):
        if child is node:
            continue
        if isinstance(child, ast.Assign):
            bindings.extend((t, child) for t in child.targets)
        elif isinstance(child, (ast.AnnAssign, ast.AugAssign)):
            bindings.append((child.target, child))
        elif isinstance(child, (ast.For, ast.AsyncFor)):
            bindings.append((child.target, child))
        elif isinstance(child, (ast.With, ast.AsyncWith)):
            bindings.extend(
                (item.optional_vars, child) for item in child.items if item.optional_vars
            )
    bindings.sort(key=lambda b: (b[1].lineno, b[1].col_offset))
    for target, stmt in bindings:
        for name in _assigned_names(target):
            scope.setdefault(name, _declaration_text(stmt, source))
    return scope


def _extract_calls(
    node: ast.FunctionDef | ast.AsyncFunctionDef,
) -> tuple[list[CallSite], set[int]]:
    """Call sites in source order, plus the ids of the callee expressions."""
    calls = [child for child in ast.walk(node) if isinstance(child, ast.Call)]
    calls.sort(key=lambda c: (c.lineno, c.col_offset))

    sites = []
    funcs = set()
    for call in calls:
        funcs.add(id(call.func))
        callee = _node_to_name(call.func)
        if callee:
            sites.append(CallSite(target=callee, line=call.lineno, column=call.col_offset))
    return sites, funcs


def _extract_references(
    node: ast.FunctionDef | ast.AsyncFunctionDef,
    source: str,
    locals_: dict[str, str],
    module_vars: dict[str, str],
    class_fields: dict[str, str],
    call_funcs: set[int],
) -> list[SymbolReference]:
    """Every load of a known field or variable, in source order."""
    uses: list[ast.Name | ast.Attribute] = []
    for child in ast.walk(node):
        if id(child) in call_funcs:
            continue
        if isinstance(child, ast.Name) and isinstance(child.ctx, ast.Load):
            uses.append(child)
        elif (
            isinstance(child, ast.Attribute)
            and isinstance(child.ctx, ast.Load)
            and isinstance(child.value, ast.Name)
            and child.value.id in _SELF_NAMES
        ):
            uses.append(child)
    uses.sort(key=lambda n: (n.lineno, n.col_offset))

    refs = []
    for use in uses:
        if isinstance(use, ast.Attribute):
            decl = class_fields.get(use.attr)
            if decl is None:
                continue
            refs.append(
                SymbolReference(
                    expression=f"{use.value.id}.{use.attr}",
                    declaration=decl,
                    kind=SymbolKind.FIELD,
                    line=use.lineno,
                )
            )
        elif use.id in locals_:
            refs.append(
                SymbolReference(
                    expression=use.id,
                    declaration=locals_[use.id],
                    kind=SymbolKind.VARIABLE,
                    line=use.lineno,
                )
            )
        elif use.id in module_vars:
            refs.append(
                SymbolReference(
                    expression=use.id,
                    declaration=module_vars[use.id],
                    kind=SymbolKind.VARIABLE,
                    line=use.lineno,
                )
            )
    return refs


def _node_to_name(node: ast.AST) -> str:
    """Convert an AST node to a dotted name string."""
    if isinstance(node, ast.Name):
        return node.id
    elif isinstance(node, ast.Attribute):
        parent = _node_to_name(node.value)
        if parent:
            return f"{parent}.{node.attr}"
        return node.attr
    elif isinstance(node, ast.Subscript):
        return _node_to_name(node.value)
    return ""
