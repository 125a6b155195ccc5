"""Repair Mermaid flowchart text pulled out of model output.

Model-written diagrams often break the flowchart parser: a missing
``graph`` declaration, ``A -- cond --> B`` inline conditions, double quotes
inside node labels, or labels with spaces and punctuation left unquoted.
``repair`` normalizes every non-blank line through an ordered pipeline of
per-line rules. Each rule is idempotent, and so is ``repair`` as a whole:
``repair(repair(x)) == repair(x)``.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from lineagegraph.diagram.extractor import extract_diagram
from lineagegraph.exceptions import DiagramNotFoundError, UnrepairableDiagramError

DEFAULT_DECLARATION = "graph TD"
INDENT = "    "

_DECLARATION = re.compile(r"^(graph|flowchart)\b")

# A -- cond --> B. The opening "--" must not be part of another arrow
# ("-->", "---", "<--") and the condition holds no dashes, pipes or brackets.
# The closing arrow must not already carry a |label|.
_INLINE_CONDITION = re.compile(
    r"(?<![-<=.])--(?![->])\s*([^\s\-|>\[\]{}][^\-|\[\]{}]*?)\s*-->(?!\|)"
)

# Node labels, scanned left to right: id[label] or id{label}. Nested shapes
# such as A[[x]] or A{{x}} never match, since a label may not contain its
# own bracket characters.
_NODE_LABEL = re.compile(r"(\w+)(?:\[([^\[\]]+)\]|\{([^{}]+)\})")

# Shape markers that make a square label something other than plain text
_SHAPE_PREFIXES = ("(", "/", "\\")


def _is_quoted(label: str) -> bool:
    return len(label) >= 2 and label[0] == '"' and label[-1] == '"'


def _rewrite_labels(line: str, rewrite: Callable[[str], str]) -> str:
    def node(match: re.Match[str]) -> str:
        node_id, square, brace = match.groups()
        if square is None:
            return f"{node_id}{{{rewrite(brace)}}}"
        if square.startswith(_SHAPE_PREFIXES):
            return match.group(0)
        return f"{node_id}[{rewrite(square)}]"

    return _NODE_LABEL.sub(node, line)


def fix_inline_conditions(line: str) -> str:
    """``A -- cond --> B`` becomes ``A -->|cond| B``.

    In a chain such as ``A -- x -- y --> B`` only the condition next to
    the arrow is moved; ``-- x -->|y|`` is then left as is.
    """
    return _INLINE_CONDITION.sub(r"-->|\1|", line)


def _single_quote_inner(label: str) -> str:
    if _is_quoted(label):
        return '"' + label[1:-1].replace('"', "'") + '"'
    return label.replace('"', "'")


def normalize_label_quotes(line: str) -> str:
    """Double quotes inside a label become single quotes.

    Surrounding quotes of an already-quoted label are kept.
    """
    return _rewrite_labels(line, _single_quote_inner)


def _wrap(label: str) -> str:
    return label if _is_quoted(label) else f'"{label}"'


def quote_labels(line: str) -> str:
    """Unquoted ``id[label]`` / ``id{label}`` labels get wrapped in double quotes."""
    return _rewrite_labels(line, _wrap)


LINE_RULES: list[Callable[[str], str]] = [
    fix_inline_conditions,
    normalize_label_quotes,
    quote_labels,
]


def repair(diagram: str | None) -> str:
    """Normalize Mermaid flowchart text so it parses.

    The first line is the direction declaration (``graph TD`` is prepended
    when missing); every other non-blank line is trimmed, passed through
    ``LINE_RULES`` in order and indented by four spaces.

    Raises:
        UnrepairableDiagramError: ``diagram`` is None, empty or blank.
    """
    if diagram is None or not diagram.strip():
        raise UnrepairableDiagramError("No diagram text to repair.")

    lines = [line.strip() for line in diagram.splitlines()]
    lines = [line for line in lines if line]

    out: list[str] = []
    if _DECLARATION.match(lines[0]):
        out.append(lines.pop(0))
    else:
        out.append(DEFAULT_DECLARATION)

    for line in lines:
        for rule in LINE_RULES:
            line = rule(line)
        out.append(INDENT + line)

    return "\n".join(out)


def extract_and_repair(text: str | None) -> str:
    """Extract the first Mermaid block from ``text`` and repair it.

    Raises:
        DiagramNotFoundError: ``text`` has no fenced Mermaid block.
        UnrepairableDiagramError: the block is empty.
    """
    block = extract_diagram(text)
    if block is None:
        raise DiagramNotFoundError("No Mermaid diagram found.")
    return repair(block)
