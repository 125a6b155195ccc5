"""Locate fenced blocks (```kind ... ```) inside free-form model output."""

from __future__ import annotations

import re
from enum import Enum

DIAGRAM_KIND = "mermaid"


class MissingBlock(str, Enum):
    """What to return when no fenced block of the requested kind exists."""

    ABSENT = "absent"  # report absence with None
    WHOLE_INPUT = "whole_input"  # treat the whole trimmed input as the block


def _fence_pattern(kind: str) -> re.Pattern[str]:
    # Tag must end at a non-word char so ```java does not match ```javascript
    return re.compile(
        r"```[ \t]*" + re.escape(kind) + r"(?![\w-])(.*?)```",
        re.DOTALL | re.IGNORECASE,
    )


def extract_fenced_block(
    text: str | None, kind: str, missing: MissingBlock = MissingBlock.ABSENT
) -> str | None:
    """Return the trimmed interior of the first ```kind fenced block.

    If there is none, return None for ``MissingBlock.ABSENT`` or the whole
    trimmed input for ``MissingBlock.WHOLE_INPUT``.
    """
    text = text or ""
    match = _fence_pattern(kind).search(text)
    if match:
        return match.group(1).strip()
    if missing is MissingBlock.WHOLE_INPUT:
        return text.strip()
    return None


def extract_diagram(text: str | None) -> str | None:
    """The first fenced Mermaid block, or None if the text has none."""
    return extract_fenced_block(text, DIAGRAM_KIND, MissingBlock.ABSENT)


def extract_code(text: str | None, language: str) -> str:
    """The first fenced code block in ``language``, else the whole input."""
    return extract_fenced_block(text, language.lower(), MissingBlock.WHOLE_INPUT) or ""
