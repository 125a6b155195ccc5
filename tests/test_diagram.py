"""Tests for Mermaid extraction and repair."""

from __future__ import annotations

import random

import pytest

from lineagegraph.diagram.extractor import (
    MissingBlock,
    extract_code,
    extract_diagram,
    extract_fenced_block,
)
from lineagegraph.diagram.repair import (
    extract_and_repair,
    fix_inline_conditions,
    normalize_label_quotes,
    quote_labels,
    repair,
)
from lineagegraph.exceptions import DiagramNotFoundError, UnrepairableDiagramError

REPORT = """## 8. Mermaid diagram

Here is the lineage:

```mermaid
graph TD
A[raw.orders] --> B[Filter amount]
```

```mermaid
graph LR
X --> Y
```
"""

MALFORMED = [
    "A-->B",
    'graph TD\nA[Has "quotes"]-->B{cond}',
    "flowchart LR\nA[Start] -- yes --> B[End]",
    'A["already quoted"] --> B{"decide"}',
    "A((circle)) --> B[(database)] --> C[/slanted/]",
    "A[x{y}] --> B{p[q]}",
    "subgraph S1[Source Tables]\nA[orders]\nend",
    '   A[a "b" c]   \n\n\n  B --> C  ',
    "A -- maybe later --> B\nB --> C",
    "A-->B-->C\nA --- D\nA -.-> E\nA ==> F",
    "A -->|already| B\nC{{hexagon}} --> D",
    'graph TD\nA["mixed "inner" quotes"] --> B[it\'s fine]',
    "A -- x -- y --> B",
    '{"q" -- ( -- " --> ',
]


class TestExtractDiagram:
    def test_first_block_wins(self):
        assert extract_diagram(REPORT) == "graph TD\nA[raw.orders] --> B[Filter amount]"

    def test_absent(self):
        assert extract_diagram("No diagram here, sorry.") is None
        assert extract_diagram("") is None
        assert extract_diagram(None) is None

    def test_tag_is_case_insensitive(self):
        assert extract_diagram("```Mermaid\nA-->B\n```") == "A-->B"

    def test_tag_must_be_exact(self):
        assert extract_diagram("```mermaidjs\nA-->B\n```") is None

    def test_empty_block(self):
        assert extract_diagram("```mermaid\n```") == ""

    def test_other_fences_ignored(self):
        text = "```python\nprint(1)\n```\n```mermaid\nA-->B\n```"
        assert extract_diagram(text) == "A-->B"


class TestExtractCode:
    def test_fenced(self):
        text = "Sure!\n```java\nclass JobTest {}\n```\nDone."
        assert extract_code(text, "Java") == "class JobTest {}"

    def test_whole_input_fallback(self):
        assert extract_code("  class JobTest {}\n", "java") == "class JobTest {}"

    def test_prefix_language_does_not_match(self):
        text = "```javascript\nlet x;\n```"
        assert extract_code(text, "java") == text

    def test_none(self):
        assert extract_code(None, "java") == ""

    def test_missing_policy(self):
        assert extract_fenced_block("plain", "scala") is None
        assert extract_fenced_block("plain", "scala", MissingBlock.WHOLE_INPUT) == "plain"


class TestRepairScenarios:
    def test_quotes_and_brace_label(self):
        fixed = repair('graph TD\nA[Has "quotes"]-->B{cond}')
        assert fixed == "graph TD\n    A[\"Has 'quotes'\"]-->B{\"cond\"}"

    def test_declaration_not_duplicated(self):
        fixed = repair("graph TD\nA-->B")
        assert fixed.splitlines()[0] == "graph TD"
        assert fixed.count("graph TD") == 1

    def test_missing_declaration(self):
        assert repair("A-->B") == "graph TD\n    A-->B"

    def test_flowchart_declaration_kept(self):
        assert repair("flowchart LR\nA-->B").splitlines()[0] == "flowchart LR"

    def test_declaration_with_leading_blank_lines(self):
        assert repair("\n\n  graph LR  \nA-->B") == "graph LR\n    A-->B"

    def test_blank_lines_dropped_and_indented(self):
        assert repair("A-->B\n\n   \nB-->C") == "graph TD\n    A-->B\n    B-->C"

    def test_inline_condition_with_labels(self):
        fixed = repair("A[Start] -- yes --> B[End]")
        assert fixed == 'graph TD\n    A["Start"] -->|yes| B["End"]'

    def test_shapes_left_alone(self):
        line = "A((circle)) --> B[(database)] --> C[/slanted/] --> D{{hexagon}}"
        assert repair(line) == "graph TD\n    " + line

    @pytest.mark.parametrize("empty", [None, "", "   ", "\n\n  \n"])
    def test_unrepairable(self, empty):
        with pytest.raises(UnrepairableDiagramError):
            repair(empty)


class TestInlineConditions:
    def test_single_arrow_form(self):
        # Rewrites to one arrow; never emits the doubled "-->|cond|-->" form
        fixed = fix_inline_conditions("A -- yes --> B")
        assert fixed == "A -->|yes| B"
        assert "|-->" not in fixed

    def test_multi_word_condition(self):
        assert fix_inline_conditions("A--amount > 10-->B") == "A-->|amount > 10|B"

    def test_chained_conditions(self):
        fixed = fix_inline_conditions("A -- x -- y --> B")
        assert fixed == "A -- x -->|y| B"
        assert fix_inline_conditions(fixed) == fixed

    @pytest.mark.parametrize(
        "line",
        ["A-->B-->C", "A --- B", "A -.-> B", "A ==> B", "A <--> B", "A -->|x| B", "A -- B",
         "A -- x -->|y| B"],
    )
    def test_other_edges_untouched(self, line: str):
        assert fix_inline_conditions(line) == line


class TestLabelRules:
    def test_inner_quotes_single(self):
        assert normalize_label_quotes('A[say "hi"]') == "A[say 'hi']"

    def test_quoted_label_keeps_outer_quotes(self):
        assert normalize_label_quotes('A["say "hi""]') == "A[\"say 'hi'\"]"

    def test_quote_square_and_brace(self):
        assert quote_labels("A[load orders] --> B{ok?}") == 'A["load orders"] --> B{"ok?"}'

    def test_already_quoted(self):
        line = 'A["load"] --> B{"ok?"}'
        assert quote_labels(line) == line

    def test_nested_brackets(self):
        assert quote_labels("A[x{y}]") == 'A["x{y}"]'


class TestIdempotence:
    @pytest.mark.parametrize("diagram", MALFORMED)
    def test_repair_twice_is_repair_once(self, diagram: str):
        once = repair(diagram)
        assert repair(once) == once

    @pytest.mark.parametrize("rule", [fix_inline_conditions, normalize_label_quotes, quote_labels])
    @pytest.mark.parametrize("diagram", MALFORMED)
    def test_each_rule_idempotent(self, rule, diagram: str):
        for line in diagram.splitlines():
            once = rule(line.strip())
            assert rule(once) == once


def _random_diagram(seed: int) -> str:
    """Diagram text stitched together from edge, label, quote and bracket pieces."""
    rng = random.Random(seed)
    lines = []
    for _ in range(rng.randint(1, 6)):
        pieces = [rng.choice(_PIECES) for _ in range(rng.randint(1, 14))]
        lines.append("".join(pieces))
    return "\n".join(lines)


_PIECES = [
    "A", "B", "n1", "orders", "graph TD", "flowchart LR", "subgraph", "end",
    "-->", "--", "---", "-.->", "==>", "<-->", "-->|", "|",
    "[", "]", "{", "}", "(", ")", "[(", "[/", "[[", "]]", "{{", "}}",
    '"', "'", " ", "  ", ">", ".", "=", "<",
    "yes", "x y", "amount > 10", "A[load]", 'B{"ok?"}', "-- cond -->",
]


class TestRandomDiagrams:
    @pytest.mark.parametrize("seed", range(300))
    def test_repair_twice_is_repair_once(self, seed: int):
        diagram = _random_diagram(seed)
        if not diagram.strip():
            pytest.skip("blank diagram")
        once = repair(diagram)
        assert repair(once) == once


class TestExtractAndRepair:
    def test_report(self):
        fixed = extract_and_repair(REPORT)
        assert fixed == 'graph TD\n    A["raw.orders"] --> B["Filter amount"]'

    def test_not_found(self):
        with pytest.raises(DiagramNotFoundError):
            extract_and_repair("Just prose.")

    def test_empty_block(self):
        with pytest.raises(UnrepairableDiagramError):
            extract_and_repair("```mermaid\n\n```")
