"""Transitive context collection over a symbol graph.

Starting from a root routine, walk its callees depth-first and emit each
reachable routine exactly once, in first-visit (pre-order) order. A routine
is marked visited before any of its callees are expanded, so self-recursion
and mutual recursion terminate. Field and variable references are emitted as
lines under the routine that makes them and are never expanded.

The walk keeps an explicit stack of callee iterators rather than recursing.
Cost is O(V + E) over the reachable part of the graph.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator

from lineagegraph.context.models import ContextDocument, ContextEntry
from lineagegraph.exceptions import EmptyContextError, NoTargetError
from lineagegraph.graph.adapter import SymbolGraphAdapter
from lineagegraph.parser.models import Routine

logger = logging.getLogger("lineagegraph.context")


class ContextCollector:
    """Collects the transitive code context of a routine.

    Usage:
        collector = ContextCollector(GraphSymbolAdapter(graph))
        document = collector.collect(routine)
        text = document.render()
    """

    def __init__(self, graph: SymbolGraphAdapter) -> None:
        self.graph = graph

    def collect(self, root: Routine | str | None) -> ContextDocument:
        """Collect context for ``root`` (a routine or a routine id).

        Raises:
            NoTargetError: ``root`` is None or does not resolve to a routine.
            EmptyContextError: no source text could be collected.
        """
        if isinstance(root, str):
            root = self.graph.get_routine(root)
        if root is None:
            raise NoTargetError("No routine to collect context from.")

        start = time.perf_counter()
        visited: set[str] = set()
        document = ContextDocument(root_id=root.id)

        self._emit(root, 0, visited, document)
        stack: list[tuple[int, Iterator[Routine]]] = [
            (0, iter(self.graph.resolve_callees(root)))
        ]
        while stack:
            depth, callees = stack[-1]
            callee = next(callees, None)
            if callee is None:
                stack.pop()
                continue
            if callee.id in visited:
                continue
            self._emit(callee, depth + 1, visited, document)
            stack.append((depth + 1, iter(self.graph.resolve_callees(callee))))

        if not any(entry.source.strip() for entry in document.entries):
            raise EmptyContextError(f"No source text available for {root.id}.")

        logger.debug(
            "Collected %d routine(s), %d reference line(s) from %s in %.1fms",
            len(document.entries),
            document.reference_count,
            root.id,
            (time.perf_counter() - start) * 1000,
        )
        return document

    def _emit(
        self, routine: Routine, depth: int, visited: set[str], document: ContextDocument
    ) -> None:
        visited.add(routine.id)
        document.entries.append(
            ContextEntry(
                routine_id=routine.id,
                qualified_name=routine.qualified_name,
                file_path=routine.file_path,
                line_start=routine.line_start,
                source=self.graph.source_text_of(routine),
                references=self.graph.resolve_references(routine),
                depth=depth,
            )
        )


def collect_context(root: Routine | str | None, graph: SymbolGraphAdapter) -> ContextDocument:
    """Collect the transitive context of ``root`` over ``graph``."""
    return ContextCollector(graph).collect(root)
