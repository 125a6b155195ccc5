"""The symbol-graph capability consumed by the context collector."""

from __future__ import annotations

from typing import Protocol

import networkx as nx

from lineagegraph.parser.models import Routine, SymbolReference


class SymbolGraphAdapter(Protocol):
    """Read-only view of a program's routines and what they touch."""

    def get_routine(self, routine_id: str) -> Routine | None:
        """Look up a routine by id, or None if it is unknown."""
        ...

    def resolve_callees(self, routine: Routine) -> list[Routine]:
        """Routines called by ``routine``, in call order. Unresolved calls are absent."""
        ...

    def resolve_references(self, routine: Routine) -> list[SymbolReference]:
        """Field/variable references in ``routine``'s body, one per occurrence."""
        ...

    def source_text_of(self, routine: Routine) -> str:
        """Full source text of ``routine``."""
        ...


class GraphSymbolAdapter:
    """SymbolGraphAdapter backed by a graph from ``GraphBuilder``."""

    def __init__(self, graph: nx.DiGraph) -> None:
        self.graph = graph

    def get_routine(self, routine_id: str) -> Routine | None:
        if not self.graph.has_node(routine_id):
            return None
        return self.graph.nodes[routine_id].get("routine")

    def resolve_callees(self, routine: Routine) -> list[Routine]:
        if not self.graph.has_node(routine.id):
            return []
        edges = [
            (data.get("order", 0), succ)
            for succ, data in self.graph.succ[routine.id].items()
            if data.get("kind") == "calls"
        ]
        edges.sort()
        return [self.graph.nodes[succ]["routine"] for _, succ in edges]

    def resolve_references(self, routine: Routine) -> list[SymbolReference]:
        return list(routine.references)

    def source_text_of(self, routine: Routine) -> str:
        return routine.source
