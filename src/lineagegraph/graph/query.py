"""Lookups over the routine graph: by name and by cursor position."""

from __future__ import annotations

from pathlib import PurePath

import networkx as nx

from lineagegraph.parser.models import Routine


class RoutineQuery:
    """Find routines by name or by the position of a cursor in a file."""

    def __init__(self, graph: nx.DiGraph) -> None:
        self.graph = graph
        self._name_index: dict[str, list[str]] = {}
        self._file_index: dict[str, list[Routine]] = {}
        self._build_index()

    def _build_index(self) -> None:
        for node_id, data in self.graph.nodes(data=True):
            routine: Routine | None = data.get("routine")
            if routine is None:
                continue
            self._name_index.setdefault(routine.name, []).append(node_id)
            if routine.qualified_name != routine.name:
                self._name_index.setdefault(routine.qualified_name, []).append(node_id)
            self._file_index.setdefault(_normalize(routine.file_path), []).append(routine)

    def find_routine(self, name: str) -> list[str]:
        """Routine ids whose name or qualified name equals ``name``."""
        return sorted(set(self._name_index.get(name, [])))

    def routine_at(self, file_path: str, line: int) -> Routine | None:
        """Innermost routine enclosing ``line`` (1-based) in ``file_path``."""
        enclosing = [
            r for r in self._file_index.get(_normalize(file_path), []) if r.encloses(line)
        ]
        if not enclosing:
            return None
        return min(enclosing, key=lambda r: r.line_end - r.line_start)


def _normalize(path: str) -> str:
    return PurePath(path).as_posix()
