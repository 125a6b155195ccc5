"""Build a routine call graph from parsed source files."""

from __future__ import annotations

import logging
from pathlib import Path

import networkx as nx

from lineagegraph.config import ProjectConfig
from lineagegraph.parser.core import parse_directory
from lineagegraph.parser.models import CallSite, FileRoutines, Routine

logger = logging.getLogger("lineagegraph.graph")

# Receivers that mean "the enclosing class" when they prefix a call
_SELF_RECEIVERS = {"self", "cls", "this", "super"}


class GraphBuilder:
    """Builds a call graph of routines.

    Nodes are routine ids carrying the parsed ``Routine`` under the
    ``routine`` attribute. ``calls`` edges carry an ``order`` attribute: the
    index of the first call site in the caller that resolved to the callee.
    Call sites that match no routine are kept in ``unresolved`` and never
    become edges.
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()
        self.unresolved: list[tuple[str, CallSite]] = []
        self._files: set[str] = set()
        self._by_qualified: dict[str, list[str]] = {}
        self._by_name: dict[str, list[str]] = {}

    def build_from_directory(
        self,
        root: str | Path,
        config: ProjectConfig | None = None,
        progress_callback: callable | None = None,
    ) -> nx.DiGraph:
        """Parse every supported file under ``root`` and build the graph."""
        parsed = parse_directory(root, config, progress_callback)
        return self.build_from_files(parsed)

    def build_from_files(self, files: list[FileRoutines]) -> nx.DiGraph:
        routines = []
        for fs in files:
            self._files.add(fs.file_path)
            routines.extend(fs.routines)
        return self.build_from_routines(routines)

    def build_from_routines(self, routines: list[Routine]) -> nx.DiGraph:
        """Build the graph from routines, resolving calls across all of them."""
        self.graph = nx.DiGraph()
        self.unresolved = []
        self._by_qualified = {}
        self._by_name = {}

        for routine in routines:
            self._files.add(routine.file_path)
            self.graph.add_node(
                routine.id,
                type="routine",
                name=routine.name,
                qualified_name=routine.qualified_name,
                file_path=routine.file_path,
                line_start=routine.line_start,
                line_end=routine.line_end,
                routine=routine,
            )
            self._by_qualified.setdefault(routine.qualified_name, []).append(routine.id)
            self._by_name.setdefault(routine.name, []).append(routine.id)

        for routine in routines:
            for order, site in enumerate(routine.calls):
                target = self._resolve(routine, site.target)
                if target is None:
                    self.unresolved.append((routine.id, site))
                    continue
                if not self.graph.has_edge(routine.id, target):
                    self.graph.add_edge(
                        routine.id, target, kind="calls", order=order, line=site.line
                    )

        if self.unresolved:
            logger.debug("%d call site(s) left unresolved", len(self.unresolved))
        return self.graph

    def _resolve(self, caller: Routine, target: str) -> str | None:
        """Pick the routine a call site most likely refers to."""
        parts = target.split(".")
        receiver = parts[0] if len(parts) > 1 else ""

        if receiver not in _SELF_RECEIVERS:
            exact = self._by_qualified.get(target)
            if exact:
                return self._best(caller, exact)

        if receiver in _SELF_RECEIVERS and caller.parent:
            scoped = self._by_qualified.get(f"{caller.parent}.{parts[-1]}")
            if scoped:
                return self._best(caller, scoped)

        if len(parts) == 1 and caller.parent:
            # Bare call from a method: a sibling (Java) before a module function
            scoped = self._by_qualified.get(f"{caller.parent}.{target}")
            if scoped:
                return self._best(caller, scoped)

        candidates = self._by_name.get(parts[-1], [])
        if not candidates:
            return None
        return self._best(caller, candidates)

    def _best(self, caller: Routine, candidates: list[str]) -> str:
        """Same file first, then the lowest id for determinism."""
        same_file = [
            c for c in candidates
            if self.graph.nodes[c]["file_path"] == caller.file_path
        ]
        return min(same_file or candidates)

    def get_stats(self) -> dict:
        """Get graph statistics."""
        references = sum(
            len(data["routine"].references) for _, data in self.graph.nodes(data=True)
        )
        return {
            "files": len(self._files),
            "routines": self.graph.number_of_nodes(),
            "call_edges": self.graph.number_of_edges(),
            "references": references,
            "unresolved_calls": len(self.unresolved),
        }
