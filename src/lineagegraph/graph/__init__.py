"""Routine call graph construction and querying."""

from lineagegraph.graph.adapter import GraphSymbolAdapter, SymbolGraphAdapter
from lineagegraph.graph.builder import GraphBuilder
from lineagegraph.graph.query import RoutineQuery

__all__ = ["GraphBuilder", "GraphSymbolAdapter", "RoutineQuery", "SymbolGraphAdapter"]
