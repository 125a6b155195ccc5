"""Tests for the call graph builder, adapter and queries."""

from __future__ import annotations

from pathlib import Path

from conftest import line_of, make_adapter, make_routine

from lineagegraph.graph.adapter import GraphSymbolAdapter
from lineagegraph.graph.builder import GraphBuilder
from lineagegraph.graph.query import RoutineQuery
from lineagegraph.parser.models import CallSite, Routine
from lineagegraph.parser.python_parser import parse_python_file


def _pipeline_graph(pipeline_source: str):
    builder = GraphBuilder()
    graph = builder.build_from_files([parse_python_file("pipeline.py", pipeline_source)])
    return builder, graph


class TestGraphBuilder:
    def test_nodes_carry_routines(self, pipeline_source: str):
        _, graph = _pipeline_graph(pipeline_source)
        data = graph.nodes["pipeline.py::OrderPipeline.run"]
        assert data["type"] == "routine"
        assert data["qualified_name"] == "OrderPipeline.run"
        assert isinstance(data["routine"], Routine)

    def test_self_calls_resolve_to_methods(self, pipeline_source: str):
        _, graph = _pipeline_graph(pipeline_source)
        succ = set(graph.successors("pipeline.py::OrderPipeline.run"))
        assert succ == {
            "pipeline.py::OrderPipeline.load",
            "pipeline.py::OrderPipeline.clean",
            "pipeline.py::OrderPipeline.write",
        }

    def test_recursion_edges(self, pipeline_source: str):
        _, graph = _pipeline_graph(pipeline_source)
        assert graph.has_edge("pipeline.py::countdown", "pipeline.py::countdown")
        assert graph.has_edge("pipeline.py::ping", "pipeline.py::pong")
        assert graph.has_edge("pipeline.py::pong", "pipeline.py::ping")

    def test_library_calls_stay_unresolved(self, pipeline_source: str):
        builder, _ = _pipeline_graph(pipeline_source)
        targets = sorted(site.target for _, site in builder.unresolved)
        assert targets == ["df.filter", "df.write.saveAsTable", "self.spark.table"]

    def test_stats(self, pipeline_source: str):
        builder, _ = _pipeline_graph(pipeline_source)
        stats = builder.get_stats()
        assert stats["files"] == 1
        assert stats["routines"] == 8
        assert stats["call_edges"] == 6
        assert stats["unresolved_calls"] == 3
        assert stats["references"] > 0

    def test_build_from_directory(self, tmp_project: Path):
        builder = GraphBuilder()
        graph = builder.build_from_directory(tmp_project)
        assert "pipeline.py::OrderPipeline.run" in graph
        assert not any(n.startswith("build/") for n in graph.nodes)

    def test_first_call_wins_edge_order(self):
        builder = GraphBuilder()
        graph = builder.build_from_routines(
            [
                make_routine("a", calls=["b", "c", "b"]),
                make_routine("b", line=10),
                make_routine("c", line=20),
            ]
        )
        assert graph.edges["jobs.py::a", "jobs.py::b"]["order"] == 0
        assert graph.edges["jobs.py::a", "jobs.py::c"]["order"] == 1
        assert graph.number_of_edges() == 2

    def test_prefers_same_file(self):
        graph = GraphBuilder().build_from_routines(
            [
                make_routine("main", calls=["helper"], file_path="b.py"),
                make_routine("helper", line=10, file_path="a.py"),
                make_routine("helper", line=10, file_path="b.py"),
            ]
        )
        assert list(graph.successors("b.py::main")) == ["b.py::helper"]

    def test_qualified_call(self):
        graph = GraphBuilder().build_from_routines(
            [
                make_routine("main", calls=["Loader.fetch"]),
                Routine(name="fetch", parent="Loader", qualified_name="Loader.fetch",
                        file_path="loader.py", line_start=1, line_end=3),
                make_routine("fetch", line=10),
            ]
        )
        assert list(graph.successors("jobs.py::main")) == ["loader.py::Loader.fetch"]

    def test_bare_call_prefers_sibling_method(self):
        graph = GraphBuilder().build_from_routines(
            [
                Routine(name="run", parent="Job", qualified_name="Job.run", file_path="Job.java",
                        line_start=1, line_end=3, calls=[CallSite(target="load")]),
                Routine(name="load", parent="Job", qualified_name="Job.load",
                        file_path="Job.java", line_start=5, line_end=7),
                Routine(name="load", parent="Other", qualified_name="Other.load",
                        file_path="Job.java", line_start=9, line_end=11),
            ]
        )
        assert list(graph.successors("Job.java::Job.run")) == ["Job.java::Job.load"]


class TestGraphSymbolAdapter:
    def test_callees_in_call_order(self):
        adapter = make_adapter(
            [
                make_routine("c", line=20),
                make_routine("b", line=10),
                make_routine("a", calls=["c", "missing", "b"]),
            ]
        )
        root = adapter.get_routine("jobs.py::a")
        assert [r.name for r in adapter.resolve_callees(root)] == ["c", "b"]

    def test_unknown_routine(self):
        adapter = make_adapter([make_routine("a")])
        assert adapter.get_routine("jobs.py::nope") is None
        orphan = make_routine("orphan", file_path="elsewhere.py")
        assert adapter.resolve_callees(orphan) == []

    def test_references_and_source(self, pipeline_source: str):
        _, graph = _pipeline_graph(pipeline_source)
        adapter = GraphSymbolAdapter(graph)
        load = adapter.get_routine("pipeline.py::OrderPipeline.load")
        assert [r.expression for r in adapter.resolve_references(load)] == [
            "self.spark",
            "SOURCE_TABLE",
        ]
        assert adapter.source_text_of(load).startswith("def load(self):")


class TestRoutineQuery:
    def test_find_routine(self, pipeline_source: str):
        _, graph = _pipeline_graph(pipeline_source)
        query = RoutineQuery(graph)
        assert query.find_routine("run") == ["pipeline.py::OrderPipeline.run"]
        assert query.find_routine("OrderPipeline.clean") == ["pipeline.py::OrderPipeline.clean"]
        assert query.find_routine("nothing") == []

    def test_routine_at(self, tmp_project: Path):
        graph = GraphBuilder().build_from_directory(tmp_project)
        query = RoutineQuery(graph)
        line = line_of(tmp_project / "pipeline.py", "cleaned = self.clean(df)")
        assert query.routine_at("pipeline.py", line).qualified_name == "OrderPipeline.run"
        assert query.routine_at("pipeline.py", 1) is None
        assert query.routine_at("missing.py", line) is None

    def test_routine_at_picks_innermost(self):
        outer = Routine(name="outer", file_path="m.py", line_start=1, line_end=20)
        inner = Routine(name="inner", qualified_name="outer.inner", file_path="m.py",
                        line_start=5, line_end=8)
        graph = GraphBuilder().build_from_routines([outer, inner])
        query = RoutineQuery(graph)
        assert query.routine_at("m.py", 6).name == "inner"
        assert query.routine_at("m.py", 12).name == "outer"
