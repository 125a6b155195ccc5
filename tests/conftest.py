"""Shared test fixtures for LineageGraph."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from lineagegraph.graph.adapter import GraphSymbolAdapter
from lineagegraph.graph.builder import GraphBuilder
from lineagegraph.llm.base import LLMProvider, LLMResponse, Message
from lineagegraph.parser.models import CallSite, Routine, SymbolKind, SymbolReference

PIPELINE_PY = '''"""Order pipeline."""

SOURCE_TABLE = "raw.orders"


class OrderPipeline:
    """Loads, cleans and publishes orders."""

    threshold = 10

    def __init__(self, spark):
        self.spark = spark

    def run(self):
        df = self.load()
        cleaned = self.clean(df)
        return self.write(cleaned)

    def load(self):
        return self.spark.table(SOURCE_TABLE)

    def clean(self, df):
        return df.filter(df.amount > self.threshold)

    def write(self, df):
        df.write.saveAsTable("curated.orders")
        return df


def countdown(n):
    if n <= 0:
        return 0
    return countdown(n - 1)


def ping(n):
    return pong(n)


def pong(n):
    return ping(n - 1)
'''

ORDER_JOB_JAVA = """package com.acme;

public class OrderJob {
    private final String table = "raw.orders";

    public void run() {
        String name = prepare(table);
        this.publish(name);
    }

    private String prepare(String input) {
        return input.trim();
    }

    private void publish(String target) {
        System.out.println(target);
    }
}
"""


def line_of(path: Path, text: str) -> int:
    """1-based number of the first line in ``path`` containing ``text``."""
    for number, line in enumerate(path.read_text().splitlines(), start=1):
        if text in line:
            return number
    raise AssertionError(f"{text!r} not found in {path}")


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project with a Python pipeline and a Maven-style Java job."""
    (tmp_path / "pipeline.py").write_text(PIPELINE_PY)

    java_dir = tmp_path / "src" / "main" / "java" / "com" / "acme"
    java_dir.mkdir(parents=True)
    (java_dir / "OrderJob.java").write_text(ORDER_JOB_JAVA)

    # Excluded by default patterns
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    (build_dir / "generated.py").write_text("def generated():\n    return 1\n")

    return tmp_path


@pytest.fixture
def pipeline_source() -> str:
    return PIPELINE_PY


@pytest.fixture
def java_source() -> str:
    return ORDER_JOB_JAVA


def make_routine(
    name: str,
    calls: list[str] | None = None,
    refs: list[tuple[str, str]] | None = None,
    source: str | None = None,
    line: int = 1,
    file_path: str = "jobs.py",
) -> Routine:
    """Hand-built routine calling ``calls`` by bare name."""
    return Routine(
        name=name,
        file_path=file_path,
        line_start=line,
        line_end=line + 2,
        source=f"def {name}():\n    pass" if source is None else source,
        calls=[CallSite(target=c, line=line + 1) for c in calls or []],
        references=[
            SymbolReference(expression=expr, declaration=decl, kind=SymbolKind.FIELD, line=line + 1)
            for expr, decl in refs or []
        ],
    )


def make_adapter(routines: list[Routine]) -> GraphSymbolAdapter:
    return GraphSymbolAdapter(GraphBuilder().build_from_routines(routines))


@pytest.fixture
def abc_graph() -> GraphSymbolAdapter:
    """A calls B then C; B calls back into A and touches field f."""
    return make_adapter(
        [
            make_routine("A", calls=["B", "C"], refs=[("self.rate", "rate = 0.1")], line=1),
            make_routine("B", calls=["A"], refs=[("self.f", "f = 1")], line=10),
            make_routine("C", line=20),
        ]
    )


class FakeProvider(LLMProvider):
    """Scripted provider: returns ``reply``, raises ``error`` or sleeps ``delay`` seconds."""

    def __init__(self, reply: str = "", error: Exception | None = None, delay: float = 0.0):
        super().__init__(model="fake-model")
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: list[list[Message]] = []

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 2048,
        top_p: float = 1.0,
    ) -> LLMResponse:
        self.calls.append(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, finish_reason="stop")


@pytest.fixture
def fake_provider():
    """Factory for scripted providers."""
    return FakeProvider
