"""Unit-test generation for a routine and the code it reaches."""

from __future__ import annotations

from pathlib import PurePath

from pydantic import BaseModel

from lineagegraph.config import ContextConfig, UnitTestConfig
from lineagegraph.context.collector import ContextCollector
from lineagegraph.diagram.extractor import extract_code
from lineagegraph.exceptions import NoTargetError
from lineagegraph.graph.adapter import SymbolGraphAdapter
from lineagegraph.lineage.prompts import build_unit_test_prompt
from lineagegraph.llm.gateway import ModelGateway
from lineagegraph.parser.models import Routine


class GeneratedTest(BaseModel):
    """A test class produced by the model."""

    routine_id: str
    source_path: str
    class_name: str
    language: str
    code: str


def unit_test_class_name(routine: Routine) -> str:
    """``FooTest`` for a routine of class ``Foo``; file stem for free functions."""
    owner = routine.parent.split(".")[-1] if routine.parent else PurePath(routine.file_path).stem
    return f"{owner[:1].upper()}{owner[1:]}Test"


class UnitTestGenerator:
    """Asks the model for unit tests covering a routine."""

    def __init__(
        self,
        graph: SymbolGraphAdapter,
        gateway: ModelGateway,
        settings: UnitTestConfig | None = None,
        context_config: ContextConfig | None = None,
    ) -> None:
        self.graph = graph
        self.collector = ContextCollector(graph)
        self.gateway = gateway
        self.settings = settings or UnitTestConfig()
        self.context_config = context_config or ContextConfig()

    async def generate(self, root: Routine | str | None) -> GeneratedTest:
        if isinstance(root, str):
            root = self.graph.get_routine(root)
        if root is None:
            raise NoTargetError("No routine to generate tests for.")

        document = self.collector.collect(root)
        class_name = unit_test_class_name(root)
        prompt = build_unit_test_prompt(
            document.render(self.context_config.comment_prefix),
            root.qualified_name,
            class_name,
            self.settings,
        )
        response = await self.gateway.send(prompt)
        return GeneratedTest(
            routine_id=root.id,
            source_path=root.file_path,
            class_name=class_name,
            language=self.settings.language,
            code=extract_code(response, self.settings.language),
        )
