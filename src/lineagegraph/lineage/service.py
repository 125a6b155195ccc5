"""End-to-end lineage report: context -> prompt -> model -> diagram."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from lineagegraph.config import ContextConfig
from lineagegraph.context.collector import ContextCollector
from lineagegraph.context.models import ContextDocument
from lineagegraph.diagram.extractor import extract_diagram
from lineagegraph.diagram.repair import repair
from lineagegraph.exceptions import GatewayError, UnrepairableDiagramError
from lineagegraph.graph.adapter import SymbolGraphAdapter
from lineagegraph.lineage.prompts import build_lineage_prompt
from lineagegraph.llm.gateway import ModelGateway
from lineagegraph.parser.models import Routine

logger = logging.getLogger("lineagegraph.lineage")


class LineageReport(BaseModel):
    """The model's report plus the diagram found in it, if any."""

    routine_id: str
    prompt: str
    report: str
    diagram: str | None = None  # as extracted from the report
    repaired_diagram: str | None = None
    diagram_error: str = ""

    @property
    def has_diagram(self) -> bool:
        return self.repaired_diagram is not None


class LineageService:
    """Produces lineage reports for routines in a symbol graph."""

    def __init__(
        self,
        graph: SymbolGraphAdapter,
        gateway: ModelGateway | None = None,
        context_config: ContextConfig | None = None,
    ) -> None:
        self.collector = ContextCollector(graph)
        self.gateway = gateway
        self.context_config = context_config or ContextConfig()

    def build_prompt(self, root: Routine | str | None) -> tuple[ContextDocument, str]:
        """Collect context for ``root`` and wrap it in the lineage prompt."""
        document = self.collector.collect(root)
        code = document.render(self.context_config.comment_prefix)
        return document, build_lineage_prompt(code)

    async def run(self, root: Routine | str | None) -> LineageReport:
        """Build the prompt, call the model and repair any diagram it returned.

        Raises NoTargetError / EmptyContextError from collection and
        GatewayError from the model call. A missing or empty diagram is
        recorded on the report instead of raised.
        """
        document, prompt = self.build_prompt(root)
        if self.gateway is None:
            raise GatewayError("No model gateway configured.")
        report_text = await self.gateway.send(prompt)

        result = LineageReport(routine_id=document.root_id, prompt=prompt, report=report_text)
        result.diagram = extract_diagram(report_text)
        if result.diagram is None:
            result.diagram_error = "No Mermaid diagram found."
        else:
            try:
                result.repaired_diagram = repair(result.diagram)
            except UnrepairableDiagramError as e:
                result.diagram_error = str(e)

        if result.diagram_error:
            logger.warning("%s: %s", document.root_id, result.diagram_error)
        return result
