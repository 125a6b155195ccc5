"""Data models for collected routine context."""

from __future__ import annotations

from pydantic import BaseModel, Field

from lineagegraph.parser.models import SymbolReference


class ContextEntry(BaseModel):
    """One routine in the collected context, with the references it makes."""

    routine_id: str
    qualified_name: str
    file_path: str
    line_start: int = 0
    source: str
    references: list[SymbolReference] = Field(default_factory=list)
    depth: int = 0  # call distance from the root routine


class ContextDocument(BaseModel):
    """Ordered context for one root routine.

    Each routine appears at most once, in first-visit order. Reference lines
    belong to the entry of the routine whose body contains them.
    """

    root_id: str
    entries: list[ContextEntry] = Field(default_factory=list)

    @property
    def routine_ids(self) -> list[str]:
        return [e.routine_id for e in self.entries]

    @property
    def reference_count(self) -> int:
        return sum(len(e.references) for e in self.entries)

    def render(self, comment_prefix: str = "// ") -> str:
        """Render the document as the code context handed to the model."""
        sections: list[str] = []
        for entry in self.entries:
            sections.append(
                f"{comment_prefix}routine: {entry.qualified_name} "
                f"({entry.file_path}:{entry.line_start})"
            )
            sections.append(entry.source)
            for ref in entry.references:
                sections.append(
                    f"{comment_prefix}reference: {ref.expression} -> {ref.declaration}"
                )
            sections.append("")
        return "\n".join(sections)

    def summary(self) -> str:
        """Human-readable outline of what was collected."""
        lines = [
            f"Context for: {self.root_id}",
            f"Routines: {len(self.entries)}",
            f"Reference lines: {self.reference_count}",
            "",
        ]
        for entry in self.entries:
            marker = ">" if entry.depth == 0 else " " * entry.depth + "·"
            lines.append(
                f"  {marker} {entry.qualified_name} [{entry.file_path}:{entry.line_start}] "
                f"refs={len(entry.references)}"
            )
        return "\n".join(lines)
