"""Data models for parsed routines, calls and symbol references."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class SymbolKind(str, Enum):
    """Kinds of non-callable symbols a routine can reference."""

    FIELD = "field"
    VARIABLE = "variable"


class SymbolReference(BaseModel):
    """One occurrence of a field/variable reference inside a routine body."""

    expression: str  # text as written at the use site, e.g. "self.rate"
    declaration: str  # declaration text of the resolved symbol
    kind: SymbolKind
    line: int = 0


class CallSite(BaseModel):
    """A call expression inside a routine body, not yet resolved."""

    target: str  # dotted callee name as written, e.g. "self.load"
    line: int = 0
    column: int = 0


class Routine(BaseModel):
    """A callable unit of source code (function, method, constructor)."""

    id: str = ""  # auto-generated: "file_path::qualified_name"
    name: str
    qualified_name: str = ""
    file_path: str
    line_start: int
    line_end: int
    source: str = ""
    parent: str = ""  # enclosing class name, if any
    calls: list[CallSite] = Field(default_factory=list)
    references: list[SymbolReference] = Field(default_factory=list)

    def model_post_init(self, __context: object) -> None:
        if not self.qualified_name:
            self.qualified_name = self.name
        if not self.id:
            self.id = f"{self.file_path}::{self.qualified_name}"

    def encloses(self, line: int) -> bool:
        return self.line_start <= line <= self.line_end


class FileRoutines(BaseModel):
    """All routines extracted from a single file."""

    file_path: str
    language: str
    routines: list[Routine] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


# Language detection by file extension
EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    ".py": "python",
    ".java": "java",
}


def detect_language(file_path: str) -> str | None:
    """Detect programming language from file extension."""
    ext = Path(file_path).suffix.lower()
    return EXTENSION_LANGUAGE_MAP.get(ext)
