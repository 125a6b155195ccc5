"""Routine extraction for Python and Java sources."""

from lineagegraph.parser.core import parse_directory, parse_file
from lineagegraph.parser.models import (
    CallSite,
    FileRoutines,
    Routine,
    SymbolKind,
    SymbolReference,
)

__all__ = [
    "CallSite",
    "FileRoutines",
    "Routine",
    "SymbolKind",
    "SymbolReference",
    "parse_file",
    "parse_directory",
]
