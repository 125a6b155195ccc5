"""Diagram extraction from model output and Mermaid text repair."""

from lineagegraph.diagram.extractor import (
    MissingBlock,
    extract_code,
    extract_diagram,
    extract_fenced_block,
)
from lineagegraph.diagram.repair import extract_and_repair, repair

__all__ = [
    "MissingBlock",
    "extract_and_repair",
    "extract_code",
    "extract_diagram",
    "extract_fenced_block",
    "repair",
]
