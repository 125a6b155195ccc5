"""Lineage reports and unit-test generation built on collected context."""

from lineagegraph.lineage.service import LineageReport, LineageService
from lineagegraph.lineage.testgen import GeneratedTest, UnitTestGenerator
from lineagegraph.lineage.writer import UnitTestWriter

__all__ = [
    "GeneratedTest",
    "LineageReport",
    "LineageService",
    "UnitTestGenerator",
    "UnitTestWriter",
]
