"""LineageGraph - data-lineage reports from transitive code context."""

__version__ = "0.1.0"
