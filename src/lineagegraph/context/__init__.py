"""Transitive context collection.

Usage:
    from lineagegraph.context import ContextCollector

    collector = ContextCollector(adapter)
    document = collector.collect(routine)
    print(document.render())
"""

from lineagegraph.context.collector import ContextCollector, collect_context
from lineagegraph.context.models import ContextDocument, ContextEntry

__all__ = ["ContextCollector", "ContextDocument", "ContextEntry", "collect_context"]
