"""
Graph module: snapshot records, ingestion and traversal over visual-scripting graphs.
"""

from .ingest import ingest
from .snapshot import GraphSnapshot, LinkRecord, NodeRecord, PinRecord
from .traversal import GraphTraversal

__all__ = [
    'ingest',
    'GraphSnapshot',
    'NodeRecord',
    'PinRecord',
    'LinkRecord',
    'GraphTraversal'
]
