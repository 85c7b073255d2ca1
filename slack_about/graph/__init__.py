"""
Graph module - Neo4j schema definitions and the query gateway.
"""

from .schema import (
    NodeLabels,
    NodeProperties,
    RelationshipTypes,
)
from .service import GraphService, QueryError

__all__ = [
    "GraphService",
    "QueryError",
    "NodeLabels",
    "NodeProperties",
    "RelationshipTypes",
]
