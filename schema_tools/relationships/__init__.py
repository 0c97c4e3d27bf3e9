"""
Relationship analysis package.
"""

from .relationship_analyzer import (
    DependencyGraph,
    GraphEdge,
    PopulationPlan,
    Relationship,
    RelationshipAnalyzer,
    TableRelationships,
)

__all__ = [
    "DependencyGraph",
    "GraphEdge",
    "PopulationPlan",
    "Relationship",
    "RelationshipAnalyzer",
    "TableRelationships",
]
