"""
ICE scoring package.

Insight/Context/Execution analyses, their combination into an ICEScore and the
calculator that scores each kind of schema issue.
"""

from .analyses import (
    CONTEXT_FACTORS,
    EXECUTION_FACTORS,
    INSIGHT_FACTORS,
    ContextAnalysis,
    ExecutionPlan,
    InsightAnalysis,
    MigrationDirection,
    round_half_up,
)
from .calculator import (
    ICECalculator,
    MissingIndexContext,
    MissingPrimaryKeyContext,
    NullableForeignKeyContext,
    SchemaDifferenceContext,
    ScoredAnalysis,
)
from .ice_score import HIGH_PRIORITY_THRESHOLD, MEDIUM_PRIORITY_THRESHOLD, ICEScore, Priority

__all__ = [
    "CONTEXT_FACTORS",
    "EXECUTION_FACTORS",
    "HIGH_PRIORITY_THRESHOLD",
    "INSIGHT_FACTORS",
    "MEDIUM_PRIORITY_THRESHOLD",
    "ContextAnalysis",
    "ExecutionPlan",
    "ICECalculator",
    "ICEScore",
    "InsightAnalysis",
    "MigrationDirection",
    "MissingIndexContext",
    "MissingPrimaryKeyContext",
    "NullableForeignKeyContext",
    "Priority",
    "SchemaDifferenceContext",
    "ScoredAnalysis",
    "round_half_up",
]
