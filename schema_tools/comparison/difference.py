"""
Schema Difference

One drift finding between a source and a target schema, together with the ICE
analyses that prioritize it. Severity is never set by the caller; it is derived
from the ICE priority and the difference type by ``derive_severity``. The ICE
score itself always comes from the three analyses.
"""

from dataclasses import dataclass, field
from typing import Any

from ..models import DifferenceType, Environment, Severity, parse_environment
from ..scoring import ContextAnalysis, ExecutionPlan, ICEScore, InsightAnalysis, Priority


def derive_severity(ice_score: ICEScore, difference_type: DifferenceType) -> Severity:
    """
    Map an ICE priority to a difference severity.

    High priority missing tables and missing columns break applications outright,
    so they are escalated to CRITICAL. Every other type keeps its priority level.

    Args:
        ice_score: Score of the finding
        difference_type: Kind of drift

    Returns:
        Severity of the finding
    """
    if ice_score.priority is Priority.HIGH:
        if difference_type.escalates_to_critical:
            return Severity.CRITICAL
        return Severity.HIGH

    if ice_score.priority is Priority.MEDIUM:
        return Severity.MEDIUM

    return Severity.LOW


@dataclass(frozen=True)
class DifferenceLocation:
    """Where a difference was found; source/target values carry e.g. the column types."""

    table_name: str
    column_name: str | None = None
    source_value: str | None = None
    target_value: str | None = None

    def __post_init__(self) -> None:
        if not self.table_name or not self.table_name.strip():
            raise ValueError("SchemaDifference table name cannot be empty")
        object.__setattr__(self, "table_name", self.table_name.strip())

    def __str__(self) -> str:
        if self.column_name:
            return f"{self.table_name}.{self.column_name}"
        return self.table_name

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"table_name": self.table_name}
        if self.column_name is not None:
            data["column_name"] = self.column_name
        if self.source_value is not None:
            data["source_value"] = self.source_value
        if self.target_value is not None:
            data["target_value"] = self.target_value
        return data


@dataclass(frozen=True)
class SchemaDifference:
    """A single prioritized drift finding."""

    type: DifferenceType
    location: DifferenceLocation
    description: str
    source_environment: Environment
    target_environment: Environment
    insight_analysis: InsightAnalysis
    context_analysis: ContextAnalysis
    execution_plan: ExecutionPlan
    ice_score: ICEScore = field(init=False)
    severity: Severity = field(init=False)

    def __post_init__(self) -> None:
        if not self.description or not self.description.strip():
            raise ValueError("SchemaDifference description cannot be empty")
        object.__setattr__(self, "description", self.description.strip())
        object.__setattr__(self, "source_environment", parse_environment(self.source_environment))
        object.__setattr__(self, "target_environment", parse_environment(self.target_environment))
        object.__setattr__(
            self,
            "ice_score",
            ICEScore(self.insight_analysis.score, self.context_analysis.score, self.execution_plan.score),
        )
        object.__setattr__(self, "severity", derive_severity(self.ice_score, self.type))

    @classmethod
    def create(
        cls,
        difference_type: DifferenceType,
        location: DifferenceLocation,
        description: str,
        source_environment: Environment,
        target_environment: Environment,
        insight_analysis: InsightAnalysis,
        context_analysis: ContextAnalysis,
        execution_plan: ExecutionPlan,
    ) -> "SchemaDifference":
        """Build a difference from positional arguments; the ICEScore combines the analyses."""
        return cls(
            type=difference_type,
            location=location,
            description=description,
            source_environment=source_environment,
            target_environment=target_environment,
            insight_analysis=insight_analysis,
            context_analysis=context_analysis,
            execution_plan=execution_plan,
        )

    def get_full_description(self) -> str:
        """e.g. ``[CRITICAL] Column 'email' missing in production at users.email (development → production)``"""
        return (
            f"[{self.severity.value.upper()}] {self.description} at {self.location} "
            f"({self.source_environment.value} → {self.target_environment.value})"
        )

    def get_ice_analysis(self) -> str:
        return "\n".join(
            [
                self.ice_score.get_description(),
                self.insight_analysis.get_description(),
                self.context_analysis.get_description(),
                self.execution_plan.get_description(),
            ]
        )

    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    def is_high_severity(self) -> bool:
        return self.severity in (Severity.CRITICAL, Severity.HIGH)

    def affects_table(self, table_name: str) -> bool:
        return self.location.table_name == table_name

    def is_structural_difference(self) -> bool:
        return self.type.is_structural

    def is_constraint_difference(self) -> bool:
        return self.type.is_constraint

    def get_migration_sql(self) -> str:
        return self.execution_plan.sql

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "location": self.location.to_dict(),
            "source_environment": self.source_environment.value,
            "target_environment": self.target_environment.value,
            "ice_score": self.ice_score.to_dict(),
            "insight": self.insight_analysis.to_dict(),
            "context": self.context_analysis.to_dict(),
            "execution": self.execution_plan.to_dict(),
            "migration_sql": self.get_migration_sql(),
        }
