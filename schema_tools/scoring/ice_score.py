"""
ICE Score

Combines the three ICE dimensions into one comparable value:
- Insight: how well the issue and its consequences are understood (0-10)
- Context: how critical the surrounding environment is (0-10)
- Execution: how clear and safe the fix is (0-10)

The combination is multiplicative, so a weak dimension pulls the whole score
down: combined = insight * context * execution / 100, in the range 0.0-10.0.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

HIGH_PRIORITY_THRESHOLD = 6.0
MEDIUM_PRIORITY_THRESHOLD = 3.0


class Priority(Enum):
    """Priority bucket derived from a combined ICE score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_combined(cls, combined: float) -> "Priority":
        """Thresholds: high >= 6.0, medium >= 3.0, low otherwise."""
        if combined >= HIGH_PRIORITY_THRESHOLD:
            return cls.HIGH
        if combined >= MEDIUM_PRIORITY_THRESHOLD:
            return cls.MEDIUM
        return cls.LOW

    @property
    def rank(self) -> int:
        """0 for HIGH, 1 for MEDIUM, 2 for LOW."""
        return list(Priority).index(self)


def _validate_dimension(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"{name} score must be a number, got {value!r}")
    if not math.isfinite(value) or not 0 <= value <= 10:
        raise ValueError(f"{name} score must be between 0 and 10, got {value}")
    return float(value)


@dataclass(frozen=True)
class ICEScore:
    """Immutable Insight/Context/Execution score with derived priority."""

    insight: float
    context: float
    execution: float
    combined: float = field(init=False)
    priority: Priority = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "insight", _validate_dimension("Insight", self.insight))
        object.__setattr__(self, "context", _validate_dimension("Context", self.context))
        object.__setattr__(self, "execution", _validate_dimension("Execution", self.execution))

        combined = self.insight * self.context * self.execution / 100
        object.__setattr__(self, "combined", combined)
        object.__setattr__(self, "priority", Priority.from_combined(combined))

    @classmethod
    def high(cls) -> "ICEScore":
        """Preset for issues needing immediate attention (combined 7.29)."""
        return cls(9, 9, 9)

    @classmethod
    def medium(cls) -> "ICEScore":
        """Preset for issues worth addressing (combined 3.43)."""
        return cls(7, 7, 7)

    @classmethod
    def low(cls) -> "ICEScore":
        """Preset for minor suggestions (combined 1.25)."""
        return cls(5, 5, 5)

    def is_high_priority(self) -> bool:
        return self.priority is Priority.HIGH

    def is_medium_priority(self) -> bool:
        return self.priority is Priority.MEDIUM

    def is_low_priority(self) -> bool:
        return self.priority is Priority.LOW

    def compare_to(self, other: "ICEScore") -> float:
        """Positive when this score is stronger, negative when weaker."""
        return self.combined - other.combined

    def is_stronger_than(self, other: "ICEScore") -> bool:
        return self.combined > other.combined

    def get_description(self) -> str:
        return (
            f"ICE Score: {self.combined:.2f} "
            f"(I:{self.insight:g} C:{self.context:g} E:{self.execution:g}) "
            f"- Priority: {self.priority.value.upper()}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "insight": self.insight,
            "context": self.context,
            "execution": self.execution,
            "combined": round(self.combined, 4),
            "priority": self.priority.value,
        }
