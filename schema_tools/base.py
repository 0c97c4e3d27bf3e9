"""
Tool Base Interface

This module defines the common interface shared by the schema inspection tools.
Every tool returns a ToolResult envelope so that callers (CLI, tool-call adapters)
get a consistent shape for success and error outcomes.
"""

import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from loguru import logger

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class ToolStatus(Enum):
    """Tool execution status values."""

    SUCCESS = "success"
    ERROR = "error"


class ToolErrorCode(Enum):
    """Standard tool error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"


class ConfigurationError(Exception):
    """Raised when the environment-to-database mapping is missing or incomplete."""


@dataclass
class ToolMetrics:
    """Tool execution metrics."""

    processing_time_ms: int
    tables_processed: int | None = None
    differences_found: int | None = None
    additional_metrics: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class ToolEvidence:
    """Evidence supporting a tool result."""

    location: str  # database id, table or table.column
    content: str
    evidence_type: str  # 'comparison', 'severity', 'relationship', ...
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class ToolResult(Generic[OutputT]):
    """Standard structure for tool execution results."""

    status: ToolStatus
    output: OutputT | None = None
    error_code: ToolErrorCode | None = None
    error_message: str | None = None
    evidence: list[ToolEvidence] = field(default_factory=list)
    metrics: ToolMetrics | None = None
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate result data."""
        if self.status == ToolStatus.ERROR and not self.error_code:
            raise ValueError("error_code is required when status is ERROR")

        if self.status == ToolStatus.SUCCESS and self.output is None:
            logger.warning("Status is SUCCESS but no output provided")

    @property
    def is_success(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Outputs exposing their own ``to_dict`` are serialized through it.
        """
        output: Any = self.output
        if output is not None and hasattr(output, "to_dict"):
            output = output.to_dict()
        return {
            "status": self.status.value,
            "output": output,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": self.error_message,
            "evidence": [item.to_dict() for item in self.evidence],
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "warnings": list(self.warnings),
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    @classmethod
    def success(
        cls,
        output: OutputT,
        evidence: list[ToolEvidence] | None = None,
        metrics: ToolMetrics | None = None,
        warnings: list[str] | None = None,
    ) -> "ToolResult[OutputT]":
        """Create success result."""
        return cls(
            status=ToolStatus.SUCCESS,
            output=output,
            evidence=evidence or [],
            metrics=metrics,
            warnings=warnings or [],
        )

    @classmethod
    def error(
        cls,
        error_code: ToolErrorCode,
        error_message: str,
        evidence: list[ToolEvidence] | None = None,
        metrics: ToolMetrics | None = None,
    ) -> "ToolResult[OutputT]":
        """Create error result."""
        return cls(
            status=ToolStatus.ERROR,
            error_code=error_code,
            error_message=error_message,
            evidence=evidence or [],
            metrics=metrics,
        )


class BaseTool(ABC, Generic[InputT, OutputT]):
    """
    Base class for schema inspection tools.

    Subclasses implement ``execute`` and may raise; ``run`` turns any exception
    into an error ToolResult with a classified error code.
    """

    def __init__(self, tool_name: str) -> None:
        """Initialize the tool."""
        self.tool_name = tool_name
        self.tool_id = f"{tool_name}_{uuid.uuid4().hex[:8]}"
        self.start_time: datetime | None = None

    @abstractmethod
    def execute(self, input_data: InputT) -> ToolResult[OutputT]:
        """
        Main method for tool execution.

        Args:
            input_data: Input data required for tool execution

        Returns:
            Tool execution result
        """

    def _start_execution(self) -> None:
        """Record execution start time."""
        self.start_time = datetime.now(UTC)

    def _end_execution(self) -> int:
        """Return elapsed processing time in milliseconds."""
        if not self.start_time:
            return 0

        duration = (datetime.now(UTC) - self.start_time).total_seconds() * 1000
        return int(duration)

    def _create_metrics(self, **kwargs: Any) -> ToolMetrics:
        """Create metrics object."""
        return ToolMetrics(processing_time_ms=self._end_execution(), **kwargs)

    def _log_execution_start(self, input_data: InputT) -> None:
        """Log execution start."""
        logger.info(f"Tool {self.tool_name} execution started: {self.tool_id}")
        logger.debug(f"Input data: {input_data}")

    def _log_execution_success(self, result: ToolResult[OutputT]) -> None:
        """Log successful execution."""
        logger.info(f"Tool {self.tool_name} execution finished: {self.tool_id}")
        if result.metrics:
            logger.debug(f"Processing time: {result.metrics.processing_time_ms}ms")

    def _log_execution_error(self, error: Exception, error_code: ToolErrorCode) -> None:
        """Log execution error."""
        logger.error(f"Tool {self.tool_name} execution failed: {self.tool_id}")
        logger.error(f"Error code: {error_code.value}")
        logger.error(f"Error message: {error}")

    def run(self, input_data: InputT) -> ToolResult[OutputT]:
        """
        Wrapper method for tool execution.

        Handles logging, error classification and metrics collection.

        Args:
            input_data: Input data required for tool execution

        Returns:
            Tool execution result
        """
        try:
            self._start_execution()
            self._log_execution_start(input_data)

            result = self.execute(input_data)

            if not result.metrics:
                result.metrics = self._create_metrics()

            self._log_execution_success(result)
            return result

        except Exception as e:
            error_code = self._classify_error(e)
            error_result: ToolResult[OutputT] = ToolResult.error(
                error_code=error_code,
                error_message=str(e),
                metrics=self._create_metrics(),
            )

            self._log_execution_error(e, error_code)
            return error_result

    def _classify_error(self, error: Exception) -> ToolErrorCode:
        """Classify error into standard error codes."""
        if isinstance(error, ConfigurationError):
            return ToolErrorCode.CONFIGURATION_ERROR
        elif isinstance(error, ValueError | TypeError | KeyError):
            return ToolErrorCode.INVALID_INPUT
        elif isinstance(error, FileNotFoundError):
            return ToolErrorCode.SNAPSHOT_NOT_FOUND
        elif isinstance(error, PermissionError):
            return ToolErrorCode.PERMISSION_ERROR
        else:
            return ToolErrorCode.PROCESSING_ERROR

