"""
Task base module with Pydantic models and lifecycle management.
"""
import logging
import traceback
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
import uuid

from pydantic import BaseModel, Field, ConfigDict

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    """Task execution status."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskConfig(BaseModel):
    """Task configuration."""
    model_config = ConfigDict(extra='forbid')

    name: str = Field(..., description="Task name")


class TaskContext(BaseModel):
    """Runtime context for task execution."""
    model_config = ConfigDict(extra='forbid')

    execution_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    task_name: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TaskResult(BaseModel):
    """Result of task execution."""
    model_config = ConfigDict(extra='forbid')

    execution_id: str
    task_name: str
    status: TaskStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    result_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    error_traceback: Optional[str] = None

    def calculate_duration(self) -> None:
        """Calculate task duration."""
        if self.completed_at and self.started_at:
            self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    @property
    def failed(self) -> bool:
        return self.status == TaskStatus.FAILED


class BaseTask(ABC):
    """Base task with lifecycle management."""

    def __init__(self, config: TaskConfig):
        self.config = config

    @abstractmethod
    async def execute(self, context: TaskContext) -> Dict[str, Any]:
        """
        Execute the task logic.

        Args:
            context: Task execution context

        Returns:
            Dictionary containing task results
        """
        pass

    async def validate_prerequisites(self) -> bool:
        """
        Validate task prerequisites before execution.
        Override in subclasses for custom validation.

        Returns:
            True if prerequisites are met, False otherwise
        """
        return True

    async def setup(self, context: TaskContext) -> None:
        """
        Setup task before execution.
        Override in subclasses for custom setup.

        Args:
            context: Task execution context
        """
        pass

    async def cleanup(self, context: TaskContext, result: TaskResult) -> None:
        """
        Cleanup after task execution, whatever its outcome.
        Override in subclasses for custom cleanup.

        Args:
            context: Task execution context
            result: Task execution result
        """
        pass

    async def on_success(self, context: TaskContext, result: TaskResult) -> None:
        """
        Hook called on successful task completion.

        Args:
            context: Task execution context
            result: Task execution result
        """
        pass

    async def on_failure(self, context: TaskContext, result: TaskResult) -> None:
        """
        Hook called on task failure.

        Args:
            context: Task execution context
            result: Task execution result
        """
        pass

    async def run(self, context: Optional[TaskContext] = None) -> TaskResult:
        """
        Run the task with complete lifecycle management.

        Exceptions raised by the task are recorded on the result rather
        than propagated.

        Args:
            context: Optional task context, will be created if not provided

        Returns:
            Task execution result
        """
        if context is None:
            context = TaskContext(task_name=self.config.name)

        result = TaskResult(
            execution_id=context.execution_id,
            task_name=self.config.name,
            status=TaskStatus.RUNNING,
            started_at=context.started_at
        )

        try:
            if not await self.validate_prerequisites():
                raise RuntimeError("Task prerequisites not met")

            await self.setup(context)

            result_data = await self.execute(context)

            result.status = TaskStatus.COMPLETED
            result.result_data = result_data
            result.completed_at = datetime.now(timezone.utc)
            result.calculate_duration()

            await self.on_success(context, result)

        except Exception as e:
            logger.error(f"Task {self.config.name} failed: {str(e)}")
            result.status = TaskStatus.FAILED
            result.error_message = str(e)
            result.completed_at = datetime.now(timezone.utc)
            result.calculate_duration()
            result.error_traceback = traceback.format_exc()

            await self.on_failure(context, result)

        finally:
            await self.cleanup(context, result)

        return result
