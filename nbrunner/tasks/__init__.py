"""
nb-runner task system.

Main Components:
- BaseTask: base class with lifecycle management and Pydantic models
- ExecutionOrchestrator: runs the execute task and the optional watch task
- ActionRunner: end-to-end action flow around the orchestrator

Usage:
    from nbrunner.tasks import BaseTask, TaskContext
    from nbrunner.tasks.orchestrator import ExecutionOrchestrator
    from nbrunner.tasks.runner import ActionRunner

The orchestrator and runner are imported from their modules because they
depend on nbrunner.notebook, which itself builds on the base classes.
"""

from .base import (
    BaseTask,
    TaskConfig,
    TaskContext,
    TaskResult,
    TaskStatus
)

__all__ = [
    'BaseTask',
    'TaskConfig',
    'TaskContext',
    'TaskResult',
    'TaskStatus',
]
