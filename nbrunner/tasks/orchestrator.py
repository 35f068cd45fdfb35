"""
Execution orchestrator: one execute task plus an optional watch task.
"""
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nbrunner.notebook.execute_task import EXECUTE_TASK_NAME, ExecuteNotebookTask
from nbrunner.notebook.request import ExecutionRequest
from nbrunner.notebook.watch_task import WatchProgressTask
from nbrunner.tasks.base import BaseTask, TaskContext, TaskResult, TaskStatus

logger = logging.getLogger(__name__)


class OrchestrationResult(BaseModel):
    """Outcome of one orchestrated run."""
    model_config = ConfigDict(extra='forbid')

    status: TaskStatus
    error_message: Optional[str] = None
    task_results: List[TaskResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def result_for(self, task_name: str) -> Optional[TaskResult]:
        for result in self.task_results:
            if result.task_name == task_name:
                return result
        return None


class ExecutionOrchestrator:
    """
    Runs a notebook execution and, when asked, watches its progress log.

    Both tasks share a one-shot completion event. The execute task sets it
    when it finishes; the watch task checks it at every wake-up and
    returns, so it never outlives the execution by more than one poll
    interval.
    """

    def __init__(
        self,
        execute_fn: Optional[Callable[..., Any]] = None,
        tail_lines: int = 15
    ):
        self.execute_fn = execute_fn
        self.tail_lines = tail_lines

    def _create_tasks(
        self,
        request: ExecutionRequest,
        completion: asyncio.Event,
        enable_watch: bool,
        poll_interval_seconds: float,
        progress_source: Optional[Path]
    ) -> List[BaseTask]:
        tasks: List[BaseTask] = [
            ExecuteNotebookTask(
                request,
                completion,
                execute_fn=self.execute_fn,
                progress_log=progress_source
            )
        ]
        if enable_watch:
            if progress_source is None:
                raise ValueError("progress_source is required when watching is enabled")
            tasks.append(
                WatchProgressTask(
                    completion,
                    progress_source,
                    poll_interval_seconds=poll_interval_seconds,
                    tail_lines=self.tail_lines
                )
            )
        return tasks

    async def run(
        self,
        request: ExecutionRequest,
        enable_watch: bool = False,
        poll_interval_seconds: float = 15,
        progress_source: Optional[Path] = None
    ) -> OrchestrationResult:
        """
        Execute the request and wait for every launched task.

        Args:
            request: Notebook execution request
            enable_watch: Launch the watch task alongside the execution
            poll_interval_seconds: Seconds between progress polls
            progress_source: Progress log written during execution and tailed by the watcher

        Returns:
            Completed result if every task completed, otherwise a failed
            result carrying the execution error, or the watcher's error
            when only the watcher failed
        """
        completion = asyncio.Event()
        tasks = self._create_tasks(request, completion, enable_watch, poll_interval_seconds, progress_source)
        logger.info(f"Starting {len(tasks)} task(s): {', '.join(t.config.name for t in tasks)}")

        running = [
            asyncio.create_task(task.run(TaskContext(task_name=task.config.name)))
            for task in tasks
        ]

        results: List[TaskResult] = []
        for next_done in asyncio.as_completed(running):
            results.append(await next_done)

        failures = [r for r in results if r.failed]
        if not failures:
            return OrchestrationResult(status=TaskStatus.COMPLETED, task_results=results)

        # The execution error is reported first, whichever task finished first.
        failures.sort(key=lambda r: r.task_name != EXECUTE_TASK_NAME)
        first = failures[0]
        print(first.error_message, file=sys.stderr, flush=True)
        for other in failures[1:]:
            logger.warning(f"Task {other.task_name} also failed: {other.error_message}")

        return OrchestrationResult(
            status=TaskStatus.FAILED,
            error_message=first.error_message,
            task_results=results
        )
