"""
Task executing a single notebook through papermill.
"""
import asyncio
import copy
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import papermill as pm

from nbrunner.errors import ExecutionError
from nbrunner.notebook.request import ExecutionRequest
from nbrunner.tasks.base import BaseTask, TaskConfig, TaskContext, TaskResult

logger = logging.getLogger(__name__)

PAPERMILL_LOGGER = "papermill"
EXECUTE_TASK_NAME = "execute"


class ExecuteNotebookTask(BaseTask):
    """
    Runs papermill for one request and sets the completion signal when done.

    The signal is set from cleanup(), which the task lifecycle runs in a
    finally block, so watchers are released on success, on failure and
    when setup itself fails.
    """

    def __init__(
        self,
        request: ExecutionRequest,
        completion: asyncio.Event,
        execute_fn: Optional[Callable[..., Any]] = None,
        progress_log: Optional[Path] = None
    ):
        super().__init__(TaskConfig(name=EXECUTE_TASK_NAME))
        self.request = request
        self.completion = completion
        self.execute_fn = execute_fn or pm.execute_notebook
        self.progress_log = progress_log
        self._log_handler: Optional[logging.Handler] = None
        self._previous_level: Optional[int] = None

    async def setup(self, context: TaskContext) -> None:
        logger.info(f"Executing notebook {self.request.input_path} -> {self.request.output_path}")
        logger.info(f"Engine: {self.request.engine_name}, report mode: {self.request.report_mode}")
        logger.info(f"Parameters: {', '.join(sorted(self.request.parameters)) or 'none'}")

        if self.progress_log is not None:
            self._attach_progress_log(self.progress_log)

    def _attach_progress_log(self, path: Path) -> None:
        """Mirror papermill's log records into a freshly truncated progress log."""
        pm_logger = logging.getLogger(PAPERMILL_LOGGER)
        handler = logging.FileHandler(path, mode='w', encoding='utf-8')
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.setLevel(logging.INFO)
        pm_logger.addHandler(handler)
        if pm_logger.getEffectiveLevel() > logging.INFO:
            self._previous_level = pm_logger.level
            pm_logger.setLevel(logging.INFO)
        self._log_handler = handler
        logger.debug(f"Writing papermill progress to {path}")

    def _detach_progress_log(self) -> None:
        if self._log_handler is None:
            return
        pm_logger = logging.getLogger(PAPERMILL_LOGGER)
        pm_logger.removeHandler(self._log_handler)
        self._log_handler.close()
        self._log_handler = None
        if self._previous_level is not None:
            pm_logger.setLevel(self._previous_level)
            self._previous_level = None

    async def execute(self, context: TaskContext) -> Dict[str, Any]:
        start_time = datetime.now(timezone.utc)

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._run_papermill)
        except Exception as e:
            raise ExecutionError(str(e)) from e

        duration = datetime.now(timezone.utc) - start_time
        return {
            "notebook": self.request.input_path,
            "output_path": self.request.output_path,
            "duration_seconds": duration.total_seconds(),
        }

    def _run_papermill(self):
        """Run papermill synchronously (for executor)."""
        self.execute_fn(
            input_path=self.request.input_path,
            output_path=self.request.output_path,
            parameters=copy.deepcopy(self.request.parameters),
            log_output=self.request.log_output,
            engine_name=self.request.engine_name,
            report_mode=self.request.report_mode
        )

    async def on_success(self, context: TaskContext, result: TaskResult) -> None:
        logger.info(f"Notebook executed in {result.duration_seconds:.2f}s: {self.request.output_path}")

    async def on_failure(self, context: TaskContext, result: TaskResult) -> None:
        logger.error(f"Notebook execution failed: {result.error_message}")

    async def cleanup(self, context: TaskContext, result: TaskResult) -> None:
        self._detach_progress_log()
        self.completion.set()
