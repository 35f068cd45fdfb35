"""
Task printing the tail of the progress log until execution completes.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict

from nbrunner.tasks.base import BaseTask, TaskConfig, TaskContext
from nbrunner.utils import tail_lines

logger = logging.getLogger(__name__)

POLL_START_MARKER = "***Polling latest output status result***"
POLL_END_MARKER = "***End of polling latest output status result***"


class WatchProgressTask(BaseTask):
    """
    Polls the progress log every poll_interval_seconds.

    Each wake-up either observes the completion signal and returns, or
    prints the last tail_lines lines of the log between markers. Reading
    the log is best-effort: a missing or unreadable file is logged and the
    loop keeps going.
    """

    def __init__(
        self,
        completion: asyncio.Event,
        progress_source: Path,
        poll_interval_seconds: float = 15,
        tail_lines: int = 15
    ):
        super().__init__(TaskConfig(name="watch"))
        self.completion = completion
        self.progress_source = progress_source
        self.poll_interval_seconds = poll_interval_seconds
        self.tail_lines = tail_lines

    async def execute(self, context: TaskContext) -> Dict[str, Any]:
        polls = 0
        while not self.completion.is_set():
            try:
                await asyncio.wait_for(self.completion.wait(), timeout=self.poll_interval_seconds)
            except asyncio.TimeoutError:
                self.emit_progress()
                polls += 1

        logger.debug(f"Execution finished, stopped watching after {polls} poll(s)")
        return {"polls": polls, "progress_source": str(self.progress_source)}

    def emit_progress(self) -> None:
        print(POLL_START_MARKER, flush=True)
        try:
            for line in tail_lines(str(self.progress_source), self.tail_lines):
                print(line)
        except OSError as e:
            logger.warning(f"Could not read progress log {self.progress_source}: {e}")
        print(POLL_END_MARKER, flush=True)
