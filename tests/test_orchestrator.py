# tests/test_orchestrator.py

import asyncio
import time

from helpers import FakeExecute
from nbrunner.notebook.execute_task import ExecuteNotebookTask
from nbrunner.notebook.request import ExecutionRequest
from nbrunner.notebook.watch_task import POLL_END_MARKER, POLL_START_MARKER, WatchProgressTask
from nbrunner.tasks.base import TaskStatus
from nbrunner.tasks.orchestrator import ExecutionOrchestrator


def make_request(tmp_path, notebook):
    return ExecutionRequest(
        input_path=str(notebook),
        output_path=str(tmp_path / "out.ipynb"),
        parameters={"alpha": 1},
        engine_name="papermill"
    )


def test_execution_without_watch(tmp_path, notebook, capsys):
    fake = FakeExecute()
    orchestrator = ExecutionOrchestrator(execute_fn=fake)

    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=False))

    assert result.succeeded, "Run should succeed when execution succeeds."
    assert len(result.task_results) == 1, "Only the execute task should be launched."
    assert result.result_for("watch") is None
    assert POLL_START_MARKER not in capsys.readouterr().out, "No polling output without watch."

    call = fake.calls[0]
    assert call["input_path"] == str(notebook)
    assert call["parameters"] == {"alpha": 1}
    assert call["engine_name"] == "papermill"
    assert call["log_output"] is True
    assert call["report_mode"] is False


def test_execution_failure_is_reported(tmp_path, notebook, capsys):
    orchestrator = ExecutionOrchestrator(execute_fn=FakeExecute(error=RuntimeError("boom")))

    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=True,
                                          poll_interval_seconds=0.1,
                                          progress_source=tmp_path / "progress.out"))

    assert result.status == TaskStatus.FAILED
    assert "boom" in result.error_message
    assert "boom" in capsys.readouterr().err, "First failure should be written to stderr."
    assert result.result_for("watch").status == TaskStatus.COMPLETED, "Watcher should stop after the failure."


def test_completion_signal_set_when_execution_raises(tmp_path, notebook):
    async def scenario():
        completion = asyncio.Event()
        task = ExecuteNotebookTask(make_request(tmp_path, notebook), completion,
                                   execute_fn=FakeExecute(error=RuntimeError("boom")))
        result = await task.run()
        return completion.is_set(), result

    is_set, result = asyncio.run(scenario())

    assert is_set, "Completion signal must be set even though execution failed."
    assert result.status == TaskStatus.FAILED
    assert result.error_message == "boom"


def test_completion_signal_set_when_setup_fails(tmp_path, notebook):
    async def scenario():
        completion = asyncio.Event()
        task = ExecuteNotebookTask(make_request(tmp_path, notebook), completion,
                                   execute_fn=FakeExecute(),
                                   progress_log=tmp_path / "missing-dir" / "progress.out")
        result = await task.run()
        return completion.is_set(), result

    is_set, result = asyncio.run(scenario())

    assert is_set
    assert result.status == TaskStatus.FAILED


def test_watch_polls_during_long_execution(tmp_path, notebook, capsys):
    progress = tmp_path / "progress.out"
    fake = FakeExecute(delay=0.6, log_lines=["Executing cell 1", "Executing cell 2"])
    orchestrator = ExecutionOrchestrator(execute_fn=fake, tail_lines=1)

    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=True,
                                          poll_interval_seconds=0.1, progress_source=progress))

    assert result.succeeded
    watch = result.result_for("watch")
    assert watch.result_data["polls"] >= 1, "Progress log should be polled at least once."

    out = capsys.readouterr().out
    assert POLL_START_MARKER in out and POLL_END_MARKER in out
    assert "Executing cell 2" in out
    assert "Executing cell 1" not in out, "Only the last tail_lines lines should be shown."


def test_watch_stops_within_one_interval(tmp_path, notebook):
    orchestrator = ExecutionOrchestrator(execute_fn=FakeExecute(delay=0.2))

    started = time.monotonic()
    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=True,
                                          poll_interval_seconds=5,
                                          progress_source=tmp_path / "progress.out"))
    elapsed = time.monotonic() - started

    assert result.succeeded
    assert elapsed < 5, "Watcher should not wait out a full interval once execution is done."
    assert result.result_for("watch").result_data["polls"] == 0


def test_watch_tolerates_missing_progress_log(tmp_path, capsys):
    async def scenario():
        completion = asyncio.Event()
        task = WatchProgressTask(completion, tmp_path / "nowhere" / "progress.out",
                                 poll_interval_seconds=0.05)

        async def finish():
            await asyncio.sleep(0.2)
            completion.set()

        results = await asyncio.gather(task.run(), finish())
        return results[0]

    result = asyncio.run(scenario())

    assert result.status == TaskStatus.COMPLETED
    assert result.result_data["polls"] >= 1
    assert POLL_END_MARKER in capsys.readouterr().out


def test_execution_error_reported_before_watch_error(tmp_path, notebook, monkeypatch, capsys):
    def broken_tail(path, count):
        raise RuntimeError("watch broke")

    monkeypatch.setattr("nbrunner.notebook.watch_task.tail_lines", broken_tail)
    orchestrator = ExecutionOrchestrator(execute_fn=FakeExecute(error=RuntimeError("boom"), delay=0.3))

    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=True,
                                          poll_interval_seconds=0.05,
                                          progress_source=tmp_path / "progress.out"))

    assert result.status == TaskStatus.FAILED
    assert result.result_for("watch").error_message == "watch broke", "Watcher should fail first."
    assert result.error_message == "boom", "Execution error should be reported even when the watcher failed first."
    assert "boom" in capsys.readouterr().err


def test_watcher_failure_alone_fails_the_run(tmp_path, notebook, monkeypatch):
    def broken_tail(path, count):
        raise RuntimeError("watch broke")

    monkeypatch.setattr("nbrunner.notebook.watch_task.tail_lines", broken_tail)
    orchestrator = ExecutionOrchestrator(execute_fn=FakeExecute(delay=0.3))

    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=True,
                                          poll_interval_seconds=0.05,
                                          progress_source=tmp_path / "progress.out"))

    assert result.result_for("execute").status == TaskStatus.COMPLETED
    assert result.status == TaskStatus.FAILED
    assert result.error_message == "watch broke"


def test_progress_log_starts_empty_each_run(tmp_path, notebook, capsys):
    progress = tmp_path / "progress.out"
    progress.write_text("output from an earlier run\n")
    fake = FakeExecute(delay=0.3, log_lines=["Executing cell 1"])
    orchestrator = ExecutionOrchestrator(execute_fn=fake, tail_lines=10)

    result = asyncio.run(orchestrator.run(make_request(tmp_path, notebook), enable_watch=True,
                                          poll_interval_seconds=0.1, progress_source=progress))

    assert result.succeeded
    assert "output from an earlier run" not in capsys.readouterr().out, "Stale lines should never be polled."
    content = progress.read_text()
    assert "output from an earlier run" not in content
    assert "Executing cell 1" in content


def test_papermill_gets_a_copy_of_parameters(tmp_path, notebook):
    request = ExecutionRequest(
        input_path=str(notebook),
        output_path=str(tmp_path / "out.ipynb"),
        parameters={"github": {"repository": "acme/reports"}},
        engine_name="papermill"
    )

    def mutating_execute(**kwargs):
        kwargs["parameters"]["github"]["repository"] = "changed"
        kwargs["parameters"]["extra"] = True

    async def scenario():
        task = ExecuteNotebookTask(request, asyncio.Event(), execute_fn=mutating_execute)
        return await task.run()

    result = asyncio.run(scenario())

    assert result.status == TaskStatus.COMPLETED
    assert request.parameters == {"github": {"repository": "acme/reports"}}, "Request should stay as constructed."
