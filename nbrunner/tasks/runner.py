"""
Action runner: the complete notebook run around the execution orchestrator.
"""
import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from nbrunner import github_actions
from nbrunner.context import ActionContexts, ActionInputs
from nbrunner.data_paths import ActionPaths
from nbrunner.errors import ConversionError, SetupError
from nbrunner.installer import install_packages
from nbrunner.notebook.artifacts import read_execution_url
from nbrunner.notebook.conversion import convert_to_html
from nbrunner.notebook.request import ExecutionRequest, build_parameters, load_params
from nbrunner.settings import ActionSettings
from nbrunner.tasks.orchestrator import ExecutionOrchestrator, OrchestrationResult
from nbrunner.utils import patched_environ

logger = logging.getLogger(__name__)


class RunSummary(BaseModel):
    """What a run produced, and its exit code."""
    model_config = ConfigDict(extra='forbid')

    exit_code: int = 0
    error_message: Optional[str] = None
    output_notebook: Optional[str] = None
    html_path: Optional[str] = None
    execution_url: Optional[str] = None
    orchestration: Optional[OrchestrationResult] = None
    outputs: Dict[str, str] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ActionRunner:
    """
    Runs one notebook for a workflow step.

    Setup failures abort before anything executes. Execution failures fail
    the run. HTML conversion is best-effort unless
    settings.fail_on_conversion_error is set. The execution URL is printed
    and the secrets file removed whatever the outcome.
    """

    def __init__(
        self,
        inputs: ActionInputs,
        contexts: ActionContexts,
        settings: Optional[ActionSettings] = None,
        execute_fn: Optional[Callable[..., Any]] = None,
        environ: Optional[Dict[str, str]] = None
    ):
        self.inputs = inputs
        self.contexts = contexts
        self.settings = settings or ActionSettings()
        self.paths = ActionPaths(contexts.runner.temp, contexts.github.workspace)
        self.orchestrator = ExecutionOrchestrator(
            execute_fn=execute_fn,
            tail_lines=self.settings.tail_lines
        )
        self.environ = environ

    def _prepare(self) -> ExecutionRequest:
        """Create directories, write the secrets file, install packages and build the request."""
        try:
            self.paths.ensure_directories()
            self.paths.write_secrets(self.contexts.secrets.to_json())
        except OSError as e:
            raise SetupError(f"Failed to prepare run directories: {e}") from e
        logger.info(f"Paths: {self.paths}")

        params = load_params(self.inputs.params)
        parameters = build_parameters(
            params,
            secrets_path=str(self.paths.secrets_path),
            github=self.contexts.github.as_parameter()
        )

        if self.settings.install:
            github_actions.group("Install notebook dependencies")
            try:
                install_packages(self.settings.packages, install_kernel=self.settings.install_kernel)
            finally:
                github_actions.end_group()
        else:
            logger.info("Skipping package installation")

        return ExecutionRequest(
            input_path=self.inputs.notebook,
            output_path=str(self.paths.output_notebook(self.inputs.notebook)),
            parameters=parameters,
            report_mode=self.inputs.is_report,
            engine_name=self.settings.engine_name,
            log_output=self.settings.log_output
        )

    def _execution_env(self) -> Dict[str, str]:
        env = self.contexts.secrets.forwarded_env()
        if "NOTEABLE_TOKEN" not in env and self.settings.engine_name == "noteable":
            logger.warning("NOTEABLE_TOKEN secret is not set, the noteable engine will likely fail to authenticate")
        return env

    def _convert(self, summary: RunSummary) -> None:
        notebook = self.paths.output_notebook(self.inputs.notebook)
        try:
            summary.html_path = str(convert_to_html(notebook, self.paths.html_output(self.inputs.notebook)))
        except ConversionError as e:
            logger.error(str(e))
            if self.settings.fail_on_conversion_error:
                raise
            github_actions.error(str(e))

    def _report_url(self, summary: RunSummary) -> None:
        notebook = self.paths.output_notebook(self.inputs.notebook)
        try:
            url = read_execution_url(notebook)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read metadata from {notebook}: {e}")
            return
        if url:
            summary.execution_url = url
            print(f"Notebook run can be found at {url}", flush=True)

    def _write_outputs(self, summary: RunSummary) -> None:
        outputs = {
            "notebook": summary.output_notebook,
            "html": summary.html_path,
            "url": summary.execution_url,
        }
        for name, value in outputs.items():
            if value:
                summary.outputs[name] = value
                github_actions.set_output(name, value, self.environ)

    async def run(self) -> RunSummary:
        """
        Run the notebook end to end.

        Returns:
            Summary with exit code 0 on success and 1 on any fatal failure
        """
        summary = RunSummary()

        try:
            try:
                request = self._prepare()
            except SetupError as e:
                logger.error(f"Setup failed: {e}")
                summary.exit_code = github_actions.set_failed(str(e))
                summary.error_message = str(e)
                return summary

            summary.output_notebook = request.output_path

            with patched_environ(self._execution_env()):
                result = await self.orchestrator.run(
                    request,
                    enable_watch=self.inputs.poll,
                    poll_interval_seconds=self.settings.poll_interval_seconds,
                    progress_source=self.paths.progress_log
                )
            summary.orchestration = result

            if not result.succeeded:
                summary.exit_code = github_actions.set_failed(result.error_message or "Notebook execution failed")
                summary.error_message = result.error_message
            else:
                try:
                    self._convert(summary)
                except ConversionError as e:
                    summary.exit_code = github_actions.set_failed(str(e))
                    summary.error_message = str(e)

            self._report_url(summary)
            self._write_outputs(summary)

        finally:
            if not self.settings.keep_secrets_file and self.paths.remove_secrets():
                logger.info(f"Removed secrets file {self.paths.secrets_path}")

        return summary
