"""
Filesystem layout used by a run.

Everything lives under the runner's temp directory except the progress
log, which is written into the repository workspace so later workflow
steps can upload it.
"""
import os
from pathlib import Path

OUTPUT_DIR_NAME = "nb-runner"
SECRETS_FILE_NAME = "secrets.json"
PROGRESS_LOG_NAME = "papermill-nb-runner.out"


class ActionPaths:
    """Paths derived from the runner and github contexts."""

    def __init__(self, temp_dir: str, workspace: str):
        """
        Initialize action paths.

        Args:
            temp_dir: Runner temp directory (runner.temp)
            workspace: Repository checkout directory (github.workspace)
        """
        self._temp_dir = Path(temp_dir).resolve()
        self._workspace = Path(workspace).resolve()

    def ensure_directories(self):
        """Ensure all required directories exist."""
        for dir_path in (self.temp_dir, self.output_dir, self.workspace):
            dir_path.mkdir(parents=True, exist_ok=True)

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    @property
    def workspace(self) -> Path:
        return self._workspace

    @property
    def output_dir(self) -> Path:
        """Directory receiving the executed notebook and its HTML rendering."""
        return self._temp_dir / OUTPUT_DIR_NAME

    @property
    def secrets_path(self) -> Path:
        return self._temp_dir / SECRETS_FILE_NAME

    @property
    def progress_log(self) -> Path:
        return self._workspace / PROGRESS_LOG_NAME

    def output_notebook(self, notebook: str) -> Path:
        """Executed copy of notebook, keeping its file name."""
        return self.output_dir / os.path.basename(notebook)

    def html_output(self, notebook: str) -> Path:
        return self.output_notebook(notebook).with_suffix(".html")

    def write_secrets(self, payload: str) -> Path:
        """Write the secrets file readable only by the current user."""
        fd = os.open(self.secrets_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            f.write(payload)
        return self.secrets_path

    def remove_secrets(self) -> bool:
        if self.secrets_path.exists():
            self.secrets_path.unlink()
            return True
        return False

    def __repr__(self) -> str:
        return f"ActionPaths(temp_dir='{self._temp_dir}', workspace='{self._workspace}')"

