# tests/test_installer.py

import subprocess
import sys

import pytest

from nbrunner import installer
from nbrunner.errors import SetupError


class RecordingRun:
    def __init__(self, fail_on=None):
        self.commands = []
        self.fail_on = fail_on

    def __call__(self, command, check=False):
        self.commands.append(command)
        if self.fail_on and self.fail_on in command:
            raise subprocess.CalledProcessError(2, command)
        return subprocess.CompletedProcess(command, 0)


def test_install_packages_and_kernel(monkeypatch):
    run = RecordingRun()
    monkeypatch.setattr(installer.subprocess, "run", run)

    installer.install_packages(["papermill>=2.4.0", "ipykernel"])

    assert run.commands == [
        [sys.executable, "-m", "pip", "install", "papermill>=2.4.0", "ipykernel"],
        [sys.executable, "-m", "ipykernel", "install", "--user"],
    ]


def test_install_without_kernel_or_packages(monkeypatch):
    run = RecordingRun()
    monkeypatch.setattr(installer.subprocess, "run", run)

    installer.install_packages([], install_kernel=False)

    assert run.commands == []


def test_install_failure_raises_setup_error(monkeypatch):
    run = RecordingRun(fail_on="pip")
    monkeypatch.setattr(installer.subprocess, "run", run)

    with pytest.raises(SetupError) as excinfo:
        installer.install_packages(["papermill"])

    assert "exit code 2" in str(excinfo.value)
    assert len(run.commands) == 1, "Kernel install should not run after pip fails."
