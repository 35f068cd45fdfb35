import json

import pytest

from helpers import write_notebook
from nbrunner.context import ActionContexts, ActionInputs
from nbrunner.settings import ActionSettings


@pytest.fixture
def notebook(tmp_path):
    return write_notebook(tmp_path / "analysis.ipynb")


@pytest.fixture
def contexts(tmp_path):
    environ = {
        "RUNNER": json.dumps({"os": "Linux", "tool_cache": "/opt/hostedtoolcache",
                              "temp": str(tmp_path / "runner-temp"), "workspace": str(tmp_path)}),
        "SECRETS": json.dumps({"NOTEABLE_DOMAIN": "app.noteable.io", "NOTEABLE_TOKEN": "t0k3n"}),
        "GITHUB": json.dumps({"workspace": str(tmp_path / "workspace"), "repository": "acme/reports",
                              "event": {"repository": {"full_name": "acme/reports"}}}),
    }
    return ActionContexts.from_environ(environ)


@pytest.fixture
def settings():
    return ActionSettings(install=False, poll_interval_seconds=0.1)


@pytest.fixture
def inputs(notebook):
    return ActionInputs(notebook=str(notebook))
