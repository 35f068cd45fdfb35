# tests/test_context.py

import json

import pytest

from nbrunner.context import ActionContexts, ActionInputs, SecretsContext
from nbrunner.errors import SetupError


def environ_with(**overrides):
    environ = {
        "RUNNER": json.dumps({"os": "Linux", "temp": "/tmp/runner"}),
        "SECRETS": json.dumps({}),
        "GITHUB": json.dumps({"workspace": "/w", "event": {"pull_request": {"number": 7}}}),
    }
    environ.update(overrides)
    return environ


def test_contexts_parsed_from_environment():
    contexts = ActionContexts.from_environ(environ_with())

    assert contexts.runner.temp == "/tmp/runner"
    assert contexts.runner.os == "Linux"
    assert contexts.github.workspace == "/w"
    assert contexts.github.as_parameter()["event"] == {"pull_request": {"number": 7}}


def test_missing_or_malformed_context_is_fatal():
    environ = environ_with()
    del environ["SECRETS"]
    with pytest.raises(SetupError):
        ActionContexts.from_environ(environ)

    with pytest.raises(SetupError):
        ActionContexts.from_environ(environ_with(RUNNER="{not json"))

    with pytest.raises(SetupError):
        ActionContexts.from_environ(environ_with(GITHUB=json.dumps({"repository": "acme/x"})))

    with pytest.raises(SetupError):
        ActionContexts.from_environ(environ_with(SECRETS=json.dumps(["a"])))


def test_github_get_field():
    github = ActionContexts.from_environ(environ_with()).github

    assert github.get_field("event", "pull_request", "number") == 7
    assert github.get_field("event", "issue", "number") is None
    assert github.get_field("workspace", "deeper") is None


def test_secrets_forwarded_env_only_includes_present_keys():
    secrets = SecretsContext(entries={"NOTEABLE_TOKEN": "abc", "OTHER": "x"})

    assert secrets.forwarded_env() == {"NOTEABLE_TOKEN": "abc"}
    assert SecretsContext().forwarded_env() == {}


def test_inputs_from_environment():
    inputs = ActionInputs.from_environ({
        "INPUT_NOTEBOOK": " notebooks/report.ipynb ",
        "INPUT_PARAMS": "",
        "INPUT_ISREPORT": "true",
        "INPUT_POLL": "0",
    })

    assert inputs.notebook == "notebooks/report.ipynb"
    assert inputs.params is None
    assert inputs.is_report is True
    assert inputs.poll is False


def test_inputs_overrides_win():
    inputs = ActionInputs.from_environ({"INPUT_NOTEBOOK": "a.ipynb", "INPUT_POLL": "false"},
                                       notebook="b.ipynb", poll=True, params=None)

    assert inputs.notebook == "b.ipynb"
    assert inputs.poll is True


def test_inputs_validation():
    with pytest.raises(SetupError):
        ActionInputs.from_environ({})

    with pytest.raises(SetupError):
        ActionInputs.from_environ({"INPUT_NOTEBOOK": "a.ipynb", "INPUT_POLL": "sometimes"})
