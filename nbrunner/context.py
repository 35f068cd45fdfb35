"""
Typed views of the configuration a workflow hands to the action.

The runner, secrets and github contexts arrive as JSON blobs in the
RUNNER, SECRETS and GITHUB environment variables; action inputs arrive as
INPUT_* variables. They are parsed and validated once here and passed
explicitly from then on.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nbrunner.errors import SetupError
from nbrunner.utils import find_nested, parse_flag

logger = logging.getLogger(__name__)

FORWARDED_SECRETS = ("NOTEABLE_DOMAIN", "NOTEABLE_TOKEN")


class RunnerContext(BaseModel):
    """The `runner` context of the workflow job."""
    model_config = ConfigDict(extra='allow')

    os: str = Field(default="", description="Runner operating system")
    tool_cache: str = Field(default="", description="Tool cache directory")
    temp: str = Field(..., description="Temporary directory, emptied after each job")
    workspace: str = Field(default="", description="Runner workspace directory")


class GithubContext(BaseModel):
    """The `github` context; unknown fields are kept and forwarded to the notebook."""
    model_config = ConfigDict(extra='allow')

    workspace: str = Field(..., description="Checkout directory of the repository")

    def get_field(self, *keys: str) -> Optional[Any]:
        """Look up a nested field, e.g. get_field("event", "repository", "full_name")."""
        return find_nested(self.model_dump(), keys)

    def as_parameter(self) -> Dict[str, Any]:
        return self.model_dump()


class SecretsContext(BaseModel):
    """Repository secrets exposed to the job."""
    model_config = ConfigDict(extra='forbid')

    entries: Dict[str, Any] = Field(default_factory=dict)

    def forwarded_env(self) -> Dict[str, str]:
        """Environment variables the noteable engine reads, for the secrets that are set."""
        env = {}
        for key in FORWARDED_SECRETS:
            value = self.entries.get(key)
            if value is not None:
                env[key] = str(value)
        return env

    def to_json(self) -> str:
        return json.dumps(self.entries)


class ActionInputs(BaseModel):
    """Inputs declared in action.yml."""
    model_config = ConfigDict(extra='forbid')

    notebook: str = Field(..., description="Notebook to execute")
    params: Optional[str] = Field(None, description="JSON or YAML parameters file")
    is_report: bool = Field(default=False, description="Run papermill in report mode")
    poll: bool = Field(default=False, description="Poll the progress log while executing")

    @field_validator('notebook')
    @classmethod
    def validate_notebook(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Input required and not supplied: notebook")
        return v

    @field_validator('params')
    @classmethod
    def validate_params(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator('is_report', 'poll', mode='before')
    @classmethod
    def validate_flag(cls, v: Any) -> bool:
        return parse_flag(v)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], **overrides: Any) -> "ActionInputs":
        """Read INPUT_* variables; non-None overrides (e.g. CLI flags) win."""
        values = {
            "notebook": environ.get("INPUT_NOTEBOOK", ""),
            "params": environ.get("INPUT_PARAMS"),
            "is_report": environ.get("INPUT_ISREPORT", ""),
            "poll": environ.get("INPUT_POLL", ""),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise SetupError(f"Invalid action inputs: {e}") from e


class ActionContexts(BaseModel):
    """The three workflow contexts, parsed together."""
    model_config = ConfigDict(extra='forbid')

    runner: RunnerContext
    secrets: SecretsContext
    github: GithubContext

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "ActionContexts":
        runner = _parse_blob(environ, "RUNNER")
        secrets = _parse_blob(environ, "SECRETS")
        github = _parse_blob(environ, "GITHUB")
        try:
            return cls(
                runner=RunnerContext(**runner),
                secrets=SecretsContext(entries=secrets),
                github=GithubContext(**github),
            )
        except ValidationError as e:
            raise SetupError(f"Invalid workflow context: {e}") from e


def _parse_blob(environ: Mapping[str, str], name: str) -> Dict[str, Any]:
    raw = environ.get(name)
    if not raw:
        raise SetupError(f"Environment variable {name} is not set; pass it with `env: {name}: ${{{{ toJson({name.lower()}) }}}}`")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SetupError(f"Failed to parse {name} context: {e}") from e
    if not isinstance(data, dict):
        raise SetupError(f"{name} context must be a JSON object")
    logger.debug(f"Parsed {name} context with {len(data)} keys")
    return data
