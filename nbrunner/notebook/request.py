"""
The execution request handed to papermill.
"""
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from nbrunner.errors import SetupError
from nbrunner.utils import load_dict_from_file

logger = logging.getLogger(__name__)


class ExecutionRequest(BaseModel):
    """
    Immutable description of one notebook execution.

    Freezing covers the fields, not the contents of `parameters`; consumers
    hand a deep copy to papermill so the request stays as constructed.
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    input_path: str = Field(..., description="Notebook to execute")
    output_path: str = Field(..., description="Where papermill writes the executed notebook")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Parameters injected into the notebook")
    report_mode: bool = Field(default=False, description="Hide input cells in the output notebook")
    engine_name: str = Field(default="noteable", description="papermill engine")
    log_output: bool = Field(default=True, description="Log cell output while executing")


def build_parameters(
    user_params: Mapping[str, Any],
    secrets_path: str,
    github: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    Merge user parameters over the injected ones.

    Injected keys come first so a notebook can override `secretsPath` or
    `github` by declaring them in its own parameters file.
    """
    injected = {"secretsPath": secrets_path, "github": dict(github)}
    return {**injected, **user_params}


def load_params(params_path: Optional[str]) -> Dict[str, Any]:
    """
    Load user parameters from a JSON or YAML file.

    A missing input or a path that does not exist yields an empty map.

    Raises:
        SetupError: If the file exists but is not a valid mapping
    """
    if not params_path:
        return {}

    if not os.path.exists(params_path):
        logger.warning(f"Parameters file not found, running without parameters: {params_path}")
        return {}

    try:
        params = load_dict_from_file(params_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise SetupError(f"Failed to load parameters from {params_path}: {e}") from e

    logger.info(f"Loaded {len(params)} parameter(s) from {params_path}")
    logger.debug(f"Parameters: {json.dumps(params, indent=2, default=str)}")
    return params
