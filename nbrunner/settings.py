"""
Runner settings with defaults, optional YAML overrides and NB_RUNNER_* environment variables.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nbrunner.errors import SetupError
from nbrunner.utils import load_dict_from_yaml

logger = logging.getLogger(__name__)

DEFAULT_PACKAGES = [
    "papermill-origami",
    "papermill>=2.4.0",
    "nbformat>=5.4.0",
    "nbconvert>=7.0.0",
    "ipykernel",
]

ENV_PREFIX = "NB_RUNNER_"


class ActionSettings(BaseModel):
    """Tunables that are not part of the action inputs."""
    model_config = ConfigDict(extra='forbid')

    poll_interval_seconds: float = Field(default=15, description="Seconds between progress polls")
    tail_lines: int = Field(default=15, description="Progress log lines shown per poll")
    engine_name: str = Field(default="noteable", description="papermill engine")
    log_output: bool = Field(default=True, description="Forward cell output to the papermill logger")
    install: bool = Field(default=True, description="Install packages before executing")
    packages: List[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    install_kernel: bool = Field(default=True, description="Register the local ipykernel")
    fail_on_conversion_error: bool = Field(default=False)
    keep_secrets_file: bool = Field(default=False)

    @field_validator('poll_interval_seconds')
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        return v

    @field_validator('tail_lines')
    @classmethod
    def validate_tail_lines(cls, v: int) -> int:
        if v < 1:
            raise ValueError("tail_lines must be at least 1")
        return v

    @field_validator('packages', mode='before')
    @classmethod
    def split_packages(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.split()
        return v

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any
    ) -> "ActionSettings":
        """
        Build settings from every source.

        Args:
            config_path: Optional YAML file with setting names as keys
            environ: Environment scanned for NB_RUNNER_<SETTING> variables
            **overrides: Explicit values (CLI flags); None values are ignored

        Returns:
            Validated settings
        """
        values: Dict[str, Any] = {}

        if config_path:
            try:
                data = load_dict_from_yaml(config_path) or {}
            except (OSError, yaml.YAMLError) as e:
                raise SetupError(f"Failed to load settings from {config_path}: {e}") from e
            if not isinstance(data, dict):
                raise SetupError(f"Settings file {config_path} must contain a mapping")
            values.update(data)
            logger.info(f"Loaded settings from: {config_path}")

        for name in cls.model_fields:
            env_value = (environ or {}).get(f"{ENV_PREFIX}{name.upper()}")
            if env_value is not None:
                values[name] = env_value

        values.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls(**values)
        except ValidationError as e:
            raise SetupError(f"Invalid settings: {e}") from e
