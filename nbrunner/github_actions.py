"""
Workflow commands understood by the GitHub Actions runner.
"""
import logging
import os
import uuid
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def error(message: str) -> None:
    """Emit an error annotation."""
    print(f"::error::{_escape_data(message)}", flush=True)


def set_failed(message: str) -> int:
    """Emit an error annotation and return the failing exit code."""
    error(message)
    return 1


def set_output(name: str, value: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Append a step output to the $GITHUB_OUTPUT file.

    Args:
        name: Output name as declared in action.yml
        value: Output value, may span several lines
        environ: Environment to read GITHUB_OUTPUT from, defaults to os.environ

    Returns:
        True if the output was written, False outside of a workflow run
    """
    environ = os.environ if environ is None else environ
    output_file = environ.get("GITHUB_OUTPUT")
    if not output_file:
        logger.debug(f"GITHUB_OUTPUT not set, skipping output {name}")
        return False

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(output_file, 'a', encoding='utf-8') as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


def group(title: str) -> None:
    print(f"::group::{title}", flush=True)


def end_group() -> None:
    print("::endgroup::", flush=True)
