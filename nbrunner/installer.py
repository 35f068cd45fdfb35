"""
Installs the notebook execution stack into the running interpreter.
"""
import logging
import subprocess
import sys
from typing import List, Sequence

from nbrunner.errors import SetupError

logger = logging.getLogger(__name__)


def _run(command: List[str]) -> None:
    logger.info(f"Running: {' '.join(command)}")
    try:
        subprocess.run(command, check=True)
    except subprocess.CalledProcessError as e:
        raise SetupError(f"Command failed with exit code {e.returncode}: {' '.join(command)}") from e
    except OSError as e:
        raise SetupError(f"Could not run {command[0]}: {e}") from e


def install_packages(packages: Sequence[str], install_kernel: bool = True) -> None:
    """
    Install packages with pip and optionally register the local ipykernel.

    Args:
        packages: Requirement specifiers passed to pip
        install_kernel: Run `ipykernel install --user` so local notebooks find a kernel

    Raises:
        SetupError: If any command exits with a non-zero status
    """
    if packages:
        _run([sys.executable, "-m", "pip", "install", *packages])
    else:
        logger.info("No packages to install")

    if install_kernel:
        _run([sys.executable, "-m", "ipykernel", "install", "--user"])
