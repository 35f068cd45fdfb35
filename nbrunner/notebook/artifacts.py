"""
Reads fields out of the executed notebook.
"""
import logging
from pathlib import Path
from typing import Any, Optional

import nbformat

from nbrunner.utils import find_nested

logger = logging.getLogger(__name__)

EXECUTION_URL_KEY = "executed_notebook_url"


def read_metadata_field(notebook_path: Path, *keys: str) -> Optional[Any]:
    """Return a nested notebook metadata field, or None when the notebook or field is absent."""
    notebook_path = Path(notebook_path)
    if not notebook_path.exists():
        logger.warning(f"Output notebook not found: {notebook_path}")
        return None

    with open(notebook_path, 'r', encoding='utf-8') as f:
        nb = nbformat.read(f, as_version=4)

    return find_nested(nb.metadata, keys)


def read_execution_url(notebook_path: Path) -> Optional[str]:
    url = read_metadata_field(notebook_path, EXECUTION_URL_KEY)
    if not url:
        logger.info(f"No {EXECUTION_URL_KEY} in notebook metadata")
        return None
    return str(url)
