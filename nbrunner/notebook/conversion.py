"""
HTML rendering of executed notebooks.
"""
import logging
from pathlib import Path
from typing import Optional

import nbconvert
import nbformat

from nbrunner.errors import ConversionError

logger = logging.getLogger(__name__)


def convert_to_html(notebook_path: Path, html_path: Optional[Path] = None) -> Path:
    """
    Render an executed notebook to HTML.

    Args:
        notebook_path: Notebook to render
        html_path: Destination, defaults to the notebook path with an .html suffix

    Returns:
        Path of the written HTML file

    Raises:
        ConversionError: If the notebook cannot be read, rendered or written
    """
    notebook_path = Path(notebook_path)
    html_path = Path(html_path) if html_path else notebook_path.with_suffix(".html")

    try:
        with open(notebook_path, 'r', encoding='utf-8') as f:
            nb = nbformat.read(f, as_version=4)

        html_exporter = nbconvert.HTMLExporter()
        body, _ = html_exporter.from_notebook_node(nb)

        html_path.parent.mkdir(parents=True, exist_ok=True)
        with open(html_path, 'w', encoding='utf-8') as f:
            f.write(body)
    except Exception as e:
        raise ConversionError(f"Failed to convert {notebook_path} to HTML: {e}") from e

    logger.info(f"Notebook converted to HTML and saved to {html_path}")
    return html_path
