import logging
import os
import time

import nbformat

from nbrunner.context import FORWARDED_SECRETS


def write_notebook(path, metadata=None):
    nb = nbformat.v4.new_notebook()
    nb.cells.append(nbformat.v4.new_code_cell("print('hello')"))
    nb.metadata.update(metadata or {})
    with open(path, 'w', encoding='utf-8') as f:
        nbformat.write(nb, f)
    return path


class FakeExecute:
    """Stands in for papermill.execute_notebook."""

    def __init__(self, metadata=None, error=None, delay=0.0, log_lines=()):
        self.metadata = metadata
        self.error = error
        self.delay = delay
        self.log_lines = log_lines
        self.calls = []
        self.seen_env = {}

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        self.seen_env = {key: os.environ.get(key) for key in FORWARDED_SECRETS}
        for line in self.log_lines:
            logging.getLogger("papermill").info(line)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        write_notebook(kwargs["output_path"], self.metadata)
