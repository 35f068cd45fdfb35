"""
Notebook execution, progress watching and output handling.
"""
from .request import ExecutionRequest, build_parameters, load_params
from .execute_task import ExecuteNotebookTask
from .watch_task import WatchProgressTask, POLL_START_MARKER, POLL_END_MARKER
from .conversion import convert_to_html
from .artifacts import read_execution_url, read_metadata_field

__all__ = [
    'ExecutionRequest',
    'build_parameters',
    'load_params',
    'ExecuteNotebookTask',
    'WatchProgressTask',
    'POLL_START_MARKER',
    'POLL_END_MARKER',
    'convert_to_html',
    'read_execution_url',
    'read_metadata_field',
]
