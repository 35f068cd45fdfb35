"""
Exceptions raised by the notebook runner.
"""


class NotebookRunnerError(Exception):
    """Base class for all runner errors."""


class SetupError(NotebookRunnerError):
    """Installation, context parsing or parameter loading failed before execution."""


class ExecutionError(NotebookRunnerError):
    """The notebook execution call failed."""


class ConversionError(NotebookRunnerError):
    """Converting the executed notebook to HTML failed."""
