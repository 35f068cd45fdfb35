"""
nb-runner: execute a Jupyter notebook with papermill from a CI workflow.
"""

__version__ = '1.0.0'
