#!/usr/bin/env python3
"""
nb-runner CLI - Main entry point for running notebooks from a workflow
"""
import asyncio
import argparse
import json
import os
import sys
from dotenv import load_dotenv

from nbrunner import github_actions
from nbrunner.context import ActionContexts, ActionInputs
from nbrunner.errors import ConversionError, SetupError
from nbrunner.notebook.conversion import convert_to_html
from nbrunner.settings import ActionSettings
from nbrunner.tasks.runner import ActionRunner
from nbrunner.utils import parse_flag
import logging
import structlog

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def configure_structlog(level: int = logging.INFO):
    """Filter the noteable engine's structlog output at the given level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


configure_structlog()


def flag(value: str) -> bool:
    try:
        return parse_flag(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Execute a Jupyter notebook with papermill inside a CI workflow',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with inputs and contexts from the workflow environment (INPUT_*, RUNNER, SECRETS, GITHUB)
  python cli.py run

  # Run a notebook locally against a kernel, polling progress every 5 seconds
  python cli.py run --notebook analysis.ipynb --params params.json --poll true \\
      --engine papermill --poll-interval 5 --skip-install

  # Convert an executed notebook to HTML
  python cli.py convert --notebook /tmp/nb-runner/analysis.ipynb

  # Validate inputs and workflow contexts without executing anything
  python cli.py validate-config
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Install, execute, convert and report')
    _add_input_arguments(run_parser)
    run_parser.add_argument('--config', '-c',
                            help='YAML settings file')
    run_parser.add_argument('--engine',
                            help='papermill engine name (default: noteable)')
    run_parser.add_argument('--poll-interval', type=float,
                            help='Seconds between progress polls')
    run_parser.add_argument('--tail-lines', type=int,
                            help='Progress log lines shown per poll')
    run_parser.add_argument('--skip-install', action='store_true',
                            help='Do not pip install the execution stack')
    run_parser.add_argument('--fail-on-conversion-error', action='store_true', default=None,
                            help='Fail the run when HTML conversion fails')

    convert_parser = subparsers.add_parser('convert', help='Convert a notebook to HTML')
    convert_parser.add_argument('--notebook', '-n', required=True,
                                help='Notebook to convert')
    convert_parser.add_argument('--output', '-o',
                                help='HTML file to write (default: next to the notebook)')

    validate_parser = subparsers.add_parser('validate-config', help='Validate inputs and workflow contexts')
    _add_input_arguments(validate_parser)
    validate_parser.add_argument('--config', '-c',
                                 help='YAML settings file')

    return parser.parse_args(argv)


def _add_input_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--notebook', '-n',
                        help='Notebook to execute (default: INPUT_NOTEBOOK)')
    parser.add_argument('--params', '-p',
                        help='JSON or YAML parameters file (default: INPUT_PARAMS)')
    parser.add_argument('--report', type=flag, dest='is_report',
                        help='Report mode, true/false (default: INPUT_ISREPORT)')
    parser.add_argument('--poll', type=flag,
                        help='Poll the progress log, true/false (default: INPUT_POLL)')


def load_run_configuration(args):
    """Parse inputs, contexts and settings once, from arguments and the environment."""
    inputs = ActionInputs.from_environ(
        os.environ,
        notebook=args.notebook,
        params=args.params,
        is_report=args.is_report,
        poll=args.poll
    )
    contexts = ActionContexts.from_environ(os.environ)
    settings = ActionSettings.load(
        getattr(args, 'config', None),
        os.environ,
        engine_name=getattr(args, 'engine', None),
        poll_interval_seconds=getattr(args, 'poll_interval', None),
        tail_lines=getattr(args, 'tail_lines', None),
        install=False if getattr(args, 'skip_install', False) else None,
        fail_on_conversion_error=getattr(args, 'fail_on_conversion_error', None)
    )
    return inputs, contexts, settings


async def run_notebook(args) -> int:
    """Run the notebook end to end."""
    try:
        inputs, contexts, settings = load_run_configuration(args)
    except SetupError as e:
        logger.error(f"Invalid configuration: {e}")
        return github_actions.set_failed(str(e))

    logger.info(f"Notebook: {inputs.notebook}")
    logger.info(f"Report mode: {inputs.is_report}, polling: {inputs.poll}")

    runner = ActionRunner(inputs, contexts, settings)
    summary = await runner.run()

    if summary.succeeded:
        logger.info(f"Run completed, output notebook: {summary.output_notebook}")
    return summary.exit_code


def convert_notebook(notebook: str, output: str = None) -> int:
    """Convert a notebook to HTML."""
    try:
        html_path = convert_to_html(notebook, output)
    except ConversionError as e:
        logger.error(str(e))
        return 1
    print(html_path)
    return 0


def validate_config(args) -> int:
    """Validate inputs, contexts and settings."""
    try:
        inputs, contexts, settings = load_run_configuration(args)
    except SetupError as e:
        logger.error(f"✗ Config validation failed: {e}")
        return 1

    repository = contexts.github.get_field("repository")
    logger.info(f"Repository: {repository or 'unknown'}")
    logger.info(f"Inputs: {json.dumps(inputs.model_dump())}")
    logger.info(f"Settings: {json.dumps(settings.model_dump())}")
    logger.info("✓ Config is valid")
    return 0


async def main(argv=None) -> int:
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        configure_structlog(logging.DEBUG)

    if args.command == 'run':
        return await run_notebook(args)
    elif args.command == 'convert':
        return convert_notebook(args.notebook, args.output)
    elif args.command == 'validate-config':
        return validate_config(args)
    else:
        logger.error("No command specified. Use --help for usage.")
        return 1


def entrypoint():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    entrypoint()
