"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
import click
from functools import wraps
from typing import Generator
from .config import load_config, configure_logging, resolve_repository_root
from .progress import get_progress, progress_setting_from_env
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .format_utils import FORMATS, format_output, get_format_from_env
from .services import Repository


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Progress notices on stderr (suppressed by --quiet or CAPSTAN_PROGRESS=0)
    - Structured output on stdout when --format is given
    - Consistent error handling and exit codes

    A command returning None handles its own output. A dict, list or
    generator of dicts is formatted with --format (jsonl by default).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        quiet = kwargs.get('quiet', False)
        output_format = kwargs.get('format') or get_format_from_env('jsonl')

        # --quiet wins; otherwise CAPSTAN_PROGRESS, defaulting to on
        enabled = False if quiet else progress_setting_from_env(default=True)
        progress = get_progress(enabled=enabled)
        kwargs['progress'] = progress

        try:
            result = func(*args, **kwargs)

            if result is None:
                pass
            elif isinstance(result, dict):
                for line in format_output(iter([result]), output_format):
                    print(line, flush=True)
            elif isinstance(result, (list, tuple, Generator)):
                for line in format_output(iter(result), output_format):
                    print(line, flush=True)
            else:
                print(result, flush=True)

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            progress.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            progress.error(str(e))
            sys.exit(e.exit_code)
        except Exception as e:
            progress.error(f"Command failed: {e}")
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def open_repository(progress=None, debug: bool = False) -> Repository:
    """Load configuration, set up logging and bind a Repository to the configured root."""
    config = load_config()
    configure_logging(config, debug=debug)
    return Repository(resolve_repository_root(config), progress=progress)


# Standard options that many commands share
common_options = {
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Suppress progress notices'),
    'debug': click.option('--debug', is_flag=True,
                          help='Enable debug logging'),
    'format': click.option('-f', '--format',
                           type=click.Choice(FORMATS),
                           help='Structured output format (or from CAPSTAN_FORMAT env)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('quiet', 'debug')
        def my_command(quiet, debug):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
