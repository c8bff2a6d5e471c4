"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
from functools import wraps
from typing import Any, Dict, Generator, Optional

import click

from .config import load_config
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .format_utils import FORMATS, format_output, get_format_from_env
from .progress import get_progress
from .services.host import HostRepository

EXIT_CODE_KEY = 'subtree_modules.exit_code'


def set_exit_code(code: int) -> None:
    """
    Request a non-zero exit after output has been written.

    Used by commands whose results are complete but still signal failure,
    e.g. check-dependencies with unmet dependencies.
    """
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.find_root().meta[EXIT_CODE_KEY] = code


def _requested_exit_code() -> int:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return SUCCESS
    return ctx.find_root().meta.get(EXIT_CODE_KEY, SUCCESS)


def error_object(e: Exception) -> Dict[str, Any]:
    """JSON error object written to stdout when a command fails."""
    error_obj: Dict[str, Any] = {
        "error": str(e),
        "type": type(e).__name__,
    }
    if isinstance(e, CommandError):
        error_obj["exit_code"] = e.exit_code
    if getattr(e, 'code', None):
        error_obj["code"] = e.code
    return error_obj


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Progress reporting on stderr (injected as ``progress``)
    - Results on stdout as JSONL, or the format chosen with -f/--format
    - --quiet/-q to suppress data output
    - CommandError mapped to a JSON error object and its exit code

    A command returns a dict, a list or a generator of dicts, or None when
    it has written its own output (tables).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        verbose = kwargs.get('verbose', False)
        quiet = kwargs.get('quiet', False)
        output_format = kwargs.get('format') or get_format_from_env('jsonl')
        fields_str = kwargs.get('fields')
        fields = fields_str.split(',') if fields_str else None

        progress = get_progress(enabled=verbose or None)
        kwargs['progress'] = progress

        try:
            result = func(*args, **kwargs)

            if quiet:
                if isinstance(result, Generator):
                    for _ in result:
                        pass
            elif result is None:
                pass
            else:
                if isinstance(result, dict):
                    result = [result]
                for line in format_output(result, output_format, fields):
                    print(line, flush=True)

            sys.exit(_requested_exit_code())

        except KeyboardInterrupt:
            progress.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except (click.ClickException, click.exceptions.Abort):
            raise
        except CommandError as e:
            progress.error(str(e))
            if not quiet:
                print(json.dumps(error_object(e), ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)
        except Exception as e:
            progress.error(f"Command failed: {e}")
            if not quiet:
                print(json.dumps(error_object(e), ensure_ascii=False), flush=True)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def get_config() -> Dict[str, Any]:
    """Configuration loaded by the top-level group, or a fresh load outside a CLI run."""
    ctx = click.get_current_context(silent=True)
    obj = ctx.find_root().obj if ctx is not None else None
    if obj and 'config' in obj:
        return obj['config']
    return load_config()


def get_host() -> HostRepository:
    """Host repository selected with -C/--path (default: current directory)."""
    ctx = click.get_current_context(silent=True)
    obj = (ctx.find_root().obj if ctx is not None else None) or {}
    return HostRepository.from_config(obj.get('path') or '.', get_config())


def use_table(table: Optional[bool]) -> bool:
    """Resolve --table/--no-table: tables on an interactive terminal by default."""
    if table is None:
        return sys.stdout.isatty()
    return table


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Force progress output even when piped'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Suppress data output, show only progress'),
    'dry_run': click.option('--dry-run', is_flag=True,
                            help='Validate and report without changing anything'),
    'format': click.option('-f', '--format',
                           type=click.Choice(FORMATS),
                           help='Output format (default: jsonl, or from SUBTREE_MODULES_FORMAT env)'),
    'fields': click.option('--fields',
                           help='Comma-separated list of fields to include (for CSV/TSV)'),
    'table': click.option('--table/--no-table', default=None,
                          help='Display as formatted table (auto-detected by default)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'dry_run')
        def my_command(verbose, dry_run):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
