"""
Progress reporting utilities for subtree-modules.

Progress goes to stderr so stdout stays clean for data, and is only shown
when stderr is a terminal unless explicitly enabled.
"""

import os
import sys
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    """Log levels for progress messages."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    SUCCESS = 4


class ProgressReporter:
    """Handles progress reporting to stderr while keeping stdout clean for data."""

    def __init__(self, enabled: Optional[bool] = None, use_colors: Optional[bool] = None):
        """
        Initialize progress reporter.

        Args:
            enabled: Explicitly enable/disable progress. None = auto-detect
            use_colors: Use ANSI colors in output. None = auto-detect
        """
        if enabled is None:
            self.enabled = sys.stderr.isatty()
        else:
            self.enabled = enabled

        if use_colors is None:
            self.use_colors = sys.stderr.isatty() and os.environ.get('NO_COLOR') is None
        else:
            self.use_colors = use_colors

        self.colors = {
            'reset': '\033[0m',
            'dim': '\033[2m',
            'red': '\033[31m',
            'green': '\033[32m',
            'yellow': '\033[33m',
        }

    def _colorize(self, text: str, color: str) -> str:
        if self.use_colors and color in self.colors:
            return f"{self.colors[color]}{text}{self.colors['reset']}"
        return text

    def __call__(self, message: str, force: bool = False, level: LogLevel = LogLevel.INFO):
        """
        Output progress message to stderr if enabled.

        Args:
            message: Progress message to display
            force: Force output even if disabled
            level: Log level for the message
        """
        if not (force or self.enabled):
            return
        if level == LogLevel.ERROR:
            message = self._colorize(f"✗ {message}", 'red')
        elif level == LogLevel.WARNING:
            message = self._colorize(f"⚠ {message}", 'yellow')
        elif level == LogLevel.SUCCESS:
            message = self._colorize(f"✓ {message}", 'green')
        elif level == LogLevel.DEBUG:
            message = self._colorize(f"  {message}", 'dim')
        print(message, file=sys.stderr, flush=True)

    def error(self, message: str):
        """Always output errors to stderr."""
        print(self._colorize(f"ERROR: {message}", 'red'), file=sys.stderr, flush=True)

    def warning(self, message: str):
        """Output warnings to stderr if enabled."""
        if self.enabled:
            print(self._colorize(f"WARNING: {message}", 'yellow'), file=sys.stderr, flush=True)

    def success(self, message: str):
        if self.enabled:
            self(message, level=LogLevel.SUCCESS)


# Global progress reporter instance
_progress = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Get the global progress reporter.

    Args:
        enabled: Override auto-detection of progress display
    """
    global _progress
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress


# Environment variable override
if os.environ.get('SUBTREE_MODULES_PROGRESS') == '0':
    _progress = ProgressReporter(enabled=False)
elif os.environ.get('SUBTREE_MODULES_PROGRESS') == '1':
    _progress = ProgressReporter(enabled=True)
