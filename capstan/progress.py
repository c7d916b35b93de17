"""
Progress reporting utilities for capstan.

Notices ("Importing base...", "Removing base...") and errors go to stderr
so that stdout stays clean for listings and structured output.
CAPSTAN_PROGRESS=0 silences notices, CAPSTAN_PROGRESS=1 forces them on.
"""

import sys
import os
from typing import Optional

RED = '\033[31m'
GREEN = '\033[32m'
YELLOW = '\033[33m'
RESET = '\033[0m'


def progress_setting_from_env(default: Optional[bool] = None) -> Optional[bool]:
    """Read CAPSTAN_PROGRESS; anything other than 0 or 1 yields default."""
    value = os.environ.get('CAPSTAN_PROGRESS')
    if value == '0':
        return False
    if value == '1':
        return True
    return default


class ProgressReporter:
    """Writes notices to stderr when enabled; errors are always written."""

    def __init__(self, enabled: Optional[bool] = None, use_colors: Optional[bool] = None):
        if enabled is None:
            enabled = sys.stderr.isatty()
        self.enabled = enabled

        if use_colors is None:
            use_colors = sys.stderr.isatty() and os.environ.get('NO_COLOR') is None
        self.use_colors = use_colors

    def _write(self, text: str, color: Optional[str] = None):
        if color and self.use_colors:
            text = f"{color}{text}{RESET}"
        print(text, file=sys.stderr, flush=True)

    def __call__(self, message: str):
        if self.enabled:
            self._write(message)

    def error(self, message: str):
        self._write(f"ERROR: {message}", RED)

    def warning(self, message: str):
        if self.enabled:
            self._write(f"WARNING: {message}", YELLOW)

    def success(self, message: str):
        if self.enabled:
            self._write(f"✓ {message}", GREEN)


# Global progress reporter instance
_progress = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Get the global progress reporter.

    Args:
        enabled: Force notices on or off; None defers to CAPSTAN_PROGRESS,
            then to whether stderr is a terminal

    Returns:
        ProgressReporter instance
    """
    global _progress
    if enabled is None:
        enabled = progress_setting_from_env()
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress
