"""
Progress reporting for vanillabuild.

Status lines go to stderr. Stdout is shared with the Gradle wrapper,
which inherits it, and with the --json summary.
"""

import os
import sys
from enum import Enum
from typing import Optional, TextIO


class Tone(Enum):
    """How a progress line is decorated."""
    PLAIN = "plain"
    DETAIL = "detail"
    DRY_RUN = "dry_run"
    SUCCESS = "success"
    ERROR = "error"


ANSI = {
    Tone.DETAIL: '\033[2m',
    Tone.DRY_RUN: '\033[36m',
    Tone.SUCCESS: '\033[32m',
    Tone.ERROR: '\033[31m',
}
RESET = '\033[0m'

UNICODE_SYMBOLS = {Tone.SUCCESS: '✓', Tone.ERROR: '✗'}
ASCII_SYMBOLS = {Tone.SUCCESS: '+', Tone.ERROR: 'x'}


class ProgressReporter:
    """
    Writes pipeline status lines to stderr.

    Messages from the driver are passed straight through; indented lines
    (submodule levels) are dimmed and dry-run lines are highlighted.
    """

    def __init__(self, enabled: Optional[bool] = None, stream: Optional[TextIO] = None,
                 use_unicode: Optional[bool] = None, use_colors: Optional[bool] = None):
        """
        Args:
            enabled: None means enabled unless VANILLABUILD_PROGRESS=0
            stream: Output stream (sys.stderr at write time when None)
            use_unicode: Use ✓/✗ instead of +/x
            use_colors: Use ANSI colors (default: stderr is a TTY and NO_COLOR unset)
        """
        if enabled is None:
            enabled = os.environ.get('VANILLABUILD_PROGRESS') != '0'
        self.enabled = enabled
        self._stream = stream

        if use_unicode is None:
            encoding = getattr(self.stream, 'encoding', None) or ''
            use_unicode = encoding.lower().replace('-', '') == 'utf8'
        self.symbols = UNICODE_SYMBOLS if use_unicode else ASCII_SYMBOLS

        if use_colors is None:
            isatty = getattr(self.stream, 'isatty', None)
            use_colors = bool(isatty and isatty()) and 'NO_COLOR' not in os.environ
        self.use_colors = use_colors

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stderr

    def _tone_for(self, message: str) -> Tone:
        if message.startswith("[DRY RUN]"):
            return Tone.DRY_RUN
        if message.startswith(" "):
            return Tone.DETAIL
        return Tone.PLAIN

    def _write(self, text: str, tone: Tone) -> None:
        if self.use_colors and tone in ANSI:
            text = f"{ANSI[tone]}{text}{RESET}"
        print(text, file=self.stream, flush=True)

    def __call__(self, message: str, tone: Optional[Tone] = None):
        """Write a status line if progress is enabled."""
        if not self.enabled:
            return
        self._write(message, tone or self._tone_for(message))

    def error(self, message: str):
        """Errors are written even when progress is disabled."""
        self._write(f"{self.symbols[Tone.ERROR]} ERROR: {message}", Tone.ERROR)

    def success(self, message: str):
        if self.enabled:
            self._write(f"{self.symbols[Tone.SUCCESS]} {message}", Tone.SUCCESS)


_progress = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Shared reporter for the running command.

    Passing `enabled` replaces the shared instance.
    """
    global _progress
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress
