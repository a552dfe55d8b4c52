"""Public CLI exports for MarkPaper."""

from __future__ import annotations

from .app import app, main
from .commands import convert
from .state import debug_enabled, emit_error, emit_warning, get_cli_state


__all__ = [
    "app",
    "convert",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "main",
]
