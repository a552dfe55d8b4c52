"""Terminal reporting of build progress and diagram outcomes."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from typing import Any

from markpaper.core.diagnostics import format_event_message

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


# Per-diagram events are tallied instead of printed; failures already
# surface as warnings from the sandbox.
DIAGRAM_OUTCOMES = {"diagram_rendered": "rendered", "diagram_failed": "failed"}


class CliEmitter:
    """Print pipeline progress through rich and keep a record of every event.

    Events are stored on the :class:`CLIState` so commands can inspect them
    after a build. The completion line carries a short diagram summary when
    some diagrams were replaced by placeholders.
    """

    def __init__(self, state: CLIState | None = None, *, debug_enabled: bool | None = None) -> None:
        self._state = state or get_cli_state()
        self.debug_enabled = (
            self._state.show_tracebacks if debug_enabled is None else bool(debug_enabled)
        )
        self.diagrams: Counter[str] = Counter()

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        data = dict(payload)
        self._state.record_event(name, data)

        outcome = DIAGRAM_OUTCOMES.get(name)
        if outcome is not None:
            self.diagrams[outcome] += 1
            return
        if name == "build_started":
            self.diagrams.clear()

        message = format_event_message(name, data)
        if message is None:
            return
        if name == "build_completed" and self.diagrams["failed"]:
            message = f"{message} ({self.diagram_summary()})"
        render_message("info", message)

    def diagram_summary(self) -> str:
        failed = self.diagrams["failed"]
        total = failed + self.diagrams["rendered"]
        return f"{failed} of {total} diagrams replaced by placeholders"


__all__ = ["CliEmitter", "DIAGRAM_OUTCOMES"]
