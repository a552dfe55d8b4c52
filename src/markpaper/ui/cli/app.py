"""Typer application and console-script entry point for ``markpaper``."""

from __future__ import annotations

from collections.abc import Sequence

import typer

from markpaper.ui.cli.commands.convert import convert

from .state import debug_enabled, emit_error, get_cli_state


app = typer.Typer(
    name="markpaper",
    help="Convert Markdown documents with Mermaid diagrams into PDF.",
    context_settings={"help_option_names": ["--help", "-h"]},
    add_completion=False,
)
app.command()(convert)


def report_crash(exc: BaseException) -> None:
    """Print an unexpected failure, as a rich traceback under ``--debug``."""
    state = get_cli_state()
    if not state.show_tracebacks:
        emit_error(str(exc) or type(exc).__name__, exception=exc)
        return

    from rich.traceback import Traceback

    state.err_console.print(
        Traceback.from_exception(
            type(exc), exc, exc.__traceback__, show_locals=state.verbosity >= 2
        )
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Run the CLI; anything escaping the command exits with status 1."""
    try:
        app(args=list(argv) if argv is not None else None)
    except (typer.Exit, SystemExit):
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Conversion interrupted.", exception=exc)
        raise SystemExit(1) from exc
    except Exception as exc:
        report_crash(exc)
        raise SystemExit(1) from exc


__all__ = ["app", "main", "report_crash"]
