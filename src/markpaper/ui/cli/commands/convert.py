"""Implementation of the ``markpaper`` conversion command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import click
import typer

from markpaper.api import MarkPaper
from markpaper.core.config import DocumentConfig
from markpaper.core.exceptions import MarkPaperError
from markpaper.core.loader import load_config, merge_options, nested_overrides

from .._options import (
    DIAGNOSTICS_PANEL,
    ConfigOption,
    CssOption,
    DebugOption,
    FontHeadingOption,
    FontMainOption,
    FontMonoOption,
    FontSizeOption,
    InputArgument,
    MarginBottomOption,
    MarginLeftOption,
    MarginRightOption,
    MarginTopOption,
    MermaidBackgroundOption,
    MermaidCaptionFormatOption,
    MermaidCaptionPrefixOption,
    MermaidCaptionsOption,
    MermaidThemeOption,
    MermaidWidthOption,
    NoMermaidOption,
    OutputOption,
    PageBreakH1Option,
    PageBreakH2Option,
    PageBreakH3Option,
    PageOrientationOption,
    PageSizeOption,
    ThemeOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..state import cli_logging, debug_enabled, emit_error, set_cli_state


def _version_callback(value: bool) -> None:
    if not value:
        return
    from markpaper import __version__

    typer.echo(f"markpaper {__version__}")
    raise typer.Exit()


def _flag(value: bool, *, when: bool = True) -> bool | None:
    """Return ``when`` for a given flag so unset flags never override files."""
    return when if value else None


def build_overrides(**options: Any) -> dict[str, Any]:
    """Translate command-line values into a nested configuration mapping."""
    return nested_overrides(
        [
            ("output", options.get("output")),
            ("font.main", options.get("font_main")),
            ("font.mono", options.get("font_mono")),
            ("font.heading", options.get("font_heading")),
            ("font.size", options.get("font_size")),
            ("page.size", options.get("page_size")),
            ("page.orientation", options.get("page_orientation")),
            ("page.margin.top", options.get("margin_top")),
            ("page.margin.right", options.get("margin_right")),
            ("page.margin.bottom", options.get("margin_bottom")),
            ("page.margin.left", options.get("margin_left")),
            ("pageBreak.beforeH1", _flag(options.get("page_break_h1", False))),
            ("pageBreak.beforeH2", _flag(options.get("page_break_h2", False))),
            ("pageBreak.beforeH3", _flag(options.get("page_break_h3", False))),
            ("mermaid.enabled", _flag(options.get("no_mermaid", False), when=False)),
            ("mermaid.theme", options.get("mermaid_theme")),
            ("mermaid.width", options.get("mermaid_width")),
            ("mermaid.backgroundColor", options.get("mermaid_background")),
            ("mermaid.captions.enabled", _flag(options.get("mermaid_captions", False))),
            ("mermaid.captions.autoNumber", _flag(options.get("mermaid_captions", False))),
            ("mermaid.captions.extractTitle", _flag(options.get("mermaid_captions", False))),
            ("mermaid.captions.prefix", options.get("mermaid_caption_prefix")),
            ("mermaid.captions.format", options.get("mermaid_caption_format")),
            ("css", options.get("css")),
            ("theme", options.get("theme")),
            ("debug", _flag(options.get("debug", False))),
        ]
    )


def resolve_config(config_file: Path | None, overrides: dict[str, Any]) -> DocumentConfig:
    """Load the configuration file and layer command-line overrides on top."""
    return merge_options(load_config(config_file), overrides)


def convert(
    input_file: InputArgument = None,
    output: OutputOption = None,
    config_file: ConfigOption = None,
    font_main: FontMainOption = None,
    font_mono: FontMonoOption = None,
    font_heading: FontHeadingOption = None,
    font_size: FontSizeOption = None,
    page_size: PageSizeOption = None,
    page_orientation: PageOrientationOption = None,
    margin_top: MarginTopOption = None,
    margin_right: MarginRightOption = None,
    margin_bottom: MarginBottomOption = None,
    margin_left: MarginLeftOption = None,
    page_break_h1: PageBreakH1Option = False,
    page_break_h2: PageBreakH2Option = False,
    page_break_h3: PageBreakH3Option = False,
    mermaid_theme: MermaidThemeOption = None,
    mermaid_width: MermaidWidthOption = None,
    mermaid_background: MermaidBackgroundOption = None,
    mermaid_captions: MermaidCaptionsOption = False,
    mermaid_caption_prefix: MermaidCaptionPrefixOption = None,
    mermaid_caption_format: MermaidCaptionFormatOption = None,
    no_mermaid: NoMermaidOption = False,
    css: CssOption = None,
    theme: ThemeOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the MarkPaper version and exit.",
            callback=_version_callback,
            is_eager=True,
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = False,
) -> None:
    """Convert a Markdown document with Mermaid diagrams into a PDF."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    if input_file is None:
        emit_error("Missing input file. Run 'markpaper --help' for usage.")
        raise typer.Exit(code=1)

    overrides = build_overrides(
        output=output,
        font_main=font_main,
        font_mono=font_mono,
        font_heading=font_heading,
        font_size=font_size,
        page_size=page_size,
        page_orientation=page_orientation,
        margin_top=margin_top,
        margin_right=margin_right,
        margin_bottom=margin_bottom,
        margin_left=margin_left,
        page_break_h1=page_break_h1,
        page_break_h2=page_break_h2,
        page_break_h3=page_break_h3,
        no_mermaid=no_mermaid,
        mermaid_theme=mermaid_theme,
        mermaid_width=mermaid_width,
        mermaid_background=mermaid_background,
        mermaid_captions=mermaid_captions,
        mermaid_caption_prefix=mermaid_caption_prefix,
        mermaid_caption_format=mermaid_caption_format,
        css=css,
        theme=theme,
        debug=debug,
    )

    try:
        with cli_logging(state, debug=debug):
            config = resolve_config(config_file, overrides)
            paper = MarkPaper(config, emitter=CliEmitter(state))
            paper.convert(input_file)
    except MarkPaperError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["build_overrides", "convert", "resolve_config"]
