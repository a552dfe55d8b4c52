"""Shared Typer option definitions for the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


OUTPUT_PANEL = "Output"
FONT_PANEL = "Fonts"
PAGE_PANEL = "Page Layout"
DIAGRAM_PANEL = "Mermaid Diagrams"
STYLE_PANEL = "Styling"
DIAGNOSTICS_PANEL = "Diagnostics"

InputArgument = Annotated[
    Path | None,
    typer.Argument(
        metavar="INPUT",
        help="Markdown document to convert.",
        dir_okay=False,
        show_default=False,
    ),
]

OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output PDF path. Defaults to the input path with a .pdf suffix.",
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Configuration file (JSON or YAML). Discovered from the working directory if omitted.",
        dir_okay=False,
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

FontMainOption = Annotated[
    str | None,
    typer.Option("--font-main", help="Main font family.", rich_help_panel=FONT_PANEL),
]

FontMonoOption = Annotated[
    str | None,
    typer.Option("--font-mono", help="Monospace font family.", rich_help_panel=FONT_PANEL),
]

FontHeadingOption = Annotated[
    str | None,
    typer.Option("--font-heading", help="Heading font family.", rich_help_panel=FONT_PANEL),
]

FontSizeOption = Annotated[
    float | None,
    typer.Option("--font-size", help="Base font size in points.", rich_help_panel=FONT_PANEL),
]

PageSizeOption = Annotated[
    str | None,
    typer.Option(
        "--page-size",
        help="Page size (A4, A3, Letter, Legal).",
        rich_help_panel=PAGE_PANEL,
    ),
]

PageOrientationOption = Annotated[
    str | None,
    typer.Option(
        "--page-orientation",
        help="Page orientation (portrait, landscape).",
        rich_help_panel=PAGE_PANEL,
    ),
]

MarginTopOption = Annotated[
    str | None,
    typer.Option("--margin-top", help="Top margin (e.g. 2cm).", rich_help_panel=PAGE_PANEL),
]

MarginRightOption = Annotated[
    str | None,
    typer.Option("--margin-right", help="Right margin.", rich_help_panel=PAGE_PANEL),
]

MarginBottomOption = Annotated[
    str | None,
    typer.Option("--margin-bottom", help="Bottom margin.", rich_help_panel=PAGE_PANEL),
]

MarginLeftOption = Annotated[
    str | None,
    typer.Option("--margin-left", help="Left margin.", rich_help_panel=PAGE_PANEL),
]

PageBreakH1Option = Annotated[
    bool,
    typer.Option(
        "--page-break-h1",
        help="Insert a page break before H1 headings.",
        rich_help_panel=PAGE_PANEL,
    ),
]

PageBreakH2Option = Annotated[
    bool,
    typer.Option(
        "--page-break-h2",
        help="Insert a page break before H2 headings.",
        rich_help_panel=PAGE_PANEL,
    ),
]

PageBreakH3Option = Annotated[
    bool,
    typer.Option(
        "--page-break-h3",
        help="Insert a page break before H3 headings.",
        rich_help_panel=PAGE_PANEL,
    ),
]

MermaidThemeOption = Annotated[
    str | None,
    typer.Option(
        "--mermaid-theme",
        help="Mermaid theme (default, base, dark, forest, neutral).",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

MermaidWidthOption = Annotated[
    int | None,
    typer.Option(
        "--mermaid-width",
        help="Viewport width in pixels used to render diagrams.",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

MermaidBackgroundOption = Annotated[
    str | None,
    typer.Option(
        "--mermaid-background",
        help="Diagram background color; 'transparent' drops the background.",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

MermaidCaptionsOption = Annotated[
    bool,
    typer.Option(
        "--mermaid-captions",
        help="Add numbered captions below diagrams.",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

MermaidCaptionPrefixOption = Annotated[
    str | None,
    typer.Option(
        "--mermaid-caption-prefix",
        help="Caption prefix (e.g. Figure, Diagram).",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

MermaidCaptionFormatOption = Annotated[
    str | None,
    typer.Option(
        "--mermaid-caption-format",
        help="Caption format using {prefix}, {number} and {title}.",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

NoMermaidOption = Annotated[
    bool,
    typer.Option(
        "--no-mermaid",
        help="Keep Mermaid blocks as code instead of rendering diagrams.",
        rich_help_panel=DIAGRAM_PANEL,
    ),
]

CssOption = Annotated[
    Path | None,
    typer.Option(
        "--css",
        help="Custom CSS file appended after the base stylesheet.",
        dir_okay=False,
        show_default=False,
        rich_help_panel=STYLE_PANEL,
    ),
]

ThemeOption = Annotated[
    str | None,
    typer.Option(
        "--theme",
        help="Theme name exposed to stylesheets as a body class.",
        rich_help_panel=STYLE_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Enable debug logging and show full tracebacks on failure.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "ConfigOption",
    "CssOption",
    "DebugOption",
    "FontHeadingOption",
    "FontMainOption",
    "FontMonoOption",
    "FontSizeOption",
    "InputArgument",
    "MarginBottomOption",
    "MarginLeftOption",
    "MarginRightOption",
    "MarginTopOption",
    "MermaidBackgroundOption",
    "MermaidCaptionFormatOption",
    "MermaidCaptionPrefixOption",
    "MermaidCaptionsOption",
    "MermaidThemeOption",
    "MermaidWidthOption",
    "NoMermaidOption",
    "OutputOption",
    "PageBreakH1Option",
    "PageBreakH2Option",
    "PageBreakH3Option",
    "PageOrientationOption",
    "PageSizeOption",
    "ThemeOption",
    "VerboseOption",
]
