"""Primary public API for MarkPaper."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from markpaper.api import MarkPaper, convert_markdown_to_pdf
from markpaper.core.build import PdfGenerator
from markpaper.core.config import (
    CaptionConfig,
    DocumentConfig,
    FontConfig,
    LayoutEngineConfig,
    MarginConfig,
    MermaidConfig,
    MermaidLayoutConfig,
    PageBreakConfig,
    PageConfig,
)
from markpaper.core.diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from markpaper.core.diagrams import DiagramBlock, RenderResult
from markpaper.core.exceptions import (
    BrowserLaunchError,
    BuildError,
    ConfigurationError,
    DiagramRenderError,
    InputError,
    LayoutEngineError,
    MarkdownConversionError,
    MarkPaperError,
)
from markpaper.core.loader import load_config


try:
    __version__ = _pkg_version("markpaper")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "BrowserLaunchError",
    "BuildError",
    "CaptionConfig",
    "ConfigurationError",
    "DiagnosticEmitter",
    "DiagramBlock",
    "DiagramRenderError",
    "DocumentConfig",
    "FontConfig",
    "InputError",
    "LayoutEngineConfig",
    "LoggingEmitter",
    "MarginConfig",
    "MarkPaper",
    "MarkPaperError",
    "MarkdownConversionError",
    "MermaidConfig",
    "MermaidLayoutConfig",
    "NullEmitter",
    "PageBreakConfig",
    "PageConfig",
    "PdfGenerator",
    "RenderResult",
    "__version__",
    "convert_markdown_to_pdf",
    "load_config",
]
