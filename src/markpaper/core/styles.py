"""Stylesheet assembly and full HTML document generation."""

from __future__ import annotations

from collections.abc import Iterable
import html
import logging
from pathlib import Path
import re

from bs4 import BeautifulSoup

from .config import DocumentConfig
from .diagnostics import DiagnosticEmitter, ensure_emitter


logger = logging.getLogger(__name__)

STYLES_DIR = Path(__file__).resolve().parent.parent / "styles"
BASE_STYLESHEET = STYLES_DIR / "base.css"
CUSTOM_CSS_MARKER = "/* Custom CSS */"
DEFAULT_TITLE = "Document"


def load_base_stylesheet() -> str:
    """Return the packaged base stylesheet."""
    return BASE_STYLESHEET.read_text(encoding="utf-8")


def _replace_variable(css: str, name: str, value: str | None) -> str:
    if not value:
        return css
    pattern = re.compile(rf"--{re.escape(name)}:\s*[^;]+;")
    return pattern.sub(lambda _match: f"--{name}: {value};", css, count=1)


def _format_points(size: float) -> str:
    return f"{size:g}pt"


def css_variables(config: DocumentConfig) -> dict[str, str]:
    """Return the custom property values derived from ``config``."""
    font = config.font
    page = config.page
    page_size = page.size
    if page.orientation == "landscape":
        page_size = f"{page_size} landscape"
    return {
        "font-main": font.main,
        "font-mono": font.mono,
        "font-heading": font.heading,
        "font-size": _format_points(font.size),
        "page-size": page_size,
        "page-margin-top": page.margin.top,
        "page-margin-right": page.margin.right,
        "page-margin-bottom": page.margin.bottom,
        "page-margin-left": page.margin.left,
    }


def apply_css_variables(css: str, config: DocumentConfig) -> str:
    """Rewrite the first declaration of each known custom property."""
    for name, value in css_variables(config).items():
        css = _replace_variable(css, name, value)
    return css


def avoid_break_rules(selectors: Iterable[str]) -> str:
    """Return a rule preventing page breaks inside each selector."""
    cleaned = [selector.strip() for selector in selectors if selector and selector.strip()]
    if not cleaned:
        return ""
    return f"{', '.join(cleaned)} {{\n  break-inside: avoid;\n}}\n"


def read_custom_stylesheet(
    path: Path | None, emitter: DiagnosticEmitter | None = None
) -> str | None:
    if path is None:
        return None
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        ensure_emitter(emitter).warning(f"Failed to read custom CSS file: {path}", exc)
        return None


def build_stylesheet(config: DocumentConfig, emitter: DiagnosticEmitter | None = None) -> str:
    """Return the base stylesheet configured for ``config`` plus custom CSS."""
    css = apply_css_variables(load_base_stylesheet(), config)
    rules = avoid_break_rules(config.page_break.avoid_inside)
    if rules:
        css = f"{css.rstrip()}\n\n{rules}"
    custom = read_custom_stylesheet(config.css, emitter)
    if custom is not None:
        logger.debug("Appending custom stylesheet %s", config.css)
        css = f"{css.rstrip()}\n\n{CUSTOM_CSS_MARKER}\n{custom}"
    return css


def document_title(content: str) -> str:
    """Return the text of the first heading in ``content``."""
    soup = BeautifulSoup(content, "html.parser")
    heading = soup.find(["h1", "h2", "h3", "h4", "h5", "h6"])
    if heading is not None:
        text = heading.get_text(" ", strip=True)
        if text:
            return text
    return DEFAULT_TITLE


def build_document(
    content: str,
    config: DocumentConfig,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Wrap rendered HTML ``content`` into a standalone styled document."""
    css = build_stylesheet(config, emitter)
    title = html.escape(document_title(content))
    body_attrs = f' class="theme-{html.escape(config.theme)}"' if config.theme else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
{css}
  </style>
</head>
<body{body_attrs}>
{content}
</body>
</html>
"""


__all__ = [
    "BASE_STYLESHEET",
    "CUSTOM_CSS_MARKER",
    "DEFAULT_TITLE",
    "apply_css_variables",
    "avoid_break_rules",
    "build_document",
    "build_stylesheet",
    "css_variables",
    "document_title",
    "load_base_stylesheet",
    "read_custom_stylesheet",
]
