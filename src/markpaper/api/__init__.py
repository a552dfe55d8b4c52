"""Facade gathering the public MarkPaper entry points.

Architecture
: `MarkPaper` keeps a resolved `DocumentConfig` between conversions and builds
  a `PdfGenerator` for each call to `convert`.
: `convert_markdown_to_pdf` is the one-shot shortcut for scripts.

Usage Example
:
    >>> from markpaper.api import MarkPaper
    >>> paper = MarkPaper({"page": {"size": "Letter"}})
    >>> paper.get_config().page.size
    'Letter'
"""

from __future__ import annotations

from .converter import MarkPaper, convert_markdown_to_pdf


__all__ = ["MarkPaper", "convert_markdown_to_pdf"]
