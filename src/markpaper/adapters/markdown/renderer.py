"""Markdown to HTML conversion with diagram extraction and splicing."""

from __future__ import annotations

from collections.abc import Sequence
import logging
import re

from bs4 import BeautifulSoup
import markdown

from markpaper.core.config import DocumentConfig
from markpaper.core.diagnostics import DiagnosticEmitter, ensure_emitter
from markpaper.core.diagrams import (
    DIAGRAM_LANGUAGE,
    DiagramBlock,
    RenderResult,
    diagram_id,
    extract_title,
    format_caption,
)
from markpaper.core.exceptions import MarkdownConversionError, mark_logged

from .nodes import DIAGRAM_CLASS, PageLayoutExtension


logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

# Same grammar as fenced_code. Every block is matched, whatever its language,
# so a fence quoted inside another code block is consumed with its host.
_FENCED_BLOCK = re.compile(
    r"^(?P<fence>`{3,}|~{3,})[ \t]*"
    r"(?:\{(?P<attrs>[^\n]*)\}|\.?(?P<lang>[\w#.+-]*)[ \t]*"
    r"(?:hl_lines=(?P<quot>\"|').*?(?P=quot)[ \t]*)?)\n"
    r"(?P<body>.*?)(?<=\n)(?P=fence)[ \t]*$",
    re.MULTILINE | re.DOTALL,
)


def fence_language(match: re.Match[str]) -> str:
    """Return the language of a fenced block, as fenced_code assigns it."""
    attrs = match.group("attrs")
    if attrs is None:
        return match.group("lang") or ""
    for token in attrs.split():
        if token.startswith(".") and len(token) > 1:
            return token[1:]
    return ""


class DocumentRenderer:
    """Turn Markdown into styled HTML and keep track of embedded diagrams.

    Instances are scoped to one conversion: the caption counter lives on the
    renderer so concurrent conversions never share numbering.
    """

    def __init__(
        self,
        config: DocumentConfig | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.config = config or DocumentConfig()
        self.emitter = ensure_emitter(emitter)
        self._caption_number = 0
        self._processor: markdown.Markdown | None = None

    def _markdown(self) -> markdown.Markdown:
        if self._processor is None:
            self._processor = markdown.Markdown(
                extensions=[*MARKDOWN_EXTENSIONS, PageLayoutExtension(self.config)],
                output_format="html",
            )
        self._processor.reset()
        return self._processor

    def convert(self, source: str) -> str:
        """Convert Markdown source into HTML fragments."""
        logger.debug("Converting markdown to HTML")
        try:
            html = self._markdown().convert(source)
        except Exception as exc:
            message = f"Failed to convert markdown: {exc}"
            self.emitter.error(message, exc)
            raise mark_logged(MarkdownConversionError(message)) from exc
        logger.debug("Markdown conversion completed")
        return html

    def extract_diagrams(self, source: str) -> list[DiagramBlock]:
        """Return the diagram blocks of ``source`` in document order."""
        text = source.replace("\r\n", "\n").replace("\r", "\n")
        captions = self.config.mermaid.captions
        self._caption_number = 0

        blocks: list[DiagramBlock] = []
        for match in _FENCED_BLOCK.finditer(text):
            if fence_language(match) != DIAGRAM_LANGUAGE:
                continue
            block = DiagramBlock(
                id=diagram_id(len(blocks)), content=match.group("body").strip()
            )
            if captions.enabled and captions.extract_title:
                block.title = extract_title(block.content)
            if captions.enabled and captions.auto_number:
                self._caption_number += 1
                block.caption = format_caption(captions, self._caption_number, block.title)
            blocks.append(block)

        logger.debug("Found %d mermaid diagrams", len(blocks))
        return blocks

    def splice_diagrams(self, html: str, results: Sequence[RenderResult]) -> str:
        """Replace diagram placeholders positionally with rendered images.

        The n-th placeholder receives the n-th result; placeholders left over
        when results run out are kept unchanged.
        """
        soup = BeautifulSoup(html, "html.parser")
        placeholders = soup.select(f"div.mermaid-container > div.{DIAGRAM_CLASS}")
        if len(placeholders) != len(results):
            logger.debug(
                "Splicing %d results into %d diagram placeholders",
                len(results),
                len(placeholders),
            )

        for placeholder, result in zip(placeholders, results):
            image = soup.new_tag(
                "img",
                attrs={
                    "src": result.src,
                    "alt": result.title or f"Mermaid diagram {result.block_id}",
                    "class": "mermaid-image",
                },
            )
            placeholder.replace_with(image)
            if result.caption:
                caption = soup.new_tag("p", attrs={"class": "mermaid-caption"})
                caption.string = result.caption
                image.insert_after(caption)

        return str(soup)


__all__ = ["MARKDOWN_EXTENSIONS", "DocumentRenderer", "fence_language"]
