"""Diagram bookkeeping: blocks, render results, titles and captions."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
import re

from .config import CaptionConfig


DIAGRAM_LANGUAGE = "mermaid"

_FALLBACK_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="400" height="100">'
    '<text x="50%" y="50%" text-anchor="middle" dy=".3em">Mermaid Render Error</text>'
    "</svg>"
)
FALLBACK_IMAGE = "data:image/svg+xml;base64," + base64.b64encode(
    _FALLBACK_SVG.encode("utf-8")
).decode("ascii")


def diagram_id(index: int) -> str:
    """Return the stable identifier of the ``index``-th diagram (0-based)."""
    return f"diagram-{index}"


@dataclass(slots=True)
class DiagramBlock:
    """One fenced diagram extracted from the source document."""

    id: str
    content: str
    title: str | None = None
    caption: str | None = None


@dataclass(slots=True)
class RenderResult:
    """Outcome of rendering one diagram: an image file or the fallback URI."""

    block_id: str
    image_path: Path | None = None
    fallback: str | None = None
    caption: str | None = None
    title: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if (self.image_path is None) == (self.fallback is None):
            raise ValueError(
                f"Render result for {self.block_id} needs exactly one of image_path or fallback"
            )

    @property
    def failed(self) -> bool:
        return self.fallback is not None

    @property
    def src(self) -> str:
        """URI embedded in the final document."""
        if self.image_path is not None:
            return self.image_path.resolve().as_uri()
        return self.fallback or FALLBACK_IMAGE

    @classmethod
    def placeholder(cls, block: DiagramBlock) -> RenderResult:
        return cls(block.id, fallback=FALLBACK_IMAGE, caption=block.caption, title=block.title)


@dataclass(frozen=True, slots=True)
class TitlePattern:
    """A named title annotation syntax."""

    name: str
    regex: re.Pattern[str]


# Priority order matters: the first matching pattern wins.
TITLE_PATTERNS: tuple[TitlePattern, ...] = (
    TitlePattern(
        "quoted-assignment",
        re.compile(
            r"""^[ \t]*title[ \t]*[:=]?[ \t]*(?P<quote>["'])(?P<title>[^\n]+?)(?P=quote)[ \t]*$""",
            re.MULTILINE | re.IGNORECASE,
        ),
    ),
    TitlePattern(
        "bracket-annotation",
        re.compile(
            r"^[ \t]*(?:%%[ \t]*)?title[ \t]*\[(?P<title>[^\]\n]+)\][ \t]*$",
            re.MULTILINE | re.IGNORECASE,
        ),
    ),
    TitlePattern(
        "init-directive",
        re.compile(
            r"""%%\{.*?(?:["']title["']|\btitle\b)[ \t]*:[ \t]*(?P<quote>["'])(?P<title>[^"'\n]+)(?P=quote).*?\}%%""",
            re.DOTALL,
        ),
    ),
    TitlePattern(
        "front-matter",
        re.compile(
            r"\A[ \t]*---[ \t]*\n(?:(?![ \t]*---)[^\n]*\n)*?[ \t]*title[ \t]*:[ \t]*(?P<title>[^\n]+)",
        ),
    ),
)


def extract_title(content: str) -> str | None:
    """Return the first title annotation found in diagram text."""
    for pattern in TITLE_PATTERNS:
        match = pattern.regex.search(content)
        if match is None:
            continue
        title = match.group("title").strip().strip("\"'").strip()
        if title:
            return title
    return None


def format_caption(policy: CaptionConfig, number: int, title: str | None) -> str:
    """Render the caption template, trimming a dangling ``": "`` separator."""
    caption = (
        policy.format.replace("{prefix}", policy.prefix)
        .replace("{number}", str(number))
        .replace("{title}", title or "")
    )
    if caption.endswith(": "):
        caption = caption[:-2]
    return caption


__all__ = [
    "DIAGRAM_LANGUAGE",
    "FALLBACK_IMAGE",
    "TITLE_PATTERNS",
    "DiagramBlock",
    "RenderResult",
    "TitlePattern",
    "diagram_id",
    "extract_title",
    "format_caption",
]
