"""Configuration models used by the Markdown to PDF pipeline.

Configuration files use camelCase keys (``pageBreak.beforeH1``); Python code
may use either the camelCase aliases or the snake_case field names.

FontConfig

`main` (`str`)
: Font family used for body text.

`mono` (`str`)
: Font family used for code blocks and inline code.

`heading` (`str`)
: Font family used for headings.

`size` (`float`)
: Base font size in points.

PageConfig

`size` (`str`)
: Paper size forwarded to the layout engine (`A4`, `A3`, `Letter`, ...).

`orientation` (`"portrait" | "landscape"`)
: Page orientation appended to the CSS page size.

`margin` (`MarginConfig`)
: Four independent CSS lengths (`top`, `right`, `bottom`, `left`).

PageBreakConfig

`beforeH1`, `beforeH2`, `beforeH3` (`bool`)
: Start a new page before headings of the given level.

`avoidInside` (`list[str]`)
: Element selectors that must never be split across pages.

MermaidConfig

`enabled` (`bool`)
: Toggle diagram rendering. Disabled diagrams are kept as code blocks.

`theme` (`str`)
: Mermaid theme. ``base`` without `themeVariables` selects the enhanced
  built-in palette.

`width`, `scale` (`int`, `float`)
: Viewport width in pixels and device scale factor of the screenshots.

`backgroundColor` (`str`)
: Page background; ``transparent`` produces PNGs without background.

`timeout` (`float`)
: Seconds to wait for a single diagram before using the fallback image.

`themeVariables` (`dict | None`)
: Raw Mermaid theme variables overriding the built-in palette.

`layout` (`MermaidLayoutConfig`)
: Flowchart spacing, curve style, padding and the optional ELK renderer.

`captions` (`CaptionConfig`)
: Caption policy applied to every diagram of a document.

LayoutEngineConfig

`timeout` (`float`)
: Wall-clock limit in seconds for the Vivliostyle subprocess.

`command` (`list[str] | None`)
: Explicit command prefix used instead of auto-detection.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


PAPER_SIZES = ("A5", "A4", "A3", "B5", "B4", "Letter", "Legal", "Ledger")


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )


class FontConfig(_ConfigModel):
    """Font families and base size."""

    main: str = "system-ui, -apple-system, sans-serif"
    mono: str = "Menlo, Monaco, Consolas, monospace"
    heading: str = "system-ui, -apple-system, sans-serif"
    size: float = Field(default=12, gt=0)


class MarginConfig(_ConfigModel):
    """Page margins expressed as CSS lengths."""

    top: str = "2cm"
    right: str = "2cm"
    bottom: str = "2cm"
    left: str = "2cm"


class PageConfig(_ConfigModel):
    """Page geometry."""

    size: str = "A4"
    orientation: Literal["portrait", "landscape"] = "portrait"
    margin: MarginConfig = Field(default_factory=MarginConfig)

    @field_validator("size")
    @classmethod
    def canonical_size(cls, value: str) -> str:
        """Normalise well-known paper names (``a4`` becomes ``A4``)."""
        candidate = value.strip()
        for name in PAPER_SIZES:
            if candidate.lower() == name.lower():
                return name
        if not candidate:
            raise ValueError("page size must not be empty")
        return candidate


class PageBreakConfig(_ConfigModel):
    """Page-break policy."""

    before_h1: bool = True
    before_h2: bool = False
    before_h3: bool = False
    avoid_inside: list[str] = Field(default_factory=lambda: ["pre", "code", "table"])

    def breaks_before(self, level: int) -> bool:
        """Return whether a heading of ``level`` starts a new page."""
        return {1: self.before_h1, 2: self.before_h2, 3: self.before_h3}.get(level, False)


class MermaidLayoutConfig(_ConfigModel):
    """Layout tuning forwarded to the Mermaid flowchart renderer."""

    node_spacing: int = Field(default=50, ge=0)
    rank_spacing: int = Field(default=50, ge=0)
    curve_style: str = "basis"
    padding: int = Field(default=15, ge=0)
    use_elk_renderer: bool = False
    merge_edges: bool = False


class CaptionConfig(_ConfigModel):
    """Caption policy for diagrams."""

    enabled: bool = False
    prefix: str = "Figure"
    format: str = "{prefix} {number}: {title}"
    auto_number: bool = True
    extract_title: bool = True


class MermaidConfig(_ConfigModel):
    """Diagram rendering options."""

    enabled: bool = True
    theme: Literal["default", "base", "dark", "forest", "neutral"] = "base"
    width: int = Field(default=1600, gt=0)
    background_color: str = "transparent"
    scale: float = Field(default=2, gt=0)
    timeout: float = Field(default=10, gt=0)
    theme_variables: dict[str, Any] | None = None
    layout: MermaidLayoutConfig = Field(default_factory=MermaidLayoutConfig)
    captions: CaptionConfig = Field(default_factory=CaptionConfig)

    @property
    def transparent(self) -> bool:
        return self.background_color.strip().lower() == "transparent"


class LayoutEngineConfig(_ConfigModel):
    """External layout engine invocation."""

    timeout: float = Field(default=60, gt=0)
    command: list[str] | None = None


class DocumentConfig(_ConfigModel):
    """Fully populated settings for one conversion."""

    output: Path | None = None
    font: FontConfig = Field(default_factory=FontConfig)
    page: PageConfig = Field(default_factory=PageConfig)
    page_break: PageBreakConfig = Field(default_factory=PageBreakConfig)
    mermaid: MermaidConfig = Field(default_factory=MermaidConfig)
    layout: LayoutEngineConfig = Field(default_factory=LayoutEngineConfig)
    css: Path | None = None
    theme: str | None = None
    debug: bool = False

    def to_mapping(self) -> dict[str, Any]:
        """Return the configuration as a camelCase mapping."""
        return self.model_dump(by_alias=True)

    def merged(self, overrides: DocumentConfig | Mapping[str, Any] | None) -> DocumentConfig:
        """Return a new configuration with ``overrides`` deep-merged on top."""
        return merge_config(self, overrides)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base`` recursively.

    Mappings merge key by key, lists and scalars replace wholesale and
    ``None`` values in ``override`` never erase a value from ``base``.
    """
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = deep_merge(current, value)
        elif isinstance(value, Mapping):
            result[key] = dict(value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    return result


def normalise_keys(model: type[BaseModel], data: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite snake_case field names into their camelCase aliases.

    Free-form mappings such as ``themeVariables`` are copied untouched and
    unknown keys are preserved so validation can report them.
    """
    by_key: dict[str, tuple[str, Any]] = {}
    for name, field in model.model_fields.items():
        alias = field.alias or name
        by_key[name] = (alias, field.annotation)
        by_key[alias] = (alias, field.annotation)

    result: dict[str, Any] = {}
    for key, value in data.items():
        alias, annotation = by_key.get(key, (key, None))
        if (
            isinstance(value, Mapping)
            and isinstance(annotation, type)
            and issubclass(annotation, BaseModel)
        ):
            value = normalise_keys(annotation, value)
        result[alias] = value
    return result


def merge_config(
    base: DocumentConfig,
    overrides: DocumentConfig | Mapping[str, Any] | None,
) -> DocumentConfig:
    """Deep-merge overrides over a configuration and validate the result."""
    if overrides is None:
        return base.model_copy(deep=True)
    if isinstance(overrides, DocumentConfig):
        payload = overrides.to_mapping()
    else:
        payload = normalise_keys(DocumentConfig, overrides)
    merged = deep_merge(base.to_mapping(), payload)
    return DocumentConfig.model_validate(merged)


__all__ = [
    "CaptionConfig",
    "DocumentConfig",
    "FontConfig",
    "LayoutEngineConfig",
    "MarginConfig",
    "MermaidConfig",
    "MermaidLayoutConfig",
    "PAPER_SIZES",
    "PageBreakConfig",
    "PageConfig",
    "deep_merge",
    "merge_config",
    "normalise_keys",
]
