"""Markdown conversion utilities for MarkPaper."""

from __future__ import annotations

from .nodes import (
    AVOID_PAGE_BREAK,
    DIAGRAM_CONTAINER_CLASS,
    NODE_RENDERERS,
    PAGE_BREAK_BEFORE,
    NodeKind,
    PageLayoutExtension,
    apply_node_rules,
    heading_slug,
)
from .renderer import MARKDOWN_EXTENSIONS, DocumentRenderer


__all__ = [
    "AVOID_PAGE_BREAK",
    "DIAGRAM_CONTAINER_CLASS",
    "MARKDOWN_EXTENSIONS",
    "NODE_RENDERERS",
    "PAGE_BREAK_BEFORE",
    "DocumentRenderer",
    "NodeKind",
    "PageLayoutExtension",
    "apply_node_rules",
    "heading_slug",
]
