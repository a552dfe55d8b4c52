"""Mermaid diagram rendering through a headless browser."""

from __future__ import annotations

from .page import (
    ENHANCED_THEME_VARIABLES,
    build_mermaid_config,
    diagram_source,
    effective_theme_variables,
    render_page,
)
from .sandbox import LAUNCH_PROFILES, LaunchProfile, MermaidRenderer, resolve_executable


__all__ = [
    "ENHANCED_THEME_VARIABLES",
    "LAUNCH_PROFILES",
    "LaunchProfile",
    "MermaidRenderer",
    "build_mermaid_config",
    "diagram_source",
    "effective_theme_variables",
    "render_page",
    "resolve_executable",
]
