"""HTML page and Mermaid configuration used to render one diagram."""

from __future__ import annotations

import html
import json
from typing import Any

from markpaper.core.config import MermaidConfig


MERMAID_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"
DIAGRAM_SELECTOR = "#mermaid-diagram svg"
DEFAULT_FONT_FAMILY = (
    '"SF Pro Display", -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif'
)

# Palette applied when the ``base`` theme is selected without custom variables.
ENHANCED_THEME_VARIABLES: dict[str, str] = {
    "primaryColor": "#f8fafc",
    "primaryTextColor": "#1e293b",
    "primaryBorderColor": "#3b82f6",
    "secondaryColor": "#e0f2fe",
    "secondaryTextColor": "#0f172a",
    "secondaryBorderColor": "#0ea5e9",
    "tertiaryColor": "#fef3c7",
    "tertiaryTextColor": "#92400e",
    "tertiaryBorderColor": "#f59e0b",
    "background": "#ffffff",
    "lineColor": "#64748b",
    "mainBkg": "#ffffff",
    "secondBkg": "#f1f5f9",
    "tertiaryBkg": "#e2e8f0",
    "fontFamily": DEFAULT_FONT_FAMILY,
    "fontSize": "14px",
    "nodeTextColor": "#1e293b",
    "nodeBorder": "#3b82f6",
    "clusterBkg": "#f8fafc",
    "clusterBorder": "#e2e8f0",
    "actorBkg": "#ffffff",
    "actorBorder": "#3b82f6",
    "actorTextColor": "#1e293b",
    "activationBkg": "#dbeafe",
    "activationBorderColor": "#3b82f6",
    "labelBoxBkgColor": "#f8fafc",
    "labelBoxBorderColor": "#e2e8f0",
    "labelTextColor": "#1e293b",
    "git0": "#3b82f6",
    "git1": "#10b981",
    "git2": "#f59e0b",
    "git3": "#ef4444",
    "git4": "#8b5cf6",
    "git5": "#06b6d4",
    "git6": "#84cc16",
    "git7": "#f97316",
}


def effective_theme_variables(config: MermaidConfig) -> dict[str, Any] | None:
    """Return user theme variables, or the enhanced palette for ``base``."""
    if config.theme_variables is not None:
        return dict(config.theme_variables)
    if config.theme == "base":
        return dict(ENHANCED_THEME_VARIABLES)
    return None


def build_mermaid_config(config: MermaidConfig) -> dict[str, Any]:
    """Return the JSON-serialisable object passed to ``mermaid.initialize``."""
    layout = config.layout
    payload: dict[str, Any] = {
        "theme": config.theme,
        "startOnLoad": True,
        "securityLevel": "loose",
        "flowchart": {
            "nodeSpacing": layout.node_spacing,
            "rankSpacing": layout.rank_spacing,
            "curve": layout.curve_style,
            "padding": layout.padding,
            "htmlLabels": True,
        },
    }
    variables = effective_theme_variables(config)
    if variables is not None:
        payload["themeVariables"] = variables
    return payload


def layout_directive(config: MermaidConfig) -> str | None:
    """Return the inline init directive selecting the ELK layout, if requested."""
    layout = config.layout
    if not layout.use_elk_renderer:
        return None
    directive = {
        "flowchart": {"defaultRenderer": "elk"},
        "elk": {"mergeEdges": layout.merge_edges},
    }
    return f"%%{{init: {json.dumps(directive)}}}%%"


def diagram_source(content: str, config: MermaidConfig) -> str:
    """Prefix the diagram text with the layout directive when needed."""
    directive = layout_directive(config)
    if directive is None:
        return content
    return f"{directive}\n{content}"


def _script_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload).replace("</", "<\\/")


def render_page(content: str, config: MermaidConfig) -> str:
    """Return the standalone HTML document rendering one diagram."""
    variables = effective_theme_variables(config) or {}
    font_family = variables.get("fontFamily") or DEFAULT_FONT_FAMILY
    source = html.escape(diagram_source(content, config), quote=False)
    mermaid_config = _script_json(build_mermaid_config(config))
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <script src="{MERMAID_SCRIPT_URL}"></script>
  <style>
    body {{
      margin: 0;
      padding: 40px;
      background: {config.background_color};
      width: 100%;
      font-family: {font_family};
    }}
    #mermaid-diagram {{
      display: flex;
      justify-content: center;
      align-items: center;
      width: 100%;
    }}
    .mermaid {{
      width: 100%;
      max-width: 1400px;
    }}
    .mermaid svg {{
      max-width: 100%;
      height: auto;
    }}
  </style>
</head>
<body>
  <div id="mermaid-diagram">
    <div class="mermaid">
{source}
    </div>
  </div>
  <script>
    mermaid.initialize({mermaid_config});
  </script>
</body>
</html>
"""


__all__ = [
    "DEFAULT_FONT_FAMILY",
    "DIAGRAM_SELECTOR",
    "ENHANCED_THEME_VARIABLES",
    "MERMAID_SCRIPT_URL",
    "build_mermaid_config",
    "diagram_source",
    "effective_theme_variables",
    "layout_directive",
    "render_page",
]
