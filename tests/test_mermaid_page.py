from __future__ import annotations

import json
import re

from markpaper.adapters.mermaid import (
    ENHANCED_THEME_VARIABLES,
    build_mermaid_config,
    diagram_source,
    render_page,
)
from markpaper.adapters.mermaid.page import MERMAID_SCRIPT_URL, layout_directive
from markpaper.core.config import MermaidConfig


def test_default_configuration_object() -> None:
    payload = build_mermaid_config(MermaidConfig())

    assert payload["theme"] == "base"
    assert payload["startOnLoad"] is True
    assert payload["securityLevel"] == "loose"
    assert payload["flowchart"] == {
        "nodeSpacing": 50,
        "rankSpacing": 50,
        "curve": "basis",
        "padding": 15,
        "htmlLabels": True,
    }
    assert payload["themeVariables"] == ENHANCED_THEME_VARIABLES
    json.dumps(payload)


def test_enhanced_palette_size() -> None:
    assert len(ENHANCED_THEME_VARIABLES) == 36


def test_custom_theme_variables_replace_palette() -> None:
    config = MermaidConfig.model_validate({"themeVariables": {"primaryColor": "#ff0000"}})

    assert build_mermaid_config(config)["themeVariables"] == {"primaryColor": "#ff0000"}


def test_empty_theme_variables_suppress_the_palette() -> None:
    config = MermaidConfig.model_validate({"themeVariables": {}})

    assert build_mermaid_config(config)["themeVariables"] == {}


def test_named_theme_without_variables_has_no_palette() -> None:
    payload = build_mermaid_config(MermaidConfig(theme="dark"))

    assert payload["theme"] == "dark"
    assert "themeVariables" not in payload


def test_layout_knobs_are_forwarded() -> None:
    config = MermaidConfig.model_validate(
        {"layout": {"nodeSpacing": 80, "rankSpacing": 90, "curveStyle": "linear", "padding": 4}}
    )

    flowchart = build_mermaid_config(config)["flowchart"]

    assert (flowchart["nodeSpacing"], flowchart["rankSpacing"]) == (80, 90)
    assert (flowchart["curve"], flowchart["padding"]) == ("linear", 4)


def test_elk_directive_is_prefixed_when_requested() -> None:
    config = MermaidConfig.model_validate(
        {"layout": {"useElkRenderer": True, "mergeEdges": True}}
    )

    source = diagram_source("graph TD\n  A-->B", config)

    first_line, rest = source.split("\n", 1)
    assert rest == "graph TD\n  A-->B"
    match = re.fullmatch(r"%%\{init: (?P<body>.*)\}%%", first_line)
    assert match is not None
    assert json.loads(match.group("body")) == {
        "flowchart": {"defaultRenderer": "elk"},
        "elk": {"mergeEdges": True},
    }


def test_no_directive_by_default() -> None:
    assert layout_directive(MermaidConfig()) is None
    assert diagram_source("graph TD", MermaidConfig()) == "graph TD"


def test_render_page_embeds_escaped_diagram_and_config() -> None:
    config = MermaidConfig(background_color="white")

    page = render_page("graph TD\n  A-->B[<b>x</b>]", config)

    assert MERMAID_SCRIPT_URL in page
    assert '<div id="mermaid-diagram">' in page
    assert "A--&gt;B[&lt;b&gt;x&lt;/b&gt;]" in page
    assert "background: white;" in page
    assert "mermaid.initialize(" in page


def test_render_page_escapes_script_terminators() -> None:
    config = MermaidConfig.model_validate(
        {"themeVariables": {"fontFamily": "</script><script>alert(1)"}}
    )

    page = render_page("graph TD", config)

    assert "</script><script>alert(1)" not in page.split("mermaid.initialize(", 1)[1]
