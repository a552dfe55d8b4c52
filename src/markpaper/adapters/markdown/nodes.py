"""Per-node-kind rendering rules applied to Python-Markdown output."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import re

from bs4 import BeautifulSoup, Tag
from markdown import Markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor

from markpaper.core.config import DocumentConfig
from markpaper.core.diagrams import DIAGRAM_LANGUAGE


PAGE_BREAK_BEFORE = "page-break-before"
AVOID_PAGE_BREAK = "avoid-page-break"
CODE_BLOCK_CLASS = f"code-block {AVOID_PAGE_BREAK}"
TABLE_CONTAINER_CLASS = f"table-container {AVOID_PAGE_BREAK}"
DIAGRAM_CONTAINER_CLASS = f"mermaid-container {AVOID_PAGE_BREAK}"
DIAGRAM_CLASS = "mermaid"

_LANGUAGE_PREFIX = "language-"
_VALID_LANGUAGE = re.compile(r"^[A-Za-z0-9_+-]*$")
_NON_WORD = re.compile(r"[^\w]+")
_HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}


class NodeKind(Enum):
    """Closed set of node kinds with custom rendering."""

    HEADING = "heading"
    CODE = "code"
    DIAGRAM = "diagram"
    TABLE = "table"


def heading_slug(text: str) -> str:
    """Lower-case ``text`` and collapse every run of non-word characters to ``-``."""
    return _NON_WORD.sub("-", text.lower())


def code_language(pre: Tag) -> str | None:
    """Return the fence language recorded on a ``<pre><code>`` block."""
    for node in (pre.find("code"), pre):
        if not isinstance(node, Tag):
            continue
        for css_class in node.get("class") or ():
            if css_class.startswith(_LANGUAGE_PREFIX):
                return css_class[len(_LANGUAGE_PREFIX) :]
    return None


def classify(node: Tag, *, diagrams_enabled: bool) -> NodeKind | None:
    """Map an element to the node kind that renders it."""
    if node.name in _HEADING_TAGS:
        return NodeKind.HEADING
    if node.name == "table":
        return NodeKind.TABLE
    if node.name == "pre" and isinstance(node.find("code"), Tag):
        if diagrams_enabled and code_language(node) == DIAGRAM_LANGUAGE:
            return NodeKind.DIAGRAM
        return NodeKind.CODE
    return None


def render_heading(soup: BeautifulSoup, node: Tag, config: DocumentConfig) -> None:
    level = _HEADING_TAGS[node.name]
    node["id"] = heading_slug(node.get_text())
    if level <= 3 and config.page_break.breaks_before(level):
        classes = list(node.get("class") or [])
        if PAGE_BREAK_BEFORE not in classes:
            classes.append(PAGE_BREAK_BEFORE)
        node["class"] = classes


def render_code(soup: BeautifulSoup, node: Tag, config: DocumentConfig) -> None:
    language = code_language(node)
    code_text = node.get_text()
    css_class = "hljs"
    if language and _VALID_LANGUAGE.match(language):
        css_class = f"hljs {_LANGUAGE_PREFIX}{language}"

    wrapper = soup.new_tag("div", attrs={"class": CODE_BLOCK_CLASS})
    pre = soup.new_tag("pre")
    code = soup.new_tag("code", attrs={"class": css_class})
    code.string = code_text
    pre.append(code)
    wrapper.append(pre)
    node.replace_with(wrapper)


def render_diagram(soup: BeautifulSoup, node: Tag, config: DocumentConfig) -> None:
    container = soup.new_tag("div", attrs={"class": DIAGRAM_CONTAINER_CLASS})
    diagram = soup.new_tag("div", attrs={"class": DIAGRAM_CLASS})
    diagram.string = node.get_text().rstrip("\n")
    container.append(diagram)
    node.replace_with(container)


def render_table(soup: BeautifulSoup, node: Tag, config: DocumentConfig) -> None:
    node.wrap(soup.new_tag("div", attrs={"class": TABLE_CONTAINER_CLASS}))


NodeRenderer = Callable[[BeautifulSoup, Tag, DocumentConfig], None]

NODE_RENDERERS: dict[NodeKind, NodeRenderer] = {
    NodeKind.HEADING: render_heading,
    NodeKind.CODE: render_code,
    NodeKind.DIAGRAM: render_diagram,
    NodeKind.TABLE: render_table,
}


def apply_node_rules(html: str, config: DocumentConfig) -> str:
    """Re-render headings, code blocks, diagrams and tables in ``html``."""
    soup = BeautifulSoup(html, "html.parser")
    diagrams_enabled = config.mermaid.enabled
    candidates = soup.find_all([*_HEADING_TAGS, "pre", "table"])
    for node in candidates:
        kind = classify(node, diagrams_enabled=diagrams_enabled)
        if kind is None:
            continue
        NODE_RENDERERS[kind](soup, node, config)
    return str(soup)


class _NodeRulesPostprocessor(Postprocessor):
    """Apply node rules once raw HTML placeholders have been restored."""

    def __init__(self, md: Markdown, config: DocumentConfig) -> None:
        super().__init__(md)
        self.config = config

    def run(self, text: str) -> str:
        return apply_node_rules(text, self.config)


class PageLayoutExtension(Extension):
    """Register the node rule postprocessor."""

    def __init__(self, config: DocumentConfig, **kwargs: object) -> None:
        self.document_config = config
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        processor = _NodeRulesPostprocessor(md, self.document_config)
        # Lowest priority so it runs after the raw HTML postprocessor.
        md.postprocessors.register(processor, "markpaper_node_rules", priority=1)


__all__ = [
    "AVOID_PAGE_BREAK",
    "DIAGRAM_CONTAINER_CLASS",
    "NODE_RENDERERS",
    "PAGE_BREAK_BEFORE",
    "NodeKind",
    "PageLayoutExtension",
    "apply_node_rules",
    "classify",
    "code_language",
    "heading_slug",
]
