from __future__ import annotations

from typing import Any

import pytest

from markpaper.adapters.markdown import DocumentRenderer
from markpaper.core.config import CaptionConfig, DocumentConfig
from markpaper.core.diagrams import extract_title, format_caption


def _renderer(**captions: Any) -> DocumentRenderer:
    return DocumentRenderer(DocumentConfig.model_validate({"mermaid": {"captions": captions}}))


DOCUMENT = """# Diagrams

```mermaid
graph TD
  A --> B
```

Some text.

~~~mermaid
sequenceDiagram
  Alice->>Bob: Hi
~~~

```python
print("not a diagram")
```

````mermaid
pie
  "a" : 1
````
"""


def test_extracts_blocks_in_document_order_with_sequential_ids() -> None:
    blocks = DocumentRenderer().extract_diagrams(DOCUMENT)

    assert [block.id for block in blocks] == ["diagram-0", "diagram-1", "diagram-2"]
    assert blocks[0].content == "graph TD\n  A --> B"
    assert blocks[1].content.startswith("sequenceDiagram")
    assert blocks[2].content.startswith("pie")
    assert all(block.caption is None and block.title is None for block in blocks)


def test_extraction_count_matches_rendered_placeholders() -> None:
    renderer = DocumentRenderer()

    blocks = renderer.extract_diagrams(DOCUMENT)
    html = renderer.convert(DOCUMENT)

    assert html.count('class="mermaid-container') == len(blocks)


NESTED_DOCUMENT = """# Writing diagrams

Authors write diagrams like this:

````markdown
```mermaid
graph TD
  X --> Y
```
````

The rendered result:

```mermaid
graph LR
  A --> B
```
"""


def test_diagram_quoted_inside_another_code_block_is_not_extracted() -> None:
    renderer = _renderer(enabled=True)

    blocks = renderer.extract_diagrams(NESTED_DOCUMENT)
    html = renderer.convert(NESTED_DOCUMENT)

    assert [(block.id, block.content) for block in blocks] == [
        ("diagram-0", "graph LR\n  A --> B")
    ]
    assert blocks[0].caption == "Figure 1"
    assert html.count('class="mermaid-container') == len(blocks)


def test_diagram_language_from_attribute_fence() -> None:
    source = "```{ .mermaid }\ngraph TD\n  A --> B\n```\n\n```{ .python }\nx = 1\n```\n"
    renderer = DocumentRenderer()

    blocks = renderer.extract_diagrams(source)

    assert [block.content for block in blocks] == ["graph TD\n  A --> B"]
    assert renderer.convert(source).count('class="mermaid-container') == 1


def test_windows_newlines_are_normalised() -> None:
    blocks = DocumentRenderer().extract_diagrams("```mermaid\r\ngraph LR\r\n  A-->B\r\n```\r\n")

    assert len(blocks) == 1
    assert blocks[0].content == "graph LR\n  A-->B"


def test_indented_or_unclosed_fences_are_ignored() -> None:
    source = "    ```mermaid\n    graph TD\n    ```\n\n```mermaid\ngraph TD\n"
    assert DocumentRenderer().extract_diagrams(source) == []


def test_caption_numbering_counts_only_captioned_diagrams() -> None:
    blocks = _renderer(enabled=True).extract_diagrams(DOCUMENT)

    assert [block.caption for block in blocks] == ["Figure 1", "Figure 2", "Figure 3"]


def test_caption_includes_extracted_title() -> None:
    source = '```mermaid\ngraph TD\n  title "Login flow"\n  A --> B\n```\n'

    (block,) = _renderer(enabled=True, prefix="Diagram").extract_diagrams(source)

    assert block.title == "Login flow"
    assert block.caption == "Diagram 1: Login flow"


def test_counter_resets_on_each_extraction() -> None:
    renderer = _renderer(enabled=True)

    renderer.extract_diagrams(DOCUMENT)
    blocks = renderer.extract_diagrams(DOCUMENT)

    assert blocks[0].caption == "Figure 1"


def test_each_renderer_owns_its_counter() -> None:
    first = _renderer(enabled=True)
    second = _renderer(enabled=True)

    first.extract_diagrams(DOCUMENT)
    (block,) = second.extract_diagrams("```mermaid\ngraph TD\n```\n")

    assert block.caption == "Figure 1"


def test_no_caption_without_auto_numbering_but_title_is_kept() -> None:
    source = "```mermaid\ngraph TD\n  title[Overview]\n```\n"

    (block,) = _renderer(enabled=True, autoNumber=False).extract_diagrams(source)

    assert block.caption is None
    assert block.title == "Overview"


def test_title_extraction_can_be_disabled() -> None:
    source = '```mermaid\ngraph TD\n  title "Ignored"\n```\n'

    (block,) = _renderer(enabled=True, extractTitle=False).extract_diagrams(source)

    assert block.title is None
    assert block.caption == "Figure 1"


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ('graph TD\n  title "Quoted"\n  A-->B', "Quoted"),
        ("graph TD\n  title: 'Single'\n", "Single"),
        ('graph TD\ntitle = "Assigned"', "Assigned"),
        ("graph TD\n  title[Bracketed]\n", "Bracketed"),
        ("graph TD\n%% title[Commented]\n", "Commented"),
        ('%%{init: {"theme": "dark", "title": "Directive"}}%%\ngraph TD', "Directive"),
        ('%%{init: {"subtitle": "Sub", "title": "Main"}}%%\ngraph TD', "Main"),
        ('%%{init: {"subtitle": "Only a subtitle"}}%%\ngraph TD', None),
        ("---\ntitle: Front Matter\n---\ngraph TD", "Front Matter"),
        ("graph TD\n  A-->B", None),
    ],
)
def test_extract_title_patterns(content: str, expected: str | None) -> None:
    assert extract_title(content) == expected


def test_first_declared_pattern_wins() -> None:
    content = '---\ntitle: From front matter\n---\ngraph TD\n  title[From bracket]\n'

    assert extract_title(content) == "From bracket"


@pytest.mark.parametrize(
    ("template", "title", "expected"),
    [
        ("{prefix} {number}: {title}", "Flow", "Figure 3: Flow"),
        ("{prefix} {number}: {title}", None, "Figure 3"),
        ("{number}. {title}", "Flow", "3. Flow"),
        ("{prefix} {number}", "Flow", "Figure 3"),
    ],
)
def test_format_caption(template: str, title: str | None, expected: str) -> None:
    policy = CaptionConfig(enabled=True, format=template)

    assert format_caption(policy, 3, title) == expected
