from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from markpaper.adapters import vivliostyle
from markpaper.core import build
from markpaper.core.build import DOCUMENT_FILENAME, PdfGenerator, build_session
from markpaper.core.config import DocumentConfig
from markpaper.core.diagrams import DiagramBlock, RenderResult
from markpaper.core.exceptions import BuildError, InputError, LayoutEngineError, is_logged


_FAKE_PDF = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF"

SOURCE = """# Report

Intro paragraph.

```mermaid
graph TD
  title "Pipeline"
  A --> B
```

```mermaid
broken
```
"""


class _RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: dict[str, Any]) -> None:
        self.events.append((name, dict(payload)))


class _FakeSandbox:
    def __init__(self) -> None:
        self.blocks: list[DiagramBlock] = []
        self.output_dir: Path | None = None
        self.cleanup_calls = 0

    def process_diagrams(self, blocks: list[DiagramBlock], output_dir: Path) -> list[RenderResult]:
        self.blocks = list(blocks)
        self.output_dir = output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        results = []
        for block in blocks:
            if "broken" in block.content:
                results.append(RenderResult.placeholder(block))
                continue
            image = output_dir / f"{block.id}.png"
            image.write_bytes(b"\x89PNG")
            results.append(
                RenderResult(block.id, image_path=image, caption=block.caption, title=block.title)
            )
        return results

    def cleanup(self) -> None:
        self.cleanup_calls += 1


class _LayoutRecorder:
    def __init__(self, *, error: BaseException | None = None) -> None:
        self.error = error
        self.html_path: Path | None = None
        self.document = ""

    def __call__(
        self, html_path: Path, output_path: Path, config: DocumentConfig, emitter: Any
    ) -> Path:
        self.html_path = html_path
        self.document = html_path.read_text(encoding="utf-8")
        if self.error is not None:
            raise self.error
        output_path.write_bytes(_FAKE_PDF)
        return output_path


def _generator(
    config: DocumentConfig | None = None,
    *,
    sandbox: _FakeSandbox | None = None,
    layout: _LayoutRecorder | None = None,
    emitter: _RecordingEmitter | None = None,
) -> PdfGenerator:
    fake_sandbox = sandbox or _FakeSandbox()
    return PdfGenerator(
        config,
        emitter=emitter,
        sandbox_factory=lambda _config, _emitter: fake_sandbox,
        layout_engine=layout or _LayoutRecorder(),
    )


def test_end_to_end_build_produces_pdf_and_removes_workspace(tmp_path: Path) -> None:
    source = tmp_path / "report.md"
    source.write_text(SOURCE, encoding="utf-8")
    output = tmp_path / "out" / "report.pdf"
    sandbox = _FakeSandbox()
    layout = _LayoutRecorder()
    emitter = _RecordingEmitter()
    config = DocumentConfig.model_validate({"mermaid": {"captions": {"enabled": True}}})

    result = _generator(config, sandbox=sandbox, layout=layout, emitter=emitter).generate(
        source, output
    )

    assert result == output
    assert output.stat().st_size > 0
    assert [block.id for block in sandbox.blocks] == ["diagram-0", "diagram-1"]
    assert sandbox.cleanup_calls == 1
    assert layout.html_path is not None
    assert layout.html_path.name == DOCUMENT_FILENAME
    assert sandbox.output_dir == layout.html_path.parent / "diagrams"
    assert not layout.html_path.parent.exists()

    document = layout.document
    assert "<title>Report</title>" in document
    assert 'class="mermaid-image"' in document
    assert 'alt="Pipeline"' in document
    assert "Figure 1: Pipeline" in document
    assert "Figure 2" in document
    assert "data:image/svg+xml;base64," in document

    names = [name for name, _ in emitter.events]
    assert names[0] == "build_started"
    assert "diagrams_extracted" in names
    assert names[-1] == "build_completed"


def test_missing_input_fails_before_creating_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _no_mkdtemp(*args: Any, **kwargs: Any) -> str:
        raise AssertionError("temporary directory must not be created")

    monkeypatch.setattr(build.tempfile, "mkdtemp", _no_mkdtemp)

    with pytest.raises(InputError, match="not found"):
        _generator().generate(tmp_path / "missing.md", tmp_path / "missing.pdf")


def test_document_without_diagrams_skips_sandbox(tmp_path: Path) -> None:
    source = tmp_path / "plain.md"
    source.write_text("# Plain\n\nNo diagrams here.\n", encoding="utf-8")

    def _no_sandbox(_config: Any, _emitter: Any) -> Any:
        raise AssertionError("sandbox must not be created")

    generator = PdfGenerator(sandbox_factory=_no_sandbox, layout_engine=_LayoutRecorder())

    assert generator.generate(source, tmp_path / "plain.pdf").exists()


def test_disabled_diagrams_render_as_code(tmp_path: Path) -> None:
    source = tmp_path / "doc.md"
    source.write_text(SOURCE, encoding="utf-8")
    layout = _LayoutRecorder()

    def _no_sandbox(_config: Any, _emitter: Any) -> Any:
        raise AssertionError("sandbox must not be created")

    config = DocumentConfig.model_validate({"mermaid": {"enabled": False}})
    PdfGenerator(config, sandbox_factory=_no_sandbox, layout_engine=layout).generate(
        source, tmp_path / "doc.pdf"
    )

    assert 'class="hljs language-mermaid"' in layout.document
    assert "mermaid-image" not in layout.document.split("</style>", 1)[1]


def test_layout_failure_is_reported_and_cleans_up(tmp_path: Path) -> None:
    source = tmp_path / "doc.md"
    source.write_text(SOURCE, encoding="utf-8")
    sandbox = _FakeSandbox()
    layout = _LayoutRecorder(error=LayoutEngineError("Vivliostyle exited with status 1"))
    emitter = _RecordingEmitter()

    with pytest.raises(LayoutEngineError) as excinfo:
        _generator(sandbox=sandbox, layout=layout, emitter=emitter).generate(
            source, tmp_path / "doc.pdf"
        )

    assert is_logged(excinfo.value)
    assert emitter.errors == ["Failed to generate PDF: Vivliostyle exited with status 1"]
    assert sandbox.cleanup_calls == 1
    assert layout.html_path is not None
    assert not layout.html_path.parent.exists()


def test_unexpected_failure_is_wrapped(tmp_path: Path) -> None:
    source = tmp_path / "doc.md"
    source.write_text("# Doc\n", encoding="utf-8")
    layout = _LayoutRecorder(error=KeyError("boom"))

    with pytest.raises(BuildError) as excinfo:
        _generator(layout=layout).generate(source, tmp_path / "doc.pdf")

    assert isinstance(excinfo.value.__cause__, KeyError)


def test_undecodable_input_raises_input_error(tmp_path: Path) -> None:
    source = tmp_path / "binary.md"
    source.write_bytes(b"\xff\xfe\x00broken")

    with pytest.raises(InputError, match="Unable to read"):
        _generator().generate(source, tmp_path / "binary.pdf")


def test_build_session_removes_directory(tmp_path: Path) -> None:
    with build_session(root=tmp_path) as session:
        assert session.name.startswith("markpaper-")
        (session / "document.html").write_text("x", encoding="utf-8")

    assert not session.exists()


def test_build_session_removes_directory_on_error(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        with build_session(root=tmp_path) as session:
            raise RuntimeError("fail")

    assert not session.exists()


def test_build_session_cleanup_failure_is_a_warning(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    emitter = _RecordingEmitter()

    def _fail(path: Path) -> None:
        raise PermissionError("locked")

    monkeypatch.setattr(build.shutil, "rmtree", _fail)

    with build_session(emitter, root=tmp_path):
        pass

    assert len(emitter.warnings) == 1
    assert "Failed to clean up temp directory" in emitter.warnings[0]


def test_default_layout_engine_runs_vivliostyle(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = tmp_path / "doc.md"
    source.write_text("# Doc\n", encoding="utf-8")
    output = tmp_path / "doc.pdf"
    calls: list[list[str]] = []

    class _StubResult:
        returncode = 0
        stdout = ""
        stderr = ""

    def fake_run(command: list[str], **kwargs: Any) -> _StubResult:
        calls.append(command)
        Path(command[command.index("-o") + 1]).write_bytes(_FAKE_PDF)
        return _StubResult()

    monkeypatch.setattr(vivliostyle.subprocess, "run", fake_run)
    config = DocumentConfig.model_validate(
        {"page": {"size": "Letter"}, "layout": {"command": ["vivliostyle"], "timeout": 30}}
    )

    PdfGenerator(config).generate(source, output)

    assert output.read_bytes() == _FAKE_PDF
    assert calls[0][:2] == ["vivliostyle", "build"]
    assert calls[0][-4:] == ["--size", "Letter", "--timeout", "30"]


def test_landscape_orientation_is_passed_to_the_layout_engine(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = tmp_path / "doc.md"
    source.write_text("# Wide\n", encoding="utf-8")
    output = tmp_path / "doc.pdf"
    calls: list[list[str]] = []

    class _StubResult:
        returncode = 0
        stdout = ""
        stderr = ""

    def fake_run(command: list[str], **kwargs: Any) -> _StubResult:
        calls.append(command)
        Path(command[command.index("-o") + 1]).write_bytes(_FAKE_PDF)
        return _StubResult()

    monkeypatch.setattr(vivliostyle.subprocess, "run", fake_run)
    config = DocumentConfig.model_validate(
        {
            "page": {"size": "A4", "orientation": "landscape"},
            "layout": {"command": ["vivliostyle"]},
        }
    )

    PdfGenerator(config).generate(source, output)

    size = calls[0][calls[0].index("--size") + 1]
    assert size == "297mm,210mm"
