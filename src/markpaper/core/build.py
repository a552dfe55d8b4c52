"""Orchestrate one Markdown to PDF build inside a temporary workspace."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import datetime
import logging
from pathlib import Path
import shutil
import tempfile
from typing import Any

from .config import DocumentConfig
from .diagnostics import DiagnosticEmitter, ensure_emitter
from .exceptions import BuildError, InputError, MarkPaperError, is_logged, mark_logged
from .styles import build_document


logger = logging.getLogger(__name__)

SESSION_PREFIX = "markpaper"
DIAGRAMS_DIRNAME = "diagrams"
DOCUMENT_FILENAME = "document.html"


@contextmanager
def build_session(
    emitter: DiagnosticEmitter | None = None,
    *,
    root: Path | None = None,
) -> Iterator[Path]:
    """Yield a fresh temporary directory removed on every exit path."""
    emitter = ensure_emitter(emitter)
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    directory = Path(
        tempfile.mkdtemp(prefix=f"{SESSION_PREFIX}-{timestamp}-", dir=root)
    )
    logger.debug("Created temporary directory: %s", directory)
    try:
        yield directory
    finally:
        try:
            shutil.rmtree(directory)
        except OSError as exc:
            emitter.warning(f"Failed to clean up temp directory {directory}: {exc}", exc)
        else:
            logger.debug("Cleaned up temporary directory: %s", directory)


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Unable to read input file '{path}': {exc}") from exc


def _default_renderer_factory(config: DocumentConfig, emitter: DiagnosticEmitter) -> Any:
    from markpaper.adapters.markdown import DocumentRenderer

    return DocumentRenderer(config, emitter=emitter)


def _default_sandbox_factory(config: DocumentConfig, emitter: DiagnosticEmitter) -> Any:
    from markpaper.adapters.mermaid import MermaidRenderer

    return MermaidRenderer(config.mermaid, emitter=emitter)


def _default_layout_engine(
    html_path: Path, output_path: Path, config: DocumentConfig, emitter: DiagnosticEmitter
) -> Path:
    from markpaper.adapters.vivliostyle import run_layout_engine

    return run_layout_engine(
        html_path,
        output_path,
        page_size=config.page.size,
        orientation=config.page.orientation,
        timeout=config.layout.timeout,
        command=config.layout.command,
        emitter=emitter,
    )


class PdfGenerator:
    """Drive the renderer, the diagram sandbox and the layout engine.

    The collaborators are created through factories so tests can substitute
    the browser and the subprocess without touching the pipeline itself.
    """

    def __init__(
        self,
        config: DocumentConfig | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
        renderer_factory: Callable[[DocumentConfig, DiagnosticEmitter], Any] | None = None,
        sandbox_factory: Callable[[DocumentConfig, DiagnosticEmitter], Any] | None = None,
        layout_engine: Callable[
            [Path, Path, DocumentConfig, DiagnosticEmitter], Path
        ] | None = None,
        session_root: Path | None = None,
    ) -> None:
        self.config = config or DocumentConfig()
        self.emitter = ensure_emitter(emitter)
        self._renderer_factory = renderer_factory or _default_renderer_factory
        self._sandbox_factory = sandbox_factory or _default_sandbox_factory
        self._layout_engine = layout_engine or _default_layout_engine
        self._session_root = session_root

    def generate(self, input_path: Path | str, output_path: Path | str) -> Path:
        """Convert ``input_path`` into a PDF written to ``output_path``."""
        source_path = Path(input_path)
        target = Path(output_path)
        if not source_path.is_file():
            raise InputError(f"Input file not found: {source_path}")

        self.emitter.event("build_started", {"input": str(source_path), "output": str(target)})
        try:
            with build_session(self.emitter, root=self._session_root) as session:
                with ExitStack() as stack:
                    result = self._run(source_path, target, session, stack)
        except MarkPaperError as exc:
            if not is_logged(exc):
                self.emitter.error(f"Failed to generate PDF: {exc}", exc)
                mark_logged(exc)
            raise
        except Exception as exc:
            message = f"Failed to generate PDF: {exc}"
            self.emitter.error(message, exc)
            raise mark_logged(BuildError(message)) from exc

        self.emitter.event("build_completed", {"output": str(result)})
        return result

    def _run(self, source_path: Path, target: Path, session: Path, stack: ExitStack) -> Path:
        markdown_source = read_source(source_path)
        renderer = self._renderer_factory(self.config, self.emitter)

        results = []
        if self.config.mermaid.enabled:
            blocks = renderer.extract_diagrams(markdown_source)
            self.emitter.event("diagrams_extracted", {"count": len(blocks)})
            if blocks:
                sandbox = self._sandbox_factory(self.config, self.emitter)
                stack.callback(sandbox.cleanup)
                results = sandbox.process_diagrams(blocks, session / DIAGRAMS_DIRNAME)

        html = renderer.convert(markdown_source)
        if self.config.mermaid.enabled:
            html = renderer.splice_diagrams(html, results)

        document = build_document(html, self.config, self.emitter)
        html_path = session / DOCUMENT_FILENAME
        html_path.write_text(document, encoding="utf-8")
        logger.debug("Created HTML file: %s", html_path)

        target.parent.mkdir(parents=True, exist_ok=True)
        self.emitter.event("layout_engine", {"html": str(html_path), "output": str(target)})
        return self._layout_engine(html_path, target, self.config, self.emitter)


__all__ = [
    "DIAGRAMS_DIRNAME",
    "DOCUMENT_FILENAME",
    "PdfGenerator",
    "build_session",
    "read_source",
]
