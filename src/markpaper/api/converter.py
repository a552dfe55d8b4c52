"""High-level conversion entry points."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any

from markpaper.core.build import PdfGenerator
from markpaper.core.config import DocumentConfig
from markpaper.core.diagnostics import DiagnosticEmitter, LoggingEmitter
from markpaper.core.loader import apply_overrides, load_config


logger = logging.getLogger(__name__)

ConfigOverrides = DocumentConfig | Mapping[str, Any]


class MarkPaper:
    """Convert Markdown files to PDF with a persistent configuration.

    Without an explicit ``config``, the configuration file discovered from
    the current directory (or ``config_path``) is layered over the defaults.
    Mapping overrides are deep-merged on top of that; a complete
    ``DocumentConfig`` replaces it.
    """

    def __init__(
        self,
        config: ConfigOverrides | None = None,
        *,
        config_path: Path | str | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        if isinstance(config, DocumentConfig):
            self._config = config.model_copy(deep=True)
        else:
            self._config = apply_overrides(load_config(config_path), config)
        self._emitter_override = emitter
        self.emitter = emitter or LoggingEmitter(debug_enabled=self._config.debug)

    def convert(self, input_path: Path | str, output_path: Path | str | None = None) -> Path:
        """Convert ``input_path`` and return the written PDF path."""
        source = Path(input_path)
        target = Path(output_path) if output_path is not None else self._output_path(source)
        generator = PdfGenerator(self._config, emitter=self.emitter)
        return generator.generate(source, target)

    def _output_path(self, input_path: Path) -> Path:
        if self._config.output is not None:
            return Path(self._config.output)
        return input_path.with_suffix(".pdf")

    def update_config(self, overrides: ConfigOverrides) -> DocumentConfig:
        """Deep-merge ``overrides`` into the current configuration."""
        if isinstance(overrides, DocumentConfig):
            self._config = self._config.merged(overrides)
        else:
            self._config = apply_overrides(self._config, overrides)
        if self._emitter_override is None:
            self.emitter = LoggingEmitter(debug_enabled=self._config.debug)
        return self.get_config()

    def get_config(self) -> DocumentConfig:
        """Return a copy of the current configuration."""
        return self._config.model_copy(deep=True)


def convert_markdown_to_pdf(
    input_path: Path | str,
    output_path: Path | str | None = None,
    config: ConfigOverrides | None = None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> Path:
    """Convert one Markdown file to PDF in a single call."""
    return MarkPaper(config, emitter=emitter).convert(input_path, output_path)


__all__ = ["MarkPaper", "convert_markdown_to_pdf"]
