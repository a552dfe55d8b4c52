"""Invoke the Vivliostyle CLI to paginate HTML into PDF."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path
import shutil
import subprocess

from markpaper.core.diagnostics import DiagnosticEmitter, ensure_emitter
from markpaper.core.exceptions import LayoutEngineError


logger = logging.getLogger(__name__)

VIVLIOSTYLE_EXECUTABLE = "vivliostyle"
NPX_PACKAGE = "@vivliostyle/cli"
DEFAULT_TIMEOUT = 60.0
_TAIL_LINES = 20

# Portrait dimensions of the presets accepted by `vivliostyle build --size`.
PAGE_DIMENSIONS = {
    "a5": ("148mm", "210mm"),
    "a4": ("210mm", "297mm"),
    "a3": ("297mm", "420mm"),
    "b5": ("176mm", "250mm"),
    "b4": ("250mm", "353mm"),
    "jis-b5": ("182mm", "257mm"),
    "jis-b4": ("257mm", "364mm"),
    "letter": ("8.5in", "11in"),
    "legal": ("8.5in", "14in"),
    "ledger": ("11in", "17in"),
}


def resolve_command(configured: Sequence[str] | None = None) -> list[str]:
    """Return the argv prefix used to start Vivliostyle."""
    if configured:
        return list(configured)
    executable = shutil.which(VIVLIOSTYLE_EXECUTABLE)
    if executable:
        return [executable]
    npx = shutil.which("npx")
    if npx:
        return [npx, "--yes", NPX_PACKAGE]
    raise LayoutEngineError(
        "Vivliostyle CLI not found. Install it with 'npm install -g @vivliostyle/cli' "
        "or make 'npx' available on PATH."
    )


def size_argument(page_size: str | None, orientation: str = "portrait") -> str | None:
    """Return the `--size` value for ``page_size`` in ``orientation``.

    Vivliostyle gives `--size` precedence over the stylesheet `@page` rule,
    so landscape pages are passed as explicit width,height dimensions.
    Returns ``None`` when the size cannot be expressed, leaving the page
    size to the stylesheet.
    """
    if not page_size:
        return None
    if orientation != "landscape":
        return page_size
    dimensions = PAGE_DIMENSIONS.get(page_size.strip().lower())
    if dimensions is None:
        parts = [part.strip() for part in page_size.split(",")]
        if len(parts) != 2 or not all(parts):
            logger.debug("No landscape dimensions known for page size %s", page_size)
            return None
        dimensions = (parts[0], parts[1])
    width, height = dimensions
    return f"{height},{width}"


def build_command(
    prefix: Sequence[str],
    html_path: Path,
    output_path: Path,
    *,
    page_size: str | None = None,
    orientation: str = "portrait",
    timeout: float = DEFAULT_TIMEOUT,
) -> list[str]:
    command = [*prefix, "build", str(html_path), "-o", str(output_path)]
    size = size_argument(page_size, orientation)
    if size:
        command.extend(["--size", size])
    command.extend(["--timeout", str(int(timeout))])
    return command


def _tail(text: str | None) -> str:
    if not text:
        return ""
    lines = text.strip().splitlines()
    return "\n".join(lines[-_TAIL_LINES:])


def run_layout_engine(
    html_path: Path,
    output_path: Path,
    *,
    page_size: str | None = None,
    orientation: str = "portrait",
    timeout: float = DEFAULT_TIMEOUT,
    command: Sequence[str] | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> Path:
    """Run Vivliostyle on ``html_path`` and return the produced PDF path.

    The process is bounded by ``timeout`` seconds. Diagnostics printed on
    stderr by a successful run are surfaced as warnings.
    """
    emitter = ensure_emitter(emitter)
    argv = build_command(
        resolve_command(command),
        html_path,
        output_path,
        page_size=page_size,
        orientation=orientation,
        timeout=timeout,
    )
    logger.debug("Running command: %s", " ".join(argv))

    try:
        process = subprocess.run(
            argv,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise LayoutEngineError(
            f"Vivliostyle did not finish within {timeout:g} seconds."
        ) from exc
    except OSError as exc:
        raise LayoutEngineError(f"Failed to execute Vivliostyle: {exc}") from exc

    if process.returncode != 0:
        detail = _tail(process.stderr) or _tail(process.stdout)
        message = f"Vivliostyle exited with status {process.returncode}"
        if detail:
            message = f"{message}:\n{detail}"
        raise LayoutEngineError(message)

    if process.stderr and process.stderr.strip():
        emitter.warning(f"Vivliostyle warnings: {process.stderr.strip()}")

    if not output_path.exists():
        raise LayoutEngineError(
            f"Vivliostyle reported success but did not produce {output_path}"
        )

    logger.debug("Vivliostyle completed successfully")
    return output_path


__all__ = [
    "DEFAULT_TIMEOUT",
    "NPX_PACKAGE",
    "PAGE_DIMENSIONS",
    "VIVLIOSTYLE_EXECUTABLE",
    "build_command",
    "resolve_command",
    "run_layout_engine",
    "size_argument",
]
