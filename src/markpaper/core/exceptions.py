"""Custom exception hierarchy for the Markdown to PDF pipeline."""

from __future__ import annotations


class MarkPaperError(RuntimeError):
    """Base exception for conversion failures."""


class InputError(MarkPaperError):
    """Raised when the source document is missing or unreadable."""


class ConfigurationError(MarkPaperError):
    """Raised when a configuration file cannot be loaded or validated."""


class MarkdownConversionError(MarkPaperError):
    """Raised when Markdown cannot be converted into HTML."""


class DiagramRenderError(MarkPaperError):
    """Raised when a single diagram fails to render."""


class BrowserLaunchError(MarkPaperError):
    """Raised when no headless browser profile could be started."""


class LayoutEngineError(MarkPaperError):
    """Raised when the external layout engine fails to produce a PDF."""


class BuildError(MarkPaperError):
    """Raised when a build step fails for an unexpected reason."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


def mark_logged(exc: BaseException) -> BaseException:
    """Flag an exception as already reported to the user."""
    exc._markpaper_logged = True  # type: ignore[attr-defined]  # noqa: SLF001
    return exc


def is_logged(exc: BaseException) -> bool:
    """Return whether an exception was already reported."""
    return bool(getattr(exc, "_markpaper_logged", False))


__all__ = [
    "BrowserLaunchError",
    "BuildError",
    "ConfigurationError",
    "DiagramRenderError",
    "InputError",
    "LayoutEngineError",
    "MarkPaperError",
    "MarkdownConversionError",
    "exception_hint",
    "exception_messages",
    "is_logged",
    "mark_logged",
]
