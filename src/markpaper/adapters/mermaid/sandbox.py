"""Render Mermaid diagrams to PNG inside a disposable headless browser."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import shutil
from typing import Any

from markpaper.core.config import MermaidConfig
from markpaper.core.diagnostics import DiagnosticEmitter, ensure_emitter
from markpaper.core.diagrams import DiagramBlock, RenderResult
from markpaper.core.exceptions import BrowserLaunchError, DiagramRenderError, exception_hint

from .page import DIAGRAM_SELECTOR, render_page


logger = logging.getLogger(__name__)

VIEWPORT_HEIGHT = 1200

CHROME_CANDIDATES: tuple[str, ...] = (
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
)


def resolve_executable(candidates: Sequence[str]) -> str | None:
    """Return the first candidate that exists on disk or on ``$PATH``."""
    for candidate in candidates:
        if os.sep in candidate:
            if Path(candidate).exists():
                return candidate
            continue
        resolved = shutil.which(candidate)
        if resolved:
            return resolved
    return None


@dataclass(frozen=True, slots=True)
class LaunchProfile:
    """One way of starting Chromium through Playwright."""

    name: str
    args: tuple[str, ...]
    executables: tuple[str, ...] = field(default=())

    def launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": True, "args": list(self.args)}
        if self.executables:
            executable = resolve_executable(self.executables)
            if executable is None:
                raise BrowserLaunchError(
                    f"No installed browser found among: {', '.join(self.executables)}"
                )
            options["executable_path"] = executable
        return options


# Tried in order, the first profile that launches wins.
LAUNCH_PROFILES: tuple[LaunchProfile, ...] = (
    LaunchProfile(
        name="system-chrome",
        args=(
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--disable-web-security",
            "--disable-features=IsolateOrigins,site-per-process",
        ),
        executables=CHROME_CANDIDATES,
    ),
    LaunchProfile(
        name="bundled-chromium",
        args=("--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"),
    ),
    LaunchProfile(
        name="legacy-headless",
        args=("--headless=old", "--no-sandbox", "--disable-setuid-sandbox"),
    ),
)


def _start_playwright() -> Any:
    from playwright.sync_api import sync_playwright

    # Silence Node.js deprecation spew from the Playwright driver.
    existing_node_opts = os.environ.get("NODE_OPTIONS", "")
    if "--no-deprecation" not in existing_node_opts:
        os.environ["NODE_OPTIONS"] = (existing_node_opts + " --no-deprecation").strip()
    return sync_playwright().start()


def _launch_errors() -> tuple[type[BaseException], ...]:
    try:
        from playwright.sync_api import Error as PlaywrightError
    except ModuleNotFoundError:  # pragma: no cover - playwright is a hard dependency
        return (BrowserLaunchError,)
    return (PlaywrightError, BrowserLaunchError)


class MermaidRenderer:
    """Own one browser session and render diagrams sequentially.

    The browser starts lazily on the first non-empty batch and stays open
    until :meth:`cleanup`. Each diagram gets its own page which is closed
    afterwards, successful or not.
    """

    def __init__(
        self,
        config: MermaidConfig | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
        profiles: Sequence[LaunchProfile] = LAUNCH_PROFILES,
        driver_factory: Callable[[], Any] = _start_playwright,
    ) -> None:
        self.config = config or MermaidConfig()
        self.emitter = ensure_emitter(emitter)
        self.profiles = tuple(profiles)
        self._driver_factory = driver_factory
        self._playwright: Any = None
        self._browser: Any = None

    def __enter__(self) -> MermaidRenderer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    @property
    def active(self) -> bool:
        return self._browser is not None

    def _ensure_browser(self) -> Any:
        if self._browser is not None:
            return self._browser

        logger.debug("Launching headless browser for Mermaid rendering")
        launch_errors = _launch_errors()
        try:
            self._playwright = self._driver_factory()
        except launch_errors as exc:
            raise BrowserLaunchError(f"Failed to start Playwright: {exc}") from exc

        last_error: BaseException | None = None
        for profile in self.profiles:
            logger.debug("Trying browser launch profile '%s'", profile.name)
            try:
                self._browser = self._playwright.chromium.launch(**profile.launch_options())
            except launch_errors as exc:
                last_error = exc
                logger.debug("Launch profile '%s' failed: %s", profile.name, exc)
                continue
            logger.debug("Browser launched with profile '%s'", profile.name)
            return self._browser

        self._stop_driver()
        raise BrowserLaunchError(
            "Failed to launch a headless browser after trying all launch profiles. "
            f"Last error: {last_error}"
        ) from last_error

    def process_diagrams(
        self, blocks: Sequence[DiagramBlock], output_dir: Path
    ) -> list[RenderResult]:
        """Render ``blocks`` in order, one result per block.

        A diagram that fails to render is replaced by the fallback image; only
        a browser launch failure aborts the batch.
        """
        if not blocks:
            return []

        browser = self._ensure_browser()
        output_dir.mkdir(parents=True, exist_ok=True)

        results: list[RenderResult] = []
        for block in blocks:
            logger.debug("Rendering mermaid diagram: %s", block.id)
            try:
                image_path = self._render(browser, block, output_dir)
            except Exception as exc:
                self.emitter.warning(f"Failed to render mermaid diagram {block.id}: {exc}")
                self.emitter.event(
                    "diagram_failed", {"id": block.id, "reason": exception_hint(exc)}
                )
                results.append(RenderResult.placeholder(block))
                continue
            self.emitter.event("diagram_rendered", {"id": block.id, "path": str(image_path)})
            results.append(
                RenderResult(
                    block.id,
                    image_path=image_path,
                    caption=block.caption,
                    title=block.title,
                )
            )
        return results

    def _render(self, browser: Any, block: DiagramBlock, output_dir: Path) -> Path:
        timeout_ms = self.config.timeout * 1000
        page = browser.new_page(
            viewport={"width": self.config.width, "height": VIEWPORT_HEIGHT},
            device_scale_factor=self.config.scale,
        )
        try:
            page.set_content(render_page(block.content, self.config), timeout=timeout_ms)
            element = page.wait_for_selector(DIAGRAM_SELECTOR, timeout=timeout_ms)
            if element is None:
                raise DiagramRenderError(f"SVG element not found for {block.id}")
            target = output_dir / f"{block.id}.png"
            element.screenshot(path=str(target), omit_background=self.config.transparent)
            return target
        finally:
            self._close_page(page)

    def _close_page(self, page: Any) -> None:
        try:
            page.close()
        except Exception as exc:
            logger.debug("Failed to close diagram page: %s", exc)

    def _stop_driver(self) -> None:
        driver, self._playwright = self._playwright, None
        if driver is None:
            return
        try:
            driver.stop()
        except Exception as exc:
            logger.debug("Failed to stop Playwright driver: %s", exc)

    def cleanup(self) -> None:
        """Close the shared browser session; safe to call repeatedly."""
        browser, self._browser = self._browser, None
        if browser is not None:
            logger.debug("Closing headless browser")
            try:
                browser.close()
            except Exception as exc:
                logger.debug("Failed to close browser: %s", exc)
        self._stop_driver()


__all__ = [
    "CHROME_CANDIDATES",
    "LAUNCH_PROFILES",
    "VIEWPORT_HEIGHT",
    "LaunchProfile",
    "MermaidRenderer",
    "resolve_executable",
]
