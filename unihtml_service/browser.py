"""
Browser capability backed by Playwright/Chromium.

Provides:
- BrowserLocator variants that find the Chromium binary for the running platform
- PlaywrightSession, the per-conversion browser session the executor drives
- open_playwright_session(), which launches Chromium and always closes it
"""

import asyncio
import logging
import os
import sys
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, contextmanager
from functools import partial
from pathlib import Path
from typing import AsyncContextManager, AsyncIterator, Callable, Iterator, Optional, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import ServiceSettings
from .errors import SessionAcquisitionError
from .layout import NormalizedLayout
from .tasks import SelectorStrategy

logger = logging.getLogger(__name__)


class BrowserSession(Protocol):
    """What the executor needs from a browser session."""

    async def navigate(self, uri: str) -> None: ...

    async def wait_until_present(self, selector: str, strategy: SelectorStrategy) -> None: ...

    async def wait_until_visible(self, selector: str, strategy: SelectorStrategy) -> None: ...

    async def delay(self, duration_ms: int) -> None: ...

    async def render_to_pdf(self, layout: NormalizedLayout) -> bytes: ...


# Called with the deadline in milliseconds, yields a BrowserSession
SessionFactory = Callable[[int], AsyncContextManager[BrowserSession]]


# ============================================================================
# Binary Discovery
# ============================================================================

class BrowserLocator(ABC):
    """Finds the Chromium executable for one platform."""

    # False when Playwright may fall back to its own managed Chromium
    requires_binary = True

    @abstractmethod
    def candidate(self) -> Optional[Path]:
        """Expected location of the binary, None if the platform has none."""

    def locate(self) -> Optional[str]:
        """Path to an existing binary, or None if it is missing."""
        path = self.candidate()
        if path is None:
            return None
        if not path.exists():
            logger.warning(f"Chrome binary not found at: {path}")
            return None
        logger.info(f"Using Chrome binary at: {path}")
        return str(path)


class _BundledLocator(BrowserLocator):
    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or Path(sys.executable).resolve().parent


class WindowsLocator(_BundledLocator):
    """bin/chrome.exe under the working directory."""

    def candidate(self) -> Optional[Path]:
        return Path(os.getcwd()) / "bin" / "chrome.exe"


class MacLocator(_BundledLocator):
    def candidate(self) -> Optional[Path]:
        return self.base_dir / "bin" / "chrome-mac" / "Chromium.app" / "Contents" / "MacOS" / "Chromium"


class LinuxLocator(_BundledLocator):
    def candidate(self) -> Optional[Path]:
        return self.base_dir / "bin" / "chrome"


class UnsupportedPlatformLocator(BrowserLocator):
    def __init__(self, platform: str):
        self.platform = platform

    def candidate(self) -> Optional[Path]:
        logger.error(f"Unsupported OS: {self.platform}")
        return None


class PlaywrightManagedLocator(BrowserLocator):
    """Use the Chromium installed by `playwright install chromium`."""

    requires_binary = False

    def candidate(self) -> Optional[Path]:
        return None


def select_locator(settings: ServiceSettings, platform: Optional[str] = None) -> BrowserLocator:
    """
    Pick the locator for this process.

    Args:
        settings: Service settings (browser_source, browser_dir)
        platform: Platform string, defaults to sys.platform

    Returns:
        A BrowserLocator; called once at startup and injected
    """
    if settings.browser_source == "playwright":
        return PlaywrightManagedLocator()

    platform = platform or sys.platform
    base_dir = Path(settings.browser_dir) if settings.browser_dir else None

    if platform.startswith("win"):
        return WindowsLocator(base_dir)
    if platform == "darwin":
        return MacLocator(base_dir)
    if platform.startswith("linux"):
        return LinuxLocator(base_dir)
    return UnsupportedPlatformLocator(platform)


# ============================================================================
# Session
# ============================================================================

# Loose search: a selector when the query parses as one, otherwise any
# element whose own text or an attribute value contains the query.
_SEARCH_SCRIPT = """
([query, mustBeVisible]) => {
    const isVisible = (el) => {
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0
            && getComputedStyle(el).visibility !== 'hidden';
    };
    let found = [];
    try {
        found = Array.from(document.querySelectorAll(query));
    } catch (e) {
        found = [];
    }
    if (found.length === 0) {
        for (const el of document.querySelectorAll('*')) {
            const ownText = Array.from(el.childNodes).some(
                (n) => n.nodeType === Node.TEXT_NODE && n.nodeValue.includes(query)
            );
            const inAttr = Array.from(el.attributes).some((a) => a.value.includes(query));
            if (ownText || inAttr) {
                found.push(el);
            }
        }
    }
    return found.some((el) => !mustBeVisible || isVisible(el));
}
"""


@contextmanager
def _playwright_timeouts() -> Iterator[None]:
    """Re-raise Playwright timeouts as the builtin TimeoutError."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise TimeoutError(str(e)) from e


def _selector_for(selector: str, strategy: SelectorStrategy) -> str:
    """Playwright selector for QUERY and ID strategies."""
    if strategy is SelectorStrategy.ID:
        return f"id={selector.removeprefix('#')}"
    return f"css={selector}"


def _inches(value: float) -> str:
    return f"{value}in"


class PlaywrightSession:
    """BrowserSession over a single Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    async def navigate(self, uri: str) -> None:
        with _playwright_timeouts():
            await self.page.goto(uri, wait_until="load")

    async def wait_until_present(self, selector: str, strategy: SelectorStrategy) -> None:
        await self._wait(selector, strategy, visible=False)

    async def wait_until_visible(self, selector: str, strategy: SelectorStrategy) -> None:
        await self._wait(selector, strategy, visible=True)

    async def _wait(self, selector: str, strategy: SelectorStrategy, visible: bool) -> None:
        with _playwright_timeouts():
            if strategy is SelectorStrategy.SEARCH:
                await self.page.wait_for_function(_SEARCH_SCRIPT, arg=[selector, visible])
            else:
                await self.page.wait_for_selector(
                    _selector_for(selector, strategy),
                    state="visible" if visible else "attached",
                )

    async def delay(self, duration_ms: int) -> None:
        await asyncio.sleep(duration_ms / 1000)

    async def render_to_pdf(self, layout: NormalizedLayout) -> bytes:
        with _playwright_timeouts():
            return await self.page.pdf(
                width=_inches(layout.paper_width),
                height=_inches(layout.paper_height),
                margin={
                    "top": _inches(layout.margin_top),
                    "bottom": _inches(layout.margin_bottom),
                    "left": _inches(layout.margin_left),
                    "right": _inches(layout.margin_right),
                },
                landscape=layout.landscape,
                print_background=layout.print_background,
            )


@asynccontextmanager
async def open_playwright_session(
    timeout_ms: int,
    *,
    locator: BrowserLocator,
    headless: bool = True,
) -> AsyncIterator[PlaywrightSession]:
    """
    Launch Chromium and yield a session on a fresh page.

    The browser is closed when the block exits, whatever the outcome.

    Raises:
        SessionAcquisitionError: If no binary is found or Chromium fails to launch
    """
    executable = locator.locate()
    if executable is None and locator.requires_binary:
        raise SessionAcquisitionError("start browser: chrome binary not found")

    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=headless, executable_path=executable)
        except PlaywrightError as e:
            raise SessionAcquisitionError(f"start browser: {e}") from e

        try:
            page = await browser.new_page()
            page.set_default_timeout(timeout_ms)
            page.set_default_navigation_timeout(timeout_ms)
            yield PlaywrightSession(page)
        finally:
            await browser.close()


def default_session_factory(settings: ServiceSettings) -> SessionFactory:
    """Session factory using the locator for this platform."""
    locator = select_locator(settings)
    logger.info(f"Browser locator: {type(locator).__name__}")
    return partial(open_playwright_session, locator=locator, headless=settings.browser_headless)
