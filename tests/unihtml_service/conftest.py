"""
Pytest fixtures for UniHTML service tests.

The browser is replaced by FakeBrowser, whose session records every
action it receives, so no test launches Chromium.
"""

import os

# Set environment variables BEFORE any imports from unihtml_service so
# ServiceSettings is configured correctly when first loaded.
os.environ["BROWSER_SOURCE"] = "playwright"
os.environ["DEFAULT_TIMEOUT_MS"] = "30000"
os.environ["LOG_LEVEL"] = "INFO"

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlparse

import pytest
from fastapi.testclient import TestClient


class FakeSession:
    """BrowserSession that records calls instead of driving a browser."""

    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser

    async def _step(self, name, *args):
        self.browser.calls.append((name, *args))
        if name in self.browser.hang:
            await asyncio.Event().wait()
        if name in self.browser.fail:
            raise self.browser.fail[name]

    async def navigate(self, uri):
        if uri.startswith("file://"):
            self.browser.navigated_file = Path(urlparse(uri).path)
            self.browser.file_existed_on_navigate = self.browser.navigated_file.exists()
        await self._step("navigate", uri)

    async def wait_until_present(self, selector, strategy):
        await self._step("wait_ready", selector, strategy)

    async def wait_until_visible(self, selector, strategy):
        await self._step("wait_visible", selector, strategy)

    async def delay(self, duration_ms):
        await self._step("delay", duration_ms)

    async def render_to_pdf(self, layout):
        await self._step("render", layout)
        return self.browser.pdf


class FakeBrowser:
    """
    Stand-in for the Playwright session factory.

    Args:
        pdf: Bytes returned by render_to_pdf
        fail: Map of step name -> exception to raise at that step
        hang: Step names that never complete
        acquire_error: Exception raised while opening the session
        close_delay: Seconds the session takes to close
    """

    def __init__(self, pdf=b"%PDF-1.4 fake pdf content", fail=None, hang=(), acquire_error=None,
                 close_delay=0):
        self.pdf = pdf
        self.fail = fail or {}
        self.hang = set(hang)
        self.acquire_error = acquire_error
        self.close_delay = close_delay
        self.calls = []
        self.timeouts = []
        self.opened = 0
        self.closed = 0
        self.navigated_file = None
        self.file_existed_on_navigate = None

    @asynccontextmanager
    async def factory(self, timeout_ms):
        self.timeouts.append(timeout_ms)
        if self.acquire_error is not None:
            raise self.acquire_error
        self.opened += 1
        try:
            yield FakeSession(self)
        finally:
            if self.close_delay:
                await asyncio.sleep(self.close_delay)
            self.closed += 1

    @property
    def step_names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_browser():
    """A FakeBrowser that renders successfully."""
    return FakeBrowser()


@pytest.fixture
def client(fake_browser):
    """FastAPI test client wired to the fake browser."""
    import unihtml_service.app as app_module

    app_module._session_factory = fake_browser.factory
    yield TestClient(app_module.app)
    app_module._session_factory = None


@pytest.fixture
def make_browser():
    """Build a FakeBrowser with custom failures: make_browser(fail={...})."""
    return FakeBrowser
