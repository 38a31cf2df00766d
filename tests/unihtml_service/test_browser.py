"""
Unit tests for the Playwright browser adapter and binary discovery.

Playwright itself is mocked; no Chromium is launched.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from unihtml_service.browser import (
    LinuxLocator,
    MacLocator,
    PlaywrightManagedLocator,
    PlaywrightSession,
    UnsupportedPlatformLocator,
    WindowsLocator,
    open_playwright_session,
    select_locator,
)
from unihtml_service.config import ServiceSettings
from unihtml_service.errors import SessionAcquisitionError
from unihtml_service.layout import NormalizedLayout
from unihtml_service.tasks import SelectorStrategy


def _settings(**overrides):
    values = {"browser_source": "bundled"}
    values.update(overrides)
    return ServiceSettings(**values)


class TestSelectLocator:
    """Tests for select_locator."""

    def test_platform_variants(self):
        settings = _settings()

        assert isinstance(select_locator(settings, "linux"), LinuxLocator)
        assert isinstance(select_locator(settings, "darwin"), MacLocator)
        assert isinstance(select_locator(settings, "win32"), WindowsLocator)
        assert isinstance(select_locator(settings, "sunos5"), UnsupportedPlatformLocator)

    def test_playwright_source_ignores_platform(self):
        locator = select_locator(_settings(browser_source="playwright"), "linux")

        assert isinstance(locator, PlaywrightManagedLocator)
        assert locator.requires_binary is False
        assert locator.locate() is None

    def test_browser_dir_is_used(self, tmp_path):
        locator = select_locator(_settings(browser_dir=str(tmp_path)), "linux")

        assert locator.candidate() == tmp_path / "bin" / "chrome"


class TestLocators:
    """Tests for the per-platform locators."""

    def test_linux_missing_binary(self, tmp_path):
        assert LinuxLocator(tmp_path).locate() is None

    def test_linux_existing_binary(self, tmp_path):
        chrome = tmp_path / "bin" / "chrome"
        chrome.parent.mkdir()
        chrome.write_text("")

        assert LinuxLocator(tmp_path).locate() == str(chrome)

    def test_mac_layout(self, tmp_path):
        expected = tmp_path / "bin" / "chrome-mac" / "Chromium.app" / "Contents" / "MacOS" / "Chromium"

        assert MacLocator(tmp_path).candidate() == expected

    def test_windows_uses_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert WindowsLocator().candidate() == Path(tmp_path) / "bin" / "chrome.exe"

    def test_unsupported_platform_has_no_binary(self):
        assert UnsupportedPlatformLocator("plan9").locate() is None


class TestOpenPlaywrightSession:
    """Tests for open_playwright_session."""

    @pytest.mark.asyncio
    async def test_missing_binary_fails_acquisition(self, tmp_path):
        with pytest.raises(SessionAcquisitionError, match="chrome binary not found"):
            async with open_playwright_session(1000, locator=LinuxLocator(tmp_path)):
                pass

    @pytest.mark.asyncio
    async def test_launch_sets_timeouts_and_closes_browser(self):
        mock_page = MagicMock()
        mock_browser = AsyncMock()
        mock_browser.new_page = AsyncMock(return_value=mock_page)
        mock_chromium = MagicMock(launch=AsyncMock(return_value=mock_browser))

        with patch("unihtml_service.browser.async_playwright") as mock_playwright:
            mock_playwright.return_value.__aenter__ = AsyncMock(return_value=MagicMock(chromium=mock_chromium))
            mock_playwright.return_value.__aexit__ = AsyncMock(return_value=False)

            async with open_playwright_session(
                7000, locator=PlaywrightManagedLocator(), headless=True
            ) as session:
                assert session.page is mock_page

        mock_chromium.launch.assert_awaited_once_with(headless=True, executable_path=None)
        mock_page.set_default_timeout.assert_called_once_with(7000)
        mock_page.set_default_navigation_timeout.assert_called_once_with(7000)
        mock_browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_browser_closed_when_body_fails(self):
        mock_browser = AsyncMock()
        mock_browser.new_page = AsyncMock(return_value=MagicMock())
        mock_chromium = MagicMock(launch=AsyncMock(return_value=mock_browser))

        with patch("unihtml_service.browser.async_playwright") as mock_playwright:
            mock_playwright.return_value.__aenter__ = AsyncMock(return_value=MagicMock(chromium=mock_chromium))
            mock_playwright.return_value.__aexit__ = AsyncMock(return_value=False)

            with pytest.raises(RuntimeError):
                async with open_playwright_session(1000, locator=PlaywrightManagedLocator()):
                    raise RuntimeError("step failed")

        mock_browser.close.assert_awaited_once()


class TestPlaywrightSession:
    """Tests for PlaywrightSession against a mocked page."""

    @pytest.fixture
    def page(self):
        page = AsyncMock()
        page.pdf = AsyncMock(return_value=b"%PDF-1.4 rendered")
        return page

    @pytest.mark.asyncio
    async def test_navigate_waits_for_load(self, page):
        await PlaywrightSession(page).navigate("file:///tmp/x.html")

        page.goto.assert_awaited_once_with("file:///tmp/x.html", wait_until="load")

    @pytest.mark.asyncio
    async def test_query_strategy_waits_for_attached_css(self, page):
        await PlaywrightSession(page).wait_until_present(".item", SelectorStrategy.QUERY)

        page.wait_for_selector.assert_awaited_once_with("css=.item", state="attached")

    @pytest.mark.asyncio
    async def test_id_strategy_accepts_hash_prefix(self, page):
        session = PlaywrightSession(page)

        await session.wait_until_visible("#main", SelectorStrategy.ID)
        await session.wait_until_visible("main", SelectorStrategy.ID)

        assert [c.args[0] for c in page.wait_for_selector.await_args_list] == ["id=main", "id=main"]
        assert all(c.kwargs["state"] == "visible" for c in page.wait_for_selector.await_args_list)

    @pytest.mark.asyncio
    async def test_search_strategy_uses_page_predicate(self, page):
        await PlaywrightSession(page).wait_until_visible("//div[@id='x']", SelectorStrategy.SEARCH)

        page.wait_for_selector.assert_not_awaited()
        page.wait_for_function.assert_awaited_once()
        assert page.wait_for_function.await_args.kwargs["arg"] == ["//div[@id='x']", True]

    @pytest.mark.asyncio
    async def test_playwright_timeout_becomes_timeout_error(self, page):
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded.")

        with pytest.raises(TimeoutError):
            await PlaywrightSession(page).wait_until_present("#never", SelectorStrategy.QUERY)

    @pytest.mark.asyncio
    async def test_render_passes_layout_in_inches(self, page):
        layout = NormalizedLayout(
            paper_width=8.5,
            paper_height=11.0,
            margin_top=0.5,
            margin_bottom=0.25,
            margin_left=1.0,
            margin_right=0.0,
            landscape=True,
        )

        pdf = await PlaywrightSession(page).render_to_pdf(layout)

        assert pdf == b"%PDF-1.4 rendered"
        page.pdf.assert_awaited_once_with(
            width="8.5in",
            height="11.0in",
            margin={"top": "0.5in", "bottom": "0.25in", "left": "1.0in", "right": "0.0in"},
            landscape=True,
            print_background=True,
        )

    @pytest.mark.asyncio
    async def test_delay_sleeps(self, page):
        with patch("unihtml_service.browser.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            await PlaywrightSession(page).delay(250)

        mock_sleep.assert_awaited_once_with(0.25)
