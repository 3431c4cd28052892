"""
Tests for browser acquisition and release.

Validates:
- BrowserProfile defaults (viewport, evasion flags, preferences)
- BrowserController applies per-session settings to the context
- Launch and page failures surface as LaunchError without leaks
- BrowserSession.close() is idempotent and never raises
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from trafficbot.errors import LaunchError
from trafficbot.models.session import SessionConfig
from trafficbot.session_manager.browser import (
    BrowserController,
    BrowserProfile,
    BrowserSession,
    launch_camoufox,
    launch_chromium,
)


def _fake_browser():
    page = MagicMock()
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    return browser, context, page


def _launcher(browser, shutdown):
    launcher = AsyncMock(return_value=(browser, shutdown))
    return launcher


class TestBrowserProfile:
    """Tests for BrowserProfile defaults."""

    def test_fixed_viewport(self):
        assert BrowserProfile().viewport == {"width": 1920, "height": 1080}

    def test_evasion_and_sandbox_flags(self):
        args = BrowserProfile().chromium_args
        assert "--no-sandbox" in args
        assert "--disable-setuid-sandbox" in args
        assert "--disable-blink-features=AutomationControlled" in args

    def test_notification_and_password_prefs(self):
        prefs = BrowserProfile().firefox_prefs
        assert prefs["permissions.default.desktop-notification"] == 2
        assert prefs["signon.rememberSignons"] is False

    def test_profiles_do_not_share_prefs(self):
        first, second = BrowserProfile(), BrowserProfile()
        first.firefox_prefs["extra"] = True
        assert "extra" not in second.firefox_prefs


class TestLaunchers:
    """Tests for the per-engine launchers."""

    @pytest.mark.asyncio
    async def test_chromium_blocks_notification_prompts(self):
        browser = MagicMock()
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock(return_value=browser)
        playwright.stop = AsyncMock()

        with patch("trafficbot.session_manager.browser.async_playwright") as factory:
            factory.return_value.start = AsyncMock(return_value=playwright)
            launched, _ = await launch_chromium(BrowserProfile(engine="chromium"), None)

        assert launched is browser
        args = playwright.chromium.launch.call_args.kwargs["args"]
        assert "--disable-notifications" in args
        assert "--disable-blink-features=AutomationControlled" in args

    @pytest.mark.asyncio
    async def test_chromium_launch_failure_stops_playwright(self):
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock(side_effect=RuntimeError("no binary"))
        playwright.stop = AsyncMock()

        with patch("trafficbot.session_manager.browser.async_playwright") as factory:
            factory.return_value.start = AsyncMock(return_value=playwright)
            with pytest.raises(RuntimeError):
                await launch_chromium(BrowserProfile(engine="chromium"), None)

        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_camoufox_applies_prefs_and_proxy(self):
        browser = MagicMock()
        proxy = {"server": "http://proxy:8080"}

        with patch("trafficbot.session_manager.browser.AsyncCamoufox") as camoufox_cls:
            camoufox_cls.return_value.__aenter__.return_value = browser
            launched, close = await launch_camoufox(BrowserProfile(), proxy)
            await close()

        assert launched is browser
        kwargs = camoufox_cls.call_args.kwargs
        assert kwargs["firefox_user_prefs"]["signon.rememberSignons"] is False
        assert kwargs["firefox_user_prefs"]["permissions.default.desktop-notification"] == 2
        assert kwargs["proxy"] == proxy
        assert kwargs["geoip"] is True
        camoufox_cls.return_value.__aexit__.assert_awaited_once()


class TestBrowserController:
    """Tests for BrowserController.acquire()."""

    @pytest.mark.asyncio
    async def test_acquire_configures_context(self):
        browser, context, page = _fake_browser()
        launcher = _launcher(browser, AsyncMock())
        controller = BrowserController(
            BrowserProfile(engine="chromium", timeout_ms=1234), launchers={"chromium": launcher}
        )
        config = SessionConfig(target="website", session_id="s1", user_agent="MyBot/1.0")

        session = await controller.acquire(config)

        assert session.page is page
        assert session.session_id == "s1"
        kwargs = browser.new_context.call_args.kwargs
        assert kwargs["viewport"] == {"width": 1920, "height": 1080}
        assert kwargs["java_script_enabled"] is True
        assert kwargs["user_agent"] == "MyBot/1.0"
        assert kwargs["ignore_https_errors"] is True
        page.set_default_timeout.assert_called_once_with(1234)

    @pytest.mark.asyncio
    async def test_default_user_agent_left_to_browser(self):
        browser, _, _ = _fake_browser()
        controller = BrowserController(
            BrowserProfile(engine="chromium"), launchers={"chromium": _launcher(browser, AsyncMock())}
        )
        await controller.acquire(SessionConfig(target="website", session_id="s1"))
        assert browser.new_context.call_args.kwargs["user_agent"] is None

    @pytest.mark.asyncio
    async def test_proxy_passed_to_launcher(self):
        browser, _, _ = _fake_browser()
        launcher = _launcher(browser, AsyncMock())
        profile = BrowserProfile(engine="camoufox")
        controller = BrowserController(profile, launchers={"camoufox": launcher})
        config = SessionConfig.model_validate(
            {
                "target": "youtube",
                "proxyServer": "http://proxy:8080",
                "proxyAuth": {"username": "u", "password": "p"},
            }
        )

        await controller.acquire(config)

        launcher.assert_awaited_once_with(
            profile, {"server": "http://proxy:8080", "username": "u", "password": "p"}
        )

    @pytest.mark.asyncio
    async def test_launch_failure_raises_launch_error(self):
        launcher = AsyncMock(side_effect=RuntimeError("Executable doesn't exist"))
        controller = BrowserController(BrowserProfile(engine="chromium"), launchers={"chromium": launcher})

        with pytest.raises(LaunchError, match="Executable doesn't exist"):
            await controller.acquire(SessionConfig(target="website", session_id="s1"))

    @pytest.mark.asyncio
    async def test_page_failure_releases_browser(self):
        browser, context, _ = _fake_browser()
        context.new_page = AsyncMock(side_effect=RuntimeError("Target closed"))
        shutdown = AsyncMock()
        controller = BrowserController(
            BrowserProfile(engine="chromium"), launchers={"chromium": _launcher(browser, shutdown)}
        )

        with pytest.raises(LaunchError, match="Target closed"):
            await controller.acquire(SessionConfig(target="website", session_id="s1"))

        context.close.assert_awaited_once()
        shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_engine(self):
        controller = BrowserController(BrowserProfile(engine="netscape"), launchers={})
        with pytest.raises(LaunchError, match="netscape"):
            await controller.acquire(SessionConfig(target="website", session_id="s1"))


class TestBrowserSession:
    """Tests for BrowserSession.close()."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        _, context, page = _fake_browser()
        shutdown = AsyncMock()
        session = BrowserSession("s1", MagicMock(), context, page, shutdown)

        await session.close()
        await session.close()

        assert session.is_closed
        context.close.assert_awaited_once()
        shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_errors_are_swallowed(self):
        _, context, page = _fake_browser()
        context.close = AsyncMock(side_effect=RuntimeError("already closed"))
        shutdown = AsyncMock(side_effect=RuntimeError("process gone"))
        session = BrowserSession("s1", MagicMock(), context, page, shutdown)

        await session.close()

        assert session.is_closed
        shutdown.assert_awaited_once()
