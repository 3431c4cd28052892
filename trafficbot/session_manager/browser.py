"""Browser launch and teardown: one browser + page per bot session."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from camoufox.async_api import AsyncCamoufox
from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from ..config import BROWSER_ENGINE, BROWSER_HEADLESS, BROWSER_TIMEOUT
from ..constants import CHROMIUM_ARGS, FIREFOX_PREFS, VIEWPORT
from ..errors import LaunchError
from ..models.session import SessionConfig

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

Closer = Callable[[], Awaitable[None]]
Launcher = Callable[["BrowserProfile", Optional[dict]], Awaitable[tuple[Browser, Closer]]]


@dataclass(frozen=True)
class BrowserProfile:
    """Launch settings for one session's browser."""

    engine: str = "camoufox"
    headless: bool = True
    timeout_ms: int = 30000
    chromium_args: tuple[str, ...] = CHROMIUM_ARGS
    firefox_prefs: dict = field(default_factory=lambda: dict(FIREFOX_PREFS))
    viewport: dict = field(default_factory=lambda: dict(VIEWPORT))

    @classmethod
    def from_env(cls) -> BrowserProfile:
        return cls(engine=BROWSER_ENGINE, headless=BROWSER_HEADLESS, timeout_ms=BROWSER_TIMEOUT)


async def launch_camoufox(profile: BrowserProfile, proxy: Optional[dict]) -> tuple[Browser, Closer]:
    """Start Camoufox (anti-detection Firefox). Returns the browser and its shutdown."""
    camoufox = AsyncCamoufox(
        headless=profile.headless,
        humanize=True,
        geoip=bool(proxy),
        proxy=proxy,
        i_know_what_im_doing=True,
        firefox_user_prefs=profile.firefox_prefs,
    )
    browser = await camoufox.__aenter__()

    async def _close():
        await camoufox.__aexit__(None, None, None)

    return browser, _close


async def launch_chromium(profile: BrowserProfile, proxy: Optional[dict]) -> tuple[Browser, Closer]:
    """Start Playwright Chromium with evasion and sandbox flags."""
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=profile.headless,
            args=list(profile.chromium_args),
            proxy=proxy,
        )
    except Exception:
        await playwright.stop()
        raise

    async def _close():
        try:
            await browser.close()
        finally:
            await playwright.stop()

    return browser, _close


DEFAULT_LAUNCHERS: dict[str, Launcher] = {
    "camoufox": launch_camoufox,
    "chromium": launch_chromium,
}


class BrowserSession:
    """A browser, its context and one page, owned by a single bot session."""

    def __init__(
        self,
        session_id: str,
        browser: Browser,
        context: BrowserContext,
        page: Page,
        shutdown: Closer,
    ):
        self.session_id = session_id
        self.browser = browser
        self.context = context
        self.page = page
        self._shutdown = shutdown
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def close(self):
        """Close the page context and browser. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        logger.info(f"[{self.session_id}] Closing browser session...")

        try:
            await self.context.close()
        except Exception as e:
            logger.warning(f"[{self.session_id}] Error closing context: {e}")

        try:
            await self._shutdown()
        except Exception as e:
            logger.warning(f"[{self.session_id}] Error closing browser: {e}")

        logger.info(f"[{self.session_id}] Browser session closed.")


class BrowserController:
    """Acquires a configured BrowserSession per bot session."""

    def __init__(
        self,
        profile: Optional[BrowserProfile] = None,
        launchers: Optional[dict[str, Launcher]] = None,
    ):
        self.profile = profile or BrowserProfile.from_env()
        self._launchers = launchers if launchers is not None else DEFAULT_LAUNCHERS

    async def acquire(self, config: SessionConfig) -> BrowserSession:
        """Launch a browser and open a page configured from the session config.

        Raises:
            LaunchError: if the browser or page could not be started.
        """
        launcher = self._launchers.get(self.profile.engine)
        if launcher is None:
            raise LaunchError(f"Unknown browser engine: {self.profile.engine}")

        proxy = config.proxy_settings()
        logger.info(
            f"[{config.session_id}] Launching {self.profile.engine} "
            f"(headless={self.profile.headless}, proxy={proxy['server'] if proxy else None})..."
        )

        try:
            browser, shutdown = await launcher(self.profile, proxy)
        except Exception as e:
            logger.error(f"[{config.session_id}] Failed to launch browser: {e}")
            raise LaunchError(f"Failed to launch browser: {e}") from e

        context = None
        try:
            context = await browser.new_context(
                viewport=self.profile.viewport,
                device_scale_factor=1,
                java_script_enabled=True,
                ignore_https_errors=True,
                user_agent=config.user_agent or None,
            )
            page = await context.new_page()
            page.set_default_timeout(self.profile.timeout_ms)
        except Exception as e:
            logger.error(f"[{config.session_id}] Failed to open page: {e}")
            if context is not None:
                try:
                    await context.close()
                except Exception as close_error:
                    logger.warning(f"[{config.session_id}] Error closing context: {close_error}")
            try:
                await shutdown()
            except Exception as close_error:
                logger.warning(f"[{config.session_id}] Error closing browser: {close_error}")
            raise LaunchError(f"Failed to open page: {e}") from e

        logger.info(f"[{config.session_id}] Browser launched.")
        return BrowserSession(config.session_id, browser, context, page, shutdown)
