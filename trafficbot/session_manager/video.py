"""YouTube navigation: discover, pick a video, watch it, interact."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..config import (
    DEFAULT_WATCH_MINUTES,
    RESULT_SELECTOR_TIMEOUT_MS,
    WATCH_SCROLL_INTERVAL_SECONDS,
    WATCH_TIME_CEILING_SECONDS,
)
from ..constants import (
    INTERACTION_SETTLE_MS,
    PAGE_SETTLE_MS,
    RESULTS_SETTLE_MS,
    SEARCH_SETTLE_MS,
    SELECTORS,
    WATCH_SCROLL_RANGE,
    YOUTUBE_BASE,
    YOUTUBE_DOMAIN,
)
from ..errors import BestEffortInteractionError, SelectorTimeoutError
from ..models.session import SessionConfig
from .humanize import HumanInteractionSimulator
from .strategy import Progress, TargetStrategy, repeat_every, search_engine_for

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def watch_seconds(watch_duration: Optional[float], ceiling_seconds: float) -> float:
    """Requested watch time in seconds, capped at the operational ceiling."""
    minutes = watch_duration or DEFAULT_WATCH_MINUTES
    return max(0.0, min(minutes * 60, ceiling_seconds))


class VideoPlatformStrategy(TargetStrategy):
    """Finds a YouTube video by search (or direct URL) and watches it."""

    def __init__(
        self,
        simulator: Optional[HumanInteractionSimulator] = None,
        watch_ceiling_seconds: float = WATCH_TIME_CEILING_SECONDS,
        scroll_interval_seconds: float = WATCH_SCROLL_INTERVAL_SECONDS,
        result_timeout_ms: int = RESULT_SELECTOR_TIMEOUT_MS,
    ):
        super().__init__(simulator)
        self.watch_ceiling_seconds = watch_ceiling_seconds
        self.scroll_interval_seconds = scroll_interval_seconds
        self.result_timeout_ms = result_timeout_ms

    async def run(self, page: Page, config: SessionConfig, progress: Progress):
        progress("Heading to YouTube...")

        if config.yt_direct_url:
            await self.goto(page, config.yt_direct_url)
            await page.wait_for_timeout(PAGE_SETTLE_MS)
            await self.simulator.scroll_pass(page)
        else:
            await self.discover(page, config)
            await self.search_platform(page, config.yt_keyword)
            await self.simulator.scroll_pass(page)
            await self.open_first_result(page)

        progress("Watching video...")
        await self.watch(page, config)

        if config.yt_like:
            progress("Liking video...")
            await self.best_effort("Like", lambda: self.like(page))

        if config.yt_visit_channel:
            progress("Visiting channel...")
            await self.best_effort("Channel visit", lambda: self.visit_channel(page))

    async def discover(self, page: Page, config: SessionConfig):
        """Reach YouTube through a search engine when one is configured."""
        if search_engine_for(config.search_engine) is None:
            await self.goto(page, YOUTUBE_BASE)
            return

        query = f"{config.yt_keyword} site:{YOUTUBE_DOMAIN}".strip()
        await self.submit_search(page, config.search_engine, query)
        await page.wait_for_timeout(SEARCH_SETTLE_MS)

        links = await page.query_selector_all(f'a[href*="{YOUTUBE_DOMAIN}"]')
        if links:
            try:
                await links[0].click()
                await page.wait_for_load_state("domcontentloaded")
                logger.info(f"Opened search result: {page.url}")
                return
            except PlaywrightError as e:
                logger.warning(f"Could not open search result, going to home page: {e}")
        else:
            logger.info("No YouTube link in search results, going to home page.")
        await self.goto(page, YOUTUBE_BASE)

    async def search_platform(self, page: Page, keyword: str):
        if not keyword:
            return
        await self.type_and_submit(page, SELECTORS["yt_search_input"], keyword)
        await page.wait_for_timeout(RESULTS_SETTLE_MS)

    async def open_first_result(self, page: Page):
        selector = SELECTORS["yt_results"]
        await self.wait_for(page, selector, self.result_timeout_ms)
        items = await page.query_selector_all(selector)
        if not items:
            raise SelectorTimeoutError(selector, self.result_timeout_ms)
        await items[0].click()
        await page.wait_for_timeout(PAGE_SETTLE_MS)

    async def watch(self, page: Page, config: SessionConfig):
        """Stay on the video, scrolling periodically, for the capped duration."""
        seconds = watch_seconds(config.watch_duration, self.watch_ceiling_seconds)
        logger.info(f"Watching for {seconds:.0f}s (ceiling {self.watch_ceiling_seconds:.0f}s)")
        min_px, max_px = WATCH_SCROLL_RANGE

        async with repeat_every(
            self.scroll_interval_seconds,
            lambda: self.simulator.scroll(page, min_px, max_px),
        ):
            await page.wait_for_timeout(seconds * 1000)

    async def like(self, page: Page):
        button = await page.query_selector(SELECTORS["yt_like_button"])
        if button is None:
            raise BestEffortInteractionError("like button not found")
        await button.click()
        await page.wait_for_timeout(INTERACTION_SETTLE_MS)

    async def visit_channel(self, page: Page):
        link = await page.query_selector(SELECTORS["yt_channel_link"])
        if link is None:
            raise BestEffortInteractionError("channel link not found")
        await link.click()
        await page.wait_for_timeout(RESULTS_SETTLE_MS)
        await self.simulator.scroll_pass(page)
