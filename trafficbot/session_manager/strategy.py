"""Navigation building blocks shared by the target strategies."""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, suppress
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import BROWSER_TIMEOUT
from ..constants import DEFAULT_SEARCH_ENGINE, SEARCH_ENGINES, TYPING_DELAY_MS
from ..errors import BestEffortInteractionError, NavigationError, SelectorTimeoutError
from ..models.session import SessionConfig
from .humanize import HumanInteractionSimulator

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

Progress = Callable[[str], None]


def search_engine_for(name: Optional[str]) -> Optional[dict]:
    """Return the engine settings for a supported engine name, else None."""
    return SEARCH_ENGINES.get((name or "").lower())


class TargetStrategy(ABC):
    """Per-target navigation script run against one page."""

    def __init__(self, simulator: Optional[HumanInteractionSimulator] = None):
        self.simulator = simulator or HumanInteractionSimulator()

    @abstractmethod
    async def run(self, page: Page, config: SessionConfig, progress: Progress):
        """Drive the page through the whole script. Fatal errors propagate."""

    async def goto(self, page: Page, url: str):
        """Navigate to a URL, retrying once with a longer, looser wait.

        Raises:
            NavigationError: if the retry fails as well.
        """
        logger.info(f"Navigating to {url}")
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=BROWSER_TIMEOUT)
            return
        except PlaywrightError as e:
            logger.warning(f"Navigation timeout, trying with longer wait: {e}")

        try:
            await page.goto(url, wait_until="commit", timeout=BROWSER_TIMEOUT * 2)
        except PlaywrightError as e:
            raise NavigationError(f"Could not load {url}: {e}") from e
        logger.info(f"Landed on {page.url}")

    async def submit_search(self, page: Page, engine_name: Optional[str], query: str):
        """Open a search engine and submit a query from its search box."""
        engine = search_engine_for(engine_name) or SEARCH_ENGINES[DEFAULT_SEARCH_ENGINE]
        await self.goto(page, engine["url"])
        await self.type_and_submit(page, engine["input"], query)

    async def type_and_submit(self, page: Page, selector: str, text: str):
        try:
            await page.type(selector, text, delay=TYPING_DELAY_MS)
            await page.keyboard.press("Enter")
        except PlaywrightError as e:
            raise NavigationError(f"Could not submit '{text}' into {selector}: {e}") from e

    async def wait_for(self, page: Page, selector: str, timeout_ms: int):
        """Wait for a selector to appear.

        Raises:
            SelectorTimeoutError: if it does not appear within timeout_ms.
        """
        try:
            return await page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise SelectorTimeoutError(selector, timeout_ms) from e

    async def best_effort(self, name: str, action: Callable[[], Awaitable[None]]) -> bool:
        """Run an optional interaction. Failures are logged, never raised."""
        try:
            await action()
        except BestEffortInteractionError as e:
            logger.warning(f"{name} skipped: {e}")
            return False
        except Exception as e:
            logger.warning(f"{name} failed: {e}")
            return False
        return True


@asynccontextmanager
async def repeat_every(interval: float, action: Callable[[], Awaitable[object]]):
    """Run `action` every `interval` seconds while the block is active.

    The repeating task is cancelled and awaited when the block exits,
    whether it exits normally or with an exception.
    """

    async def _loop():
        while True:
            await asyncio.sleep(interval)
            try:
                await action()
            except Exception as e:
                logger.warning(f"Periodic action failed: {e}")

    task = asyncio.create_task(_loop())
    try:
        yield task
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
