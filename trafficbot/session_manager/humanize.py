"""Randomized, human-looking scrolling."""

from __future__ import annotations

import logging
import random
import sys
from dataclasses import dataclass
from typing import Optional, Union

from playwright.async_api import Page

from ..config import SCROLL_PASS_STEPS

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

SCROLL_SCRIPT = "(amount) => window.scrollBy({top: amount, left: 0, behavior: 'smooth'})"


@dataclass(frozen=True)
class ScrollRange:
    """Closed pixel interval a single scroll distance is drawn from."""

    min_px: int
    max_px: int

    def __post_init__(self):
        if self.min_px < 0 or self.max_px < self.min_px:
            raise ValueError(f"Invalid scroll range [{self.min_px}, {self.max_px}]")

    def __contains__(self, distance: int) -> bool:
        return self.min_px <= distance <= self.max_px


SCROLL_PRESETS = {
    "skimmer": ScrollRange(500, 1500),     # fast, far
    "researcher": ScrollRange(100, 400),   # slow, careful
    "bouncer": ScrollRange(800, 2000),     # fast, leaves quickly
    "reader": ScrollRange(200, 800),       # normal
}
DEFAULT_PRESET = "reader"


def get_scroll_range(pattern: Optional[str]) -> ScrollRange:
    """Look up a preset by name. Unknown or empty names fall back to 'reader'."""
    return SCROLL_PRESETS.get((pattern or "").lower(), SCROLL_PRESETS[DEFAULT_PRESET])


class HumanInteractionSimulator:
    """Issues smooth scrolls of random length followed by reading pauses."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        duration_ms: tuple[float, float] = (500, 1500),
        jitter_ms: tuple[float, float] = (0, 1000),
    ):
        self._rng = rng or random.Random()
        self.duration_ms = duration_ms
        self.jitter_ms = jitter_ms

    async def scroll(self, page: Page, min_px: int = 200, max_px: int = 800) -> int:
        """Scroll down by a random distance in [min_px, max_px], then pause.

        Returns the distance scrolled.
        """
        distance = self._rng.randint(min_px, max_px)
        duration = self._rng.uniform(*self.duration_ms)

        await page.evaluate(SCROLL_SCRIPT, distance)
        await page.wait_for_timeout(duration + self._rng.uniform(*self.jitter_ms))
        return distance

    async def scroll_range(self, page: Page, scroll_range: ScrollRange) -> int:
        return await self.scroll(page, scroll_range.min_px, scroll_range.max_px)

    async def scroll_pass(
        self,
        page: Page,
        pattern: Union[str, ScrollRange, None] = None,
        steps: int = SCROLL_PASS_STEPS,
    ) -> list[int]:
        """Run several scrolls with one preset (by name or range)."""
        scroll_range = pattern if isinstance(pattern, ScrollRange) else get_scroll_range(pattern)
        distances = []
        for _ in range(max(steps, 1)):
            distances.append(await self.scroll_range(page, scroll_range))
        logger.info(
            f"Scroll pass [{scroll_range.min_px}-{scroll_range.max_px}px]: {distances}"
        )
        return distances
