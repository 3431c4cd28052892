"""Website navigation: arrive via a search engine, read, follow a link."""

from __future__ import annotations

import logging
import random
import re
import sys
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Page

from ..constants import MIN_LINK_TEXT_LENGTH, PAGE_SETTLE_MS, RESULTS_SETTLE_MS
from ..errors import NavigationError
from ..models.session import SessionConfig
from .humanize import HumanInteractionSimulator
from .strategy import Progress, TargetStrategy

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

ANCHORS_SCRIPT = "els => els.map(a => ({href: a.href, text: a.textContent || ''}))"
CLICK_LINK_SCRIPT = """(href) => {
    const link = Array.from(document.querySelectorAll('a')).find(a => a.href === href);
    if (link) { link.click(); return true; }
    return false;
}"""

_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def target_host(url: str) -> str:
    """Hostname of a URL with its scheme stripped ('https://a.com/x' -> 'a.com')."""
    stripped = _SCHEME.sub("", url.strip())
    return re.split(r"[/?#]", stripped, maxsplit=1)[0].lower()


def normalize_url(url: str) -> str:
    url = url.strip()
    return url if _SCHEME.match(url) else f"https://{url}"


def find_target_link(links: list[dict], target_url: str) -> Optional[dict]:
    """First anchor whose href contains the target's hostname."""
    host = target_host(target_url)
    if not host:
        return None
    for link in links:
        if host in (link.get("href") or "").lower():
            return link
    return None


def internal_links(
    links: list[dict], hostname: Optional[str], min_text_length: int = MIN_LINK_TEXT_LENGTH
) -> list[str]:
    """Followable same-host links: no fragments, enough visible text."""
    if not hostname:
        return []
    result = []
    for link in links:
        href = link.get("href") or ""
        if "#" in href:
            continue
        if urlparse(href).hostname != hostname.lower():
            continue
        if len((link.get("text") or "").strip()) <= min_text_length:
            continue
        result.append(href)
    return result


class WebsiteStrategy(TargetStrategy):
    """Reaches a website through search results and browses it."""

    def __init__(
        self,
        simulator: Optional[HumanInteractionSimulator] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(simulator)
        self._rng = rng or random.Random()

    async def run(self, page: Page, config: SessionConfig, progress: Progress):
        if not config.web_url:
            raise NavigationError("No target website URL configured")
        target_url = normalize_url(config.web_url)

        progress("Heading to target website...")
        query = f"{config.web_keyword} {config.web_url}".strip()
        await self.submit_search(page, config.search_engine, query)
        await page.wait_for_timeout(RESULTS_SETTLE_MS)

        links = await page.eval_on_selector_all("a", ANCHORS_SCRIPT)
        target = find_target_link(links, config.web_url)
        clicked = False
        if target:
            logger.info(f"Found target in search results: {target['href']}")
            clicked = await page.evaluate(CLICK_LINK_SCRIPT, target["href"])
        if not clicked:
            logger.info(f"Target not clickable in results, opening {target_url} directly")
            await self.goto(page, target_url)

        await page.wait_for_timeout(PAGE_SETTLE_MS)
        progress(f"Browsing website ({config.scroll_pattern or 'reader'})...")
        await self.simulator.scroll_pass(page, config.scroll_pattern)

        if config.click_links:
            await self.follow_internal_link(page, progress)

    async def follow_internal_link(self, page: Page, progress: Progress):
        hostname = urlparse(page.url).hostname
        links = await page.eval_on_selector_all("a", ANCHORS_SCRIPT)
        candidates = internal_links(links, hostname)
        if not candidates:
            logger.info(f"No internal links to follow on {hostname}")
            return

        href = self._rng.choice(candidates)
        progress("Opening internal link...")
        await self.goto(page, href)
        await page.wait_for_timeout(RESULTS_SETTLE_MS)
        await self.simulator.scroll_pass(page, "skimmer")
