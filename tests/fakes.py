"""In-memory stand-ins for Playwright pages and browser sessions."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from trafficbot.session_manager.humanize import SCROLL_SCRIPT
from trafficbot.session_manager.strategy import TargetStrategy
from trafficbot.session_manager.website import CLICK_LINK_SCRIPT


class FakeElement:
    def __init__(self, page: Optional[FakePage] = None, navigate_to: str = "", fail: bool = False):
        self.page = page
        self.navigate_to = navigate_to
        self.fail = fail
        self.clicks = 0

    async def click(self):
        if self.fail:
            raise PlaywrightError("Element is not attached to the DOM")
        self.clicks += 1
        if self.page is not None and self.navigate_to:
            self.page.url = self.navigate_to


class FakeKeyboard:
    def __init__(self):
        self.pressed: list[str] = []

    async def press(self, key: str):
        self.pressed.append(key)


class FakePage:
    """Records what a strategy does to it.

    anchors: page url -> anchors ({href, text}) returned for that page.
    elements: selector -> elements returned by queries and waits.
    """

    def __init__(
        self,
        anchors: Optional[dict[str, list[dict]]] = None,
        elements: Optional[dict[str, list[FakeElement]]] = None,
        fail_urls: tuple[str, ...] = (),
        slow_urls: tuple[str, ...] = (),
    ):
        self.url = "about:blank"
        self.anchors = anchors or {}
        self.elements = elements or {}
        self.fail_urls = set(fail_urls)
        # Time out on their first load only
        self.slow_urls = set(slow_urls)
        self.keyboard = FakeKeyboard()
        self.navigations: list[tuple[str, str, float]] = []
        self.visited: list[str] = []
        self.typed: list[tuple[str, str]] = []
        self.scrolls: list[int] = []
        self.waits: list[float] = []
        self.clicked_links: list[str] = []
        self.on_wait: Optional[Callable[[float], Awaitable[None]]] = None

    async def goto(self, url, wait_until=None, timeout=None):
        self.navigations.append((url, wait_until, timeout))
        if url in self.fail_urls:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if url in self.slow_urls:
            self.slow_urls.discard(url)
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.visited.append(url)
        self.url = url

    async def type(self, selector, text, delay=None):
        self.typed.append((selector, text))

    async def wait_for_timeout(self, timeout):
        self.waits.append(timeout)
        if self.on_wait is not None:
            await self.on_wait(timeout)

    async def wait_for_load_state(self, state=None, timeout=None):
        return None

    async def evaluate(self, expression, arg=None):
        if expression == SCROLL_SCRIPT:
            self.scrolls.append(arg)
            return None
        if expression == CLICK_LINK_SCRIPT:
            self.clicked_links.append(arg)
            self.url = arg
            return True
        return None

    async def eval_on_selector_all(self, selector, expression):
        return list(self.anchors.get(self.url, []))

    async def query_selector_all(self, selector):
        return list(self.elements.get(selector, []))

    async def query_selector(self, selector):
        found = self.elements.get(selector)
        return found[0] if found else None

    async def wait_for_selector(self, selector, timeout=None):
        found = self.elements.get(selector)
        if not found:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return found[0]


class FakeBrowserSession:
    def __init__(self, page: Optional[FakePage] = None):
        self.page = page or FakePage()
        self.close_calls = 0

    async def close(self):
        self.close_calls += 1


class FakeController:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sessions: list[FakeBrowserSession] = []

    async def acquire(self, config):
        if self.error is not None:
            raise self.error
        session = FakeBrowserSession()
        self.sessions.append(session)
        return session


class ScriptedStrategy(TargetStrategy):
    """Reports fixed progress messages, optionally blocks, then succeeds or fails."""

    def __init__(self, messages=("working",), error: Optional[Exception] = None, gate=None):
        super().__init__()
        self.messages = messages
        self.error = error
        self.gate = gate
        self.pages = []

    async def run(self, page, config, progress):
        self.pages.append(page)
        for message in self.messages:
            progress(message)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
