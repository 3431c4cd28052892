"""Exceptions raised while running a bot session."""


class TrafficBotError(Exception):
    """Base class for session failures."""


class LaunchError(TrafficBotError):
    """The browser process or its page could not be started."""


class NavigationError(TrafficBotError):
    """A page failed to reach the requested state."""


class SelectorTimeoutError(TrafficBotError):
    """An expected element did not appear within its timeout."""

    def __init__(self, selector: str, timeout_ms: int):
        super().__init__(f"Selector '{selector}' did not appear within {timeout_ms}ms")
        self.selector = selector
        self.timeout_ms = timeout_ms


class BestEffortInteractionError(TrafficBotError):
    """An optional interaction failed. Logged, never fatal."""
