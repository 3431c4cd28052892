"""Session lifecycle: acquire browser, run strategy, release, report."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Callable, Optional

from ..models.session import (
    BotStatusEvent,
    SessionConfig,
    SessionResult,
    SessionState,
    TargetKind,
)
from .broadcaster import StatusBroadcaster
from .browser import BrowserController, BrowserSession
from .humanize import HumanInteractionSimulator
from .strategy import TargetStrategy
from .video import VideoPlatformStrategy
from .website import WebsiteStrategy

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

StatusListener = Callable[[BotStatusEvent], None]


def default_strategies(
    simulator: Optional[HumanInteractionSimulator] = None,
) -> dict[TargetKind, TargetStrategy]:
    simulator = simulator or HumanInteractionSimulator()
    return {
        TargetKind.VIDEO_PLATFORM: VideoPlatformStrategy(simulator),
        TargetKind.WEBSITE: WebsiteStrategy(simulator),
    }


class SessionOrchestrator:
    """Runs one bot session end to end and guarantees teardown."""

    def __init__(
        self,
        controller: BrowserController,
        broadcaster: StatusBroadcaster,
        strategies: Optional[dict[TargetKind, TargetStrategy]] = None,
        listeners: Optional[list[StatusListener]] = None,
    ):
        self.controller = controller
        self.broadcaster = broadcaster
        self.strategies = strategies if strategies is not None else default_strategies()
        self._listeners = list(listeners or [])

    def add_listener(self, listener: StatusListener):
        self._listeners.append(listener)

    def _emit(self, session_id: str, status: SessionState, message: str):
        event = BotStatusEvent(session_id=session_id, status=status, message=message)
        self.broadcaster.publish_status(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"[{session_id}] Status listener failed: {e}")

    async def run(self, config: SessionConfig) -> SessionResult:
        """Run the session described by `config`.

        Emits `starting`, any number of `progress`, then exactly one of
        `completed` or `error`. On failure the error is re-raised after
        the browser has been released.
        """
        config = config.with_session_id()
        session_id = config.session_id
        target = config.target_kind
        logger.info(f"[{session_id}] Starting bot session for target: {config.target!r}")

        self._emit(session_id, SessionState.STARTING, "Launching browser")

        strategy = self.strategies.get(target) if target else None
        if strategy is None:
            logger.warning(f"[{session_id}] No strategy for target {config.target!r}, nothing to do")
            self._emit(session_id, SessionState.COMPLETED, "Bot session finished")
            return SessionResult(session_id=session_id, message="No strategy for target")

        session: Optional[BrowserSession] = None
        try:
            session = await self.controller.acquire(config)
            await strategy.run(
                session.page,
                config,
                lambda message: self._emit(session_id, SessionState.PROGRESS, message),
            )
            await self._release(session)
        except asyncio.CancelledError:
            logger.info(f"[{session_id}] Session cancelled")
            await self._release(session)
            self._emit(session_id, SessionState.ERROR, "Session stopped")
            raise
        except Exception as e:
            logger.error(f"[{session_id}] Bot session failed: {e}")
            await self._release(session)
            self._emit(session_id, SessionState.ERROR, str(e) or type(e).__name__)
            raise

        self._emit(session_id, SessionState.COMPLETED, "Bot session finished")
        logger.info(f"[{session_id}] Bot session completed")
        return SessionResult(session_id=session_id, message="Bot session completed")

    async def _release(self, session: Optional[BrowserSession]):
        if session is not None:
            await asyncio.shield(session.close())
