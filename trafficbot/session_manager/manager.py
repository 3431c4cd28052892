"""Bot session HTTP service.

Runs as a lightweight web server that accepts bot session requests,
runs each session as its own asyncio task, and pushes status events to
WebSocket observers.

Endpoints:
    POST /api/start-bot               - Start a session (returns immediately)
    GET  /api/bot-status/{session_id} - Last known status of a session
    POST /api/stop-bot                - Cancel a running session
    GET  /api/sessions                - All tracked sessions
    GET  /ws                          - Event stream (bot-status, bot-update)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Optional

from aiohttp import WSMsgType, web
from pydantic import ValidationError

from ..config import MAX_CONCURRENT_SESSIONS, SERVER_HOST, SERVER_PORT, SESSION_RETENTION
from ..models.session import BotStatusEvent, SessionConfig, SessionState
from .broadcaster import BOT_COMMAND, StatusBroadcaster, Subscription
from .browser import BrowserController
from .orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class AdmissionError(Exception):
    """Too many sessions are already running."""


class SessionConflictError(Exception):
    """A session with the requested id already exists."""


@dataclass
class SessionRecord:
    session_id: str
    target: str
    task: Optional[asyncio.Task] = None
    last_event: Optional[BotStatusEvent] = None
    history: list[str] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.task is not None and not self.task.done()


class SessionManager:
    """Starts, tracks and stops bot sessions."""

    def __init__(
        self,
        broadcaster: Optional[StatusBroadcaster] = None,
        orchestrator: Optional[SessionOrchestrator] = None,
        max_sessions: int = MAX_CONCURRENT_SESSIONS,
        retention: int = SESSION_RETENTION,
    ):
        self.broadcaster = broadcaster or StatusBroadcaster()
        self.orchestrator = orchestrator or SessionOrchestrator(BrowserController(), self.broadcaster)
        self.orchestrator.add_listener(self._record)
        self.max_sessions = max_sessions
        self.retention = retention
        self.sessions: dict[str, SessionRecord] = {}

    @property
    def running_count(self) -> int:
        return sum(1 for record in self.sessions.values() if record.is_running)

    def _record(self, event: BotStatusEvent):
        record = self.sessions.get(event.session_id)
        if record is None:
            return
        record.last_event = event
        record.history.append(event.status.value)

    def start(self, config: SessionConfig) -> str:
        """Schedule a session and return its id without waiting for it.

        Raises:
            AdmissionError: if the concurrent session limit is reached.
            SessionConflictError: if the config carries an id already in use.
        """
        if self.max_sessions and self.running_count >= self.max_sessions:
            raise AdmissionError(f"Session limit reached ({self.max_sessions} running)")

        config = config.with_session_id()
        if config.session_id in self.sessions:
            raise SessionConflictError(f"Session {config.session_id} already exists")
        record = SessionRecord(session_id=config.session_id, target=config.target)
        self.sessions[config.session_id] = record
        record.task = asyncio.create_task(self._run(config))
        record.task.add_done_callback(lambda _: self._prune())
        logger.info(f"Accepted bot session {config.session_id} for target: {config.target}")
        return config.session_id

    async def _run(self, config: SessionConfig):
        try:
            await self.orchestrator.run(config)
        except asyncio.CancelledError:
            logger.info(f"Bot session {config.session_id} stopped.")
            raise
        except Exception as e:
            logger.error(f"Bot session {config.session_id} failed: {e}", exc_info=True)

    def _prune(self):
        """Forget the oldest finished sessions beyond the retention limit."""
        finished = [sid for sid, record in self.sessions.items() if not record.is_running]
        excess = len(finished) - max(self.retention, 0)
        if excess > 0:
            for session_id in finished[:excess]:
                del self.sessions[session_id]

    def status(self, session_id: str) -> Optional[BotStatusEvent]:
        record = self.sessions.get(session_id)
        if record is None:
            return None
        if record.last_event is None:
            return BotStatusEvent(
                session_id=session_id, status=SessionState.STARTING, message="Session queued"
            )
        return record.last_event

    def stop(self, session_id: str) -> bool:
        """Cancel a running session. Returns False if it was not running."""
        record = self.sessions.get(session_id)
        if record is None or not record.is_running:
            return False
        record.task.cancel()
        if record.last_event is None:
            # Cancelled before its first step, so the orchestrator never runs
            for status, message in (
                (SessionState.STARTING, "Session queued"),
                (SessionState.ERROR, "Session stopped"),
            ):
                event = BotStatusEvent(session_id=session_id, status=status, message=message)
                self.broadcaster.publish_status(event)
                self._record(event)
        return True

    async def cleanup(self):
        """Cancel running sessions and wait for their teardown."""
        tasks = [r.task for r in self.sessions.values() if r.is_running]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


# ── HTTP Handlers ────────────────────────────────────────────────────────────


async def _read_json(request: web.Request) -> dict:
    if not request.content_length:
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


async def handle_start(request: web.Request) -> web.Response:
    mgr: SessionManager = request.app["manager"]
    try:
        body = await _read_json(request)
        config = SessionConfig.model_validate(body)
    except (ValueError, ValidationError) as e:
        return web.json_response({"success": False, "error": f"Invalid config: {e}"}, status=400)

    if not config.target:
        return web.json_response(
            {"success": False, "error": "Target must be specified (youtube/website)"},
            status=400,
        )

    try:
        session_id = mgr.start(config)
    except AdmissionError as e:
        return web.json_response({"success": False, "error": str(e)}, status=429)
    except SessionConflictError as e:
        return web.json_response({"success": False, "error": str(e)}, status=409)

    return web.json_response(
        {"success": True, "message": "Bot session started", "sessionId": session_id}
    )


async def handle_status(request: web.Request) -> web.Response:
    mgr: SessionManager = request.app["manager"]
    session_id = request.match_info["session_id"]

    event = mgr.status(session_id)
    if event is None:
        return web.json_response({"error": f"Unknown session: {session_id}"}, status=404)

    return web.json_response(
        {
            "sessionId": session_id,
            "status": event.status.value,
            "message": event.message,
            "lastUpdated": event.timestamp,
        }
    )


async def handle_stop(request: web.Request) -> web.Response:
    mgr: SessionManager = request.app["manager"]
    try:
        body = await _read_json(request)
    except ValueError as e:
        return web.json_response({"success": False, "error": str(e)}, status=400)

    session_id = body.get("sessionId", "")
    if not isinstance(session_id, str):
        return web.json_response(
            {"success": False, "error": "sessionId must be a string"}, status=400
        )
    if session_id not in mgr.sessions:
        return web.json_response(
            {"success": False, "error": f"Unknown session: {session_id}"}, status=404
        )

    if mgr.stop(session_id):
        return web.json_response({"success": True, "message": "Stop command received"})
    return web.json_response({"success": True, "message": "Session already finished"})


async def handle_list(request: web.Request) -> web.Response:
    mgr: SessionManager = request.app["manager"]
    sessions = []
    for record in mgr.sessions.values():
        event = record.last_event
        sessions.append(
            {
                "sessionId": record.session_id,
                "target": record.target,
                "running": record.is_running,
                "status": event.status.value if event else SessionState.STARTING.value,
                "message": event.message if event else "",
                "lastUpdated": event.timestamp if event else None,
                "history": list(record.history),
            }
        )
    return web.json_response({"sessions": sessions, "running": mgr.running_count})


async def _forward(subscription: Subscription, ws: web.WebSocketResponse):
    async for message in subscription:
        if ws.closed:
            break
        await ws.send_str(message.to_json())


async def handle_ws(request: web.Request) -> web.WebSocketResponse:
    mgr: SessionManager = request.app["manager"]
    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)

    client = request.remote or "unknown"
    logger.info(f"Client connected: {client}")
    subscription = mgr.broadcaster.subscribe()
    sender = asyncio.create_task(_forward(subscription, ws))

    try:
        async for msg in ws:
            if msg.type != WSMsgType.TEXT:
                continue
            try:
                payload = json.loads(msg.data)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring non-JSON message from {client}")
                continue
            if isinstance(payload, dict) and payload.get("event") == BOT_COMMAND:
                mgr.broadcaster.relay_command(payload.get("data"))
    finally:
        subscription.close()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        logger.info(f"Client disconnected: {client}")

    return ws


# ── App Factory ──────────────────────────────────────────────────────────────


async def on_startup(app: web.Application):
    if "manager" not in app:
        app["manager"] = SessionManager()
    logger.info(f"Bot session service started on {SERVER_HOST}:{SERVER_PORT}")


async def on_cleanup(app: web.Application):
    mgr: SessionManager = app["manager"]
    await mgr.cleanup()
    logger.info("Bot session service stopped.")


def create_app(manager: Optional[SessionManager] = None) -> web.Application:
    app = web.Application()
    if manager is not None:
        app["manager"] = manager
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    app.router.add_post("/api/start-bot", handle_start)
    app.router.add_get("/api/bot-status/{session_id}", handle_status)
    app.router.add_post("/api/stop-bot", handle_stop)
    app.router.add_get("/api/sessions", handle_list)
    app.router.add_get("/ws", handle_ws)

    return app


def main():
    """Run the bot session service as a standalone HTTP server."""
    app = create_app()
    web.run_app(app, host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    main()
