"""MCP Server entry point for the traffic bot.

Exposes 4 tools via the Model Context Protocol:
- start_session, session_status, stop_session, list_sessions

The bot session HTTP service (aiohttp) is auto-started as part of the
MCP server lifecycle, so no separate process is needed.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from aiohttp.web import AppRunner, TCPSite
from mcp.server.fastmcp import FastMCP

from .config import SERVER_HOST, SERVER_PORT
from .tools.session_tools import list_sessions, session_status, start_session, stop_session

# Configure logging to stderr (stdout is reserved for MCP JSON-RPC)
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("trafficbot")


# ── Lifespan: auto-start the session service ────────────────────────────────


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Start the bot session service alongside the MCP server."""
    from .session_manager.manager import create_app

    app = create_app()
    runner = AppRunner(app)
    await runner.setup()
    site = TCPSite(runner, SERVER_HOST, SERVER_PORT)
    managed = False
    try:
        await site.start()
        logger.info("Bot session service auto-started on %s:%s", SERVER_HOST, SERVER_PORT)
        managed = True
    except OSError:
        # Port already in use, assume the service was started manually
        logger.info("Bot session service already running on %s:%s", SERVER_HOST, SERVER_PORT)
        await runner.cleanup()

    try:
        yield {}
    finally:
        if managed:
            await runner.cleanup()
            logger.info("Bot session service stopped.")


# ── MCP Server ───────────────────────────────────────────────────────────────

mcp = FastMCP(
    "trafficbot",
    lifespan=lifespan,
    instructions=(
        "Traffic Bot - Tools to run scripted, human-like browsing sessions. "
        "The bot session service starts automatically with this server. "
        "Call start_session with target 'youtube' or 'website' to launch a run; "
        "it returns a session id immediately. Use session_status to follow it, "
        "stop_session to cancel it and list_sessions for an overview."
    ),
)


@mcp.tool()
async def tool_start_session(
    target: str,
    keyword: str = "",
    url: str = "",
    search_engine: str = "google",
    watch_duration: float = 10,
    like: bool = False,
    click_links: bool = False,
    scroll_pattern: str = "reader",
    proxy_server: str = "",
) -> str:
    """Start a bot session.

    Args:
        target: "youtube" or "website".
        keyword: Search keyword.
        url: Website URL (website) or direct video URL (youtube).
        search_engine: "google", "bing", or "none".
        watch_duration: Minutes to watch; capped by the service ceiling.
        like: Like the watched video.
        click_links: Follow one internal link on the website.
        scroll_pattern: "reader", "skimmer", "researcher" or "bouncer".
        proxy_server: Optional proxy server URL.
    """
    return await start_session(
        target, keyword, url, search_engine, watch_duration,
        like, click_links, scroll_pattern, proxy_server,
    )


@mcp.tool()
async def tool_session_status(session_id: str) -> str:
    """Get the last known status of a bot session."""
    return await session_status(session_id)


@mcp.tool()
async def tool_stop_session(session_id: str) -> str:
    """Stop a running bot session and close its browser."""
    return await stop_session(session_id)


@mcp.tool()
async def tool_list_sessions() -> str:
    """List all bot sessions seen by the service."""
    return await list_sessions()


# ── Entry Point ──────────────────────────────────────────────────────────────


def main():
    """Run the MCP server on STDIO transport."""
    logger.info("Starting traffic bot MCP server...")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
