"""MCP tools for starting, inspecting and stopping bot sessions."""

from __future__ import annotations

import json

import httpx

from ..config import SERVER_URL


async def _call_session_service(method: str, path: str, json_body: dict | None = None) -> dict:
    """Make a request to the bot session HTTP service."""
    url = f"{SERVER_URL}{path}"
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            if method == "GET":
                resp = await client.get(url)
            else:
                resp = await client.post(url, json=json_body or {})

            if resp.status_code >= 400:
                data = resp.json()
                return {"error": data.get("error", f"HTTP {resp.status_code}")}
            return resp.json()

    except httpx.ConnectError:
        return {
            "error": "Bot session service is not reachable at "
            f"{SERVER_URL}. It should auto-start with the MCP server. "
            "If running standalone: python -m trafficbot.session_manager"
        }
    except httpx.TimeoutException:
        return {"error": "Bot session service timed out."}
    except Exception as e:
        return {"error": f"Failed to connect to bot session service: {e}"}


async def start_session(
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
    """Start a bot session against YouTube or a website.

    Args:
        target: "youtube" or "website".
        keyword: Search keyword.
        url: Website URL (website) or direct video URL (youtube).
        search_engine: "google", "bing", or "none" to skip search.
        watch_duration: Minutes to watch (capped by the service).
        like: Like the video (youtube only).
        click_links: Follow one internal link (website only).
        scroll_pattern: "reader", "skimmer", "researcher" or "bouncer".
        proxy_server: Optional proxy, e.g. "http://host:port".

    Returns:
        Session id message.
    """
    body = {
        "target": target,
        "searchEngine": search_engine,
        "scrollPattern": scroll_pattern,
        "proxyServer": proxy_server,
    }
    if target == "website":
        body.update({"webUrl": url, "webKeyword": keyword, "clickLinks": click_links})
    else:
        body.update(
            {
                "ytKeyword": keyword,
                "ytDirectUrl": url,
                "watchDuration": watch_duration,
                "ytLike": like,
            }
        )

    result = await _call_session_service("POST", "/api/start-bot", body)

    if "error" in result:
        return f"Error: {result['error']}"

    return f"Bot session started. Session id: {result.get('sessionId')}"


async def session_status(session_id: str) -> str:
    """Return the last known status of a session as JSON."""
    result = await _call_session_service("GET", f"/api/bot-status/{session_id}")

    if "error" in result:
        return f"Error: {result['error']}"

    return json.dumps(result, indent=2)


async def stop_session(session_id: str) -> str:
    """Stop a running session. The browser is closed before it reports."""
    result = await _call_session_service("POST", "/api/stop-bot", {"sessionId": session_id})

    if "error" in result:
        return f"Error: {result['error']}"

    return result.get("message", "Stop command received")


async def list_sessions() -> str:
    """List tracked sessions and their last status."""
    result = await _call_session_service("GET", "/api/sessions")

    if "error" in result:
        return f"Error: {result['error']}"

    sessions = result.get("sessions", [])
    if not sessions:
        return "No bot sessions yet."

    lines = [f"{len(sessions)} session(s), {result.get('running', 0)} running:\n"]
    for session in sessions:
        lines.append(
            f"- {session['sessionId']} [{session.get('target') or '?'}] "
            f"{session['status']}: {session.get('message', '')}"
        )
    return "\n".join(lines)
