"""Pydantic models for bot session configuration and status."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TargetKind(str, Enum):
    """What a session navigates against."""

    VIDEO_PLATFORM = "youtube"
    WEBSITE = "website"

    @classmethod
    def parse(cls, value: str | None) -> Optional[TargetKind]:
        """Resolve a wire value (or alias) to a TargetKind, None if unknown."""
        if not value:
            return None
        key = value.strip().lower()
        if key == "video-platform":
            return cls.VIDEO_PLATFORM
        try:
            return cls(key)
        except ValueError:
            return None


class SessionState(str, Enum):
    STARTING = "starting"
    PROGRESS = "progress"
    COMPLETED = "completed"
    ERROR = "error"


class ProxyAuth(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = ""
    password: str = ""


class SessionConfig(BaseModel):
    """Everything a single bot session needs. Frozen once built."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    target: str = ""
    search_engine: str = Field("google", alias="searchEngine")

    # Video platform
    yt_keyword: str = Field("", alias="ytKeyword")
    yt_direct_url: str = Field("", alias="ytDirectUrl")
    watch_duration: Optional[float] = Field(None, alias="watchDuration", ge=0)  # minutes
    yt_like: bool = Field(False, alias="ytLike")
    yt_visit_channel: bool = Field(True, alias="ytVisitChannel")

    # Website
    web_url: str = Field("", alias="webUrl")
    web_keyword: str = Field("", alias="webKeyword")
    scroll_pattern: str = Field("reader", alias="scrollPattern")
    click_links: bool = Field(False, alias="clickLinks")

    # Browser
    proxy_server: str = Field("", alias="proxyServer")
    proxy_auth: Optional[ProxyAuth] = Field(None, alias="proxyAuth")
    user_agent: str = Field("", alias="userAgent")

    session_id: str = Field("", alias="sessionId")

    @property
    def target_kind(self) -> Optional[TargetKind]:
        return TargetKind.parse(self.target)

    def with_session_id(self) -> SessionConfig:
        """Return this config with a session id, generating one if missing."""
        if self.session_id:
            return self
        return self.model_copy(update={"session_id": str(uuid.uuid4())})

    def proxy_settings(self) -> Optional[dict]:
        """Playwright proxy dict, or None when no proxy is configured."""
        if not self.proxy_server:
            return None
        proxy = {"server": self.proxy_server}
        if self.proxy_auth and self.proxy_auth.username:
            proxy["username"] = self.proxy_auth.username
            proxy["password"] = self.proxy_auth.password or ""
        return proxy


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class BotStatusEvent(BaseModel):
    """A lifecycle event for one session, as pushed to observers."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    status: SessionState
    message: str = ""
    timestamp: str = Field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (SessionState.COMPLETED, SessionState.ERROR)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SessionResult(BaseModel):
    session_id: str = Field(alias="sessionId")
    success: bool = True
    message: str = ""

    model_config = ConfigDict(populate_by_name=True)
