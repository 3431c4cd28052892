"""Application configuration loaded from environment variables."""

import os

from dotenv import load_dotenv

load_dotenv()

# Session service
SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("PORT", "3000"))
SERVER_URL = os.getenv("SERVER_URL", f"http://127.0.0.1:{SERVER_PORT}")

# Browser
BROWSER_ENGINE = os.getenv("BROWSER_ENGINE", "camoufox").lower()  # camoufox | chromium
BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS", "true").lower() == "true"
BROWSER_TIMEOUT = int(os.getenv("BROWSER_TIMEOUT", "30000"))

# Watch phase
WATCH_TIME_CEILING_SECONDS = float(os.getenv("WATCH_TIME_CEILING_SECONDS", "60"))
DEFAULT_WATCH_MINUTES = float(os.getenv("DEFAULT_WATCH_MINUTES", "10"))
WATCH_SCROLL_INTERVAL_SECONDS = float(os.getenv("WATCH_SCROLL_INTERVAL_SECONDS", "10"))
RESULT_SELECTOR_TIMEOUT_MS = int(os.getenv("RESULT_SELECTOR_TIMEOUT_MS", "10000"))

# Scrolling
SCROLL_PASS_STEPS = int(os.getenv("SCROLL_PASS_STEPS", "3"))

# Sessions
MAX_CONCURRENT_SESSIONS = int(os.getenv("MAX_CONCURRENT_SESSIONS", "0"))  # 0 = unlimited
BROADCAST_QUEUE_SIZE = int(os.getenv("BROADCAST_QUEUE_SIZE", "100"))
SESSION_RETENTION = int(os.getenv("SESSION_RETENTION", "100"))  # finished sessions kept for status
