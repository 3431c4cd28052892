"""Target URLs, search engines, CSS selectors, and timing constants."""

# ── URLs ─────────────────────────────────────────────────────────────────────

YOUTUBE_DOMAIN = "youtube.com"
YOUTUBE_BASE = f"https://www.{YOUTUBE_DOMAIN}"
GOOGLE_BASE = "https://www.google.com"
BING_BASE = "https://www.bing.com"

# ── Search Engines ───────────────────────────────────────────────────────────

SEARCH_ENGINES = {
    "google": {"url": GOOGLE_BASE, "input": 'textarea[name="q"]'},
    "bing": {"url": BING_BASE, "input": 'input[name="q"]'},
}
DEFAULT_SEARCH_ENGINE = "google"

# ── CSS Selectors ────────────────────────────────────────────────────────────

SELECTORS = {
    # YouTube search
    "yt_search_input": 'input[name="search_query"]',
    "yt_results": "ytd-video-renderer, ytd-rich-item-renderer",

    # YouTube watch page
    "yt_like_button": (
        'like-button-view-model button, '
        'button[aria-label^="like this video" i]'
    ),
    "yt_channel_link": "ytd-video-owner-renderer #channel-name a",
}

# ── Browser ──────────────────────────────────────────────────────────────────

VIEWPORT = {"width": 1920, "height": 1080}

CHROMIUM_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-blink-features=AutomationControlled",
    # Block notification prompts
    "--disable-notifications",
)

# Block notification prompts and the password manager
FIREFOX_PREFS = {
    "permissions.default.desktop-notification": 2,
    "signon.rememberSignons": False,
    "signon.autofillForms": False,
}

# ── Timing (ms) ──────────────────────────────────────────────────────────────

SEARCH_SETTLE_MS = 2000
RESULTS_SETTLE_MS = 3000
PAGE_SETTLE_MS = 5000
INTERACTION_SETTLE_MS = 1000
TYPING_DELAY_MS = 80

# Scroll distance used by the periodic scroll during the watch phase
WATCH_SCROLL_RANGE = (300, 800)

# Anchors with this much visible text or less are not followed
MIN_LINK_TEXT_LENGTH = 5
