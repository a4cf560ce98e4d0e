"""
Movers Bot Configuration

SECURITY NOTE: Credentials must be set via environment variables (or a .env
file next to the working directory):
    export BENZINGA_USERNAME="you@example.com"
    export BENZINGA_PASSWORD="your_password"

Every other setting below can be overridden with the MOVERS_* variable
named beside it.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from movers_bot.errors import ConfigError

load_dotenv(override=False)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ('0', 'false', 'no', 'off')


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    """Parse a float from the environment, falling back on bad input."""
    try:
        value = float(os.getenv(name, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


# =============================================================================
# BENZINGA PRO ENDPOINTS
# =============================================================================
BENZINGA_LOGIN_URL = "https://pro.benzinga.com/login"

# =============================================================================
# CREDENTIALS (from environment variables, never defaulted)
# =============================================================================
USERNAME_ENV = "BENZINGA_USERNAME"
PASSWORD_ENV = "BENZINGA_PASSWORD"


@dataclass(frozen=True)
class Credentials:
    """Opaque login secrets passed straight through to the login form."""
    username: str
    password: str

    def __repr__(self):
        return f"Credentials(username={self.username!r}, password='***')"


def load_credentials() -> Credentials:
    """
    Read the Benzinga credentials from the environment.

    Returns:
        Credentials with both values non-empty

    Raises:
        ConfigError: if either variable is missing or blank
    """
    username = (os.getenv(USERNAME_ENV) or "").strip()
    password = os.getenv(PASSWORD_ENV) or ""

    missing = [name for name, value in ((USERNAME_ENV, username), (PASSWORD_ENV, password)) if not value]
    if missing:
        raise ConfigError(
            f"{' and '.join(missing)} not configured. Set environment variables or a .env file:\n"
            f"  export {USERNAME_ENV}='your_username'\n"
            f"  export {PASSWORD_ENV}='your_password'"
        )
    return Credentials(username=username, password=password)


# =============================================================================
# BROWSER SETTINGS
# =============================================================================
HEADLESS_MODE = _env_flag("MOVERS_HEADLESS", False)  # Headed by default, the app misbehaves headless
VIEWPORT = {'width': 1920, 'height': 1080}
BROWSER_ARGS = ['--no-sandbox', '--disable-setuid-sandbox']
SLOW_MO = int(_env_float("MOVERS_SLOW_MO", 0))  # Milliseconds delay between actions

# =============================================================================
# OUTPUT / DIAGNOSTICS
# =============================================================================
OUTPUT_FILE = os.getenv("MOVERS_OUTPUT_FILE", "benzinga_movers.json")
LOG_DIR = os.getenv("MOVERS_LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "movers_bot.log")
LOG_LEVEL = os.getenv("MOVERS_LOG_LEVEL", "INFO")
SCREENSHOT_DIR = os.getenv("MOVERS_SCREENSHOT_DIR", LOG_DIR)
SCREENSHOTS_ENABLED = _env_flag("MOVERS_SCREENSHOTS", True)

NO_MATCH_NOTE = "No stocks matched the filter criteria at the time of scraping."

# =============================================================================
# TIMEOUTS (seconds)
# =============================================================================
PAGE_LOAD_TIMEOUT = _env_float("MOVERS_PAGE_LOAD_TIMEOUT", 60.0, minimum=1.0)
LOGIN_NAVIGATION_TIMEOUT = _env_float("MOVERS_LOGIN_NAV_TIMEOUT", 15.0, minimum=1.0)
DASHBOARD_TIMEOUT = _env_float("MOVERS_DASHBOARD_TIMEOUT", 60.0, minimum=1.0)
ELEMENT_TIMEOUT = _env_float("MOVERS_ELEMENT_TIMEOUT", 30.0, minimum=1.0)
ROWS_TIMEOUT = _env_float("MOVERS_ROWS_TIMEOUT", 15.0, minimum=1.0)

# =============================================================================
# SETTLE DELAYS (seconds) - upper bounds for async re-render, not sync points
# =============================================================================
TOOL_OPEN_SETTLE = _env_float("MOVERS_TOOL_OPEN_SETTLE", 2.0)
POPUP_SETTLE = _env_float("MOVERS_POPUP_SETTLE", 1.0)
STEP_SETTLE = _env_float("MOVERS_STEP_SETTLE", 1.0)
SHORT_STEP_SETTLE = _env_float("MOVERS_SHORT_STEP_SETTLE", 0.5)
FINAL_SETTLE = _env_float("MOVERS_FINAL_SETTLE", 5.0)
GRID_RENDER_SETTLE = _env_float("MOVERS_GRID_RENDER_SETTLE", 3.0)
GRID_SCROLL_OFFSET = 1000  # Pixels scrolled in the grid viewport before extraction

# =============================================================================
# FILTER VALUES
# =============================================================================
MOVERS_TOOL_LABEL = "Movers"
FILTER_TYPE_LABEL = "Gainers"
FILTER_SESSION_LABEL = "PreMarket"
CHANGE_PERCENT_MIN = os.getenv("MOVERS_CHANGE_PERCENT_MIN", "10")
VOLUME_MIN = os.getenv("MOVERS_VOLUME_MIN", "100000")
PRICE_MIN = os.getenv("MOVERS_PRICE_MIN", "1")
PRICE_MAX = os.getenv("MOVERS_PRICE_MAX", "20")

# =============================================================================
# SELECTORS
# =============================================================================
EMAIL_SELECTOR = 'input[type="email"]'
PASSWORD_SELECTOR = 'input[type="password"]'
LOGIN_BUTTON_SELECTORS = [
    'button#auth-login-smb',
    'button.userentery-btn',
    'button[type="submit"]',
]
DASHBOARD_MARKER = '#sidebar-scrollable'
MOVERS_SIDEBAR_SELECTOR = '#sidebar-scrollable > div:nth-child(5)'
TOOL_CONTAINER_SELECTOR = '.bz-tool-container, .bz-workspace-tool'
GRID_ROW_SELECTOR = '.ag-row[row-index]'
GRID_VIEWPORT_SELECTOR = '.ag-body-viewport'

# Output field -> ag-Grid col-id
GRID_COLUMNS = {
    'ticker': 'symbol',
    'company': 'companyName',
    'price': 'close',
    'change': 'changePercent',
    'volume': 'volume',
}

# =============================================================================
# SCHEDULER (Eastern Time)
# =============================================================================
SCHEDULE_TIME = os.getenv("MOVERS_SCHEDULE_TIME", "08:30")  # Mid pre-market session
PREMARKET_OPEN = "04:00"
PREMARKET_CLOSE = "09:30"
