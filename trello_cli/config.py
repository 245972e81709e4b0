"""
trello-cli shared configuration, constants, and module-level state.
Standalone module — no imports from other project files.
"""

import os

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")

# Keys that may also come from the process environment (CI, containers).
_ENV_KEYS = (
    "TRELLO_API_KEY",
    "TRELLO_TOKEN",
    "TRELLO_BASE_URL",
    "TRELLO_EDITOR",
    "TRELLO_HTTP_TIMEOUT_SECONDS",
    "TRELLO_HTTP_MAX_RETRIES",
    "TRELLO_HTTP_RETRY_BASE_SECONDS",
    "TRELLO_HTTP_MAX_RESPONSE_BYTES",
    "TRELLO_HTTP_LOG",
    "TRELLO_DEBUG",
    "TRELLO_MCP_RESPONSE_MODE",
)


def load_env():
    """Read KEY=value pairs from .env; process environment fills the gaps."""
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    for key in _ENV_KEYS:
        if key not in env and os.environ.get(key):
            env[key] = os.environ[key]
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.3.0"
CONTRACT_SCHEMA_VERSION = "1.0"

DEFAULT_BASE_URL = "https://api.trello.com"
DEFAULT_EDITOR = "vi"
OBJECT_TYPES = ("board", "list", "card")

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env)
# ---------------------------------------------------------------------------

env = load_env()

API_KEY = env.get("TRELLO_API_KEY", "")
TOKEN = env.get("TRELLO_TOKEN", "")
BASE_URL = env.get("TRELLO_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
EDITOR = env.get("TRELLO_EDITOR", "")
HTTP_TIMEOUT_SECONDS = _env_int("TRELLO_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RETRIES = _env_int("TRELLO_HTTP_MAX_RETRIES", 2)
HTTP_RETRY_BASE_SECONDS = _env_float("TRELLO_HTTP_RETRY_BASE_SECONDS", 1.0)
HTTP_MAX_RESPONSE_BYTES = _env_int("TRELLO_HTTP_MAX_RESPONSE_BYTES", 5_000_000)
HTTP_LOG_ENABLED = _env_bool("TRELLO_HTTP_LOG", False)
DEBUG_LOG_ENABLED = _env_bool("TRELLO_DEBUG", False)

MCP_RESPONSE_MODE = env.get("TRELLO_MCP_RESPONSE_MODE", "legacy").strip().lower()
if MCP_RESPONSE_MODE not in {"legacy", "envelope"}:
    MCP_RESPONSE_MODE = "legacy"

# ---------------------------------------------------------------------------
# Runtime flags (set by cli.main)
# ---------------------------------------------------------------------------

RUNTIME_QUIET = False
RUNTIME_VERBOSE = False
