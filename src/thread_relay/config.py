# src/thread_relay/config.py
"""
Configuration for the Slack thread relay.

Values are read from the environment once at import time (``.env`` is loaded
by the package ``__init__``). ``Settings`` bundles them so the app factory can
be handed explicit values in tests.
"""
import logging
from dataclasses import dataclass
from os import environ
from typing import Optional

from thread_relay.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "y")


# ═══════════════════════════════════════════════════════════════════════════════
# Core Configuration
# ═══════════════════════════════════════════════════════════════════════════════

# Slack Configuration
SLACK_BOT_TOKEN = environ.get("SLACK_BOT_TOKEN")
SLACK_SIGNING_SECRET = environ.get("SLACK_SIGNING_SECRET")
SLACK_VERIFY_SIGNATURES = _as_bool(environ.get("SLACK_VERIFY_SIGNATURES"), True)
SLACK_CHAT_COMMAND = environ.get("SLACK_CHAT_COMMAND", "/chatgpt")
SLACK_FETCH_COMMAND = environ.get("SLACK_FETCH_COMMAND", "/fetch-thread")

# OpenAI Configuration
OPENAI_API_KEY = environ.get("OPENAI_API_KEY")
OPENAI_MODEL = environ.get("OPENAI_MODEL", "gpt-4")
OPENAI_MAX_TOKENS = int(environ.get("OPENAI_MAX_TOKENS", "2000"))

# Session Storage Configuration
REDIS_URL = environ.get("REDIS_URL")
SESSION_KEY_PREFIX = environ.get("SESSION_KEY_PREFIX", "chat:")

# Server Configuration
PORT = int(environ.get("PORT", "8080"))

LOGGER.info(
    "Environment check: SLACK_BOT_TOKEN=%s SLACK_SIGNING_SECRET=%s OPENAI_API_KEY=%s REDIS_URL=%s",
    "exists" if SLACK_BOT_TOKEN else "missing",
    "exists" if SLACK_SIGNING_SECRET else "missing",
    "exists" if OPENAI_API_KEY else "missing",
    "exists" if REDIS_URL else "missing",
)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for one app instance."""
    slack_bot_token: Optional[str] = None
    slack_signing_secret: Optional[str] = None
    verify_signatures: bool = True
    chat_command: str = "/chatgpt"
    fetch_command: str = "/fetch-thread"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4"
    openai_max_tokens: int = 2000
    redis_url: Optional[str] = None
    session_key_prefix: str = "chat:"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            slack_bot_token=SLACK_BOT_TOKEN,
            slack_signing_secret=SLACK_SIGNING_SECRET,
            verify_signatures=SLACK_VERIFY_SIGNATURES,
            chat_command=SLACK_CHAT_COMMAND,
            fetch_command=SLACK_FETCH_COMMAND,
            openai_api_key=OPENAI_API_KEY,
            openai_model=OPENAI_MODEL,
            openai_max_tokens=OPENAI_MAX_TOKENS,
            redis_url=REDIS_URL,
            session_key_prefix=SESSION_KEY_PREFIX,
        )

    def require(self, name: str) -> str:
        """
        Return the named setting, raising ConfigurationError when it is unset.
        """
        value = getattr(self, name)
        if not value:
            LOGGER.error("%s is not set", name.upper())
            raise ConfigurationError(f"{name.upper()} is not set")
        return value
