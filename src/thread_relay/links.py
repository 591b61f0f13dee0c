# src/thread_relay/links.py
"""
Slack thread link parsing.

Accepts either a full message permalink
(``https://acme.slack.com/archives/C12345/p1234567890123456``) or the
shorthand ``C12345/p1234567890123456``.
"""
import logging
import re
import secrets
from typing import Optional

from thread_relay.models import ThreadReference

LOGGER = logging.getLogger(__name__)

ARCHIVES_MARKER = "/archives/"
PERMALINK_PREFIX = "p"
SECONDS_DIGITS = 10

# Slack wraps links in slash command text as <url> or <url|label>
_SLACK_LINK_RE = re.compile(r"^<([^|>]+)(?:\|[^>]*)?>$")


def _permalink_ts_to_api_ts(message_id: str) -> str:
    """p1234567890123456 -> 1234567890.123456; anything else is returned as-is."""
    if not message_id.startswith(PERMALINK_PREFIX):
        return message_id
    digits = message_id[len(PERMALINK_PREFIX):]
    return f"{digits[:SECONDS_DIGITS]}.{digits[SECONDS_DIGITS:]}"


def parse_thread_link(link: str) -> Optional[ThreadReference]:
    """
    Parse a thread link into a ThreadReference.

    Returns None when the text is not a recognizable link; never raises.
    """
    try:
        text = (link or "").strip()
        match = _SLACK_LINK_RE.match(text)
        if match:
            text = match.group(1)

        if ARCHIVES_MARKER in text:
            segment = text.split(ARCHIVES_MARKER, 1)[1]
        elif "/" in text:
            segment = text
        else:
            return None

        parts = segment.split("/")
        if len(parts) < 2:
            return None

        channel_id = parts[0]
        message_id = parts[1].split("?", 1)[0].split("#", 1)[0]
        if not channel_id or not message_id:
            return None

        return ThreadReference(
            channel_id=channel_id,
            thread_ts=_permalink_ts_to_api_ts(message_id),
        )
    except Exception:
        LOGGER.exception("Error parsing thread link: %r", link)
        return None


def generate_chat_id() -> str:
    """Return a short random chat id (8 hex chars)."""
    return secrets.token_hex(4)
