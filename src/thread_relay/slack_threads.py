# src/thread_relay/slack_threads.py
"""
Fetching thread content from the Slack Web API.
"""
import logging

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from thread_relay.models import ThreadData, ThreadMessage, ThreadReference

LOGGER = logging.getLogger(__name__)


async def fetch_thread_messages(
    client: AsyncWebClient, channel_id: str, thread_ts: str
) -> list[ThreadMessage]:
    """
    Fetch the anchor message and all replies of a thread.

    A single conversations.replies call is made; if Slack truncates the
    result, the truncated list is returned as-is.
    """
    LOGGER.info(
        "[%s].[%s] Fetching thread messages",
        channel_id,
        thread_ts
    )
    try:
        response = await client.conversations_replies(
            channel=channel_id,
            ts=thread_ts,
        )
    except SlackApiError as exc:
        LOGGER.error(
            "[%s].[%s] Slack rejected conversations.replies: %s",
            channel_id,
            thread_ts,
            exc.response.get("error") if exc.response is not None else exc
        )
        raise
    except Exception:
        LOGGER.exception(
            "[%s].[%s] Error fetching thread messages",
            channel_id,
            thread_ts
        )
        raise

    raw_messages = response.get("messages") or []
    if not raw_messages:
        LOGGER.info("[%s].[%s] No messages found in thread", channel_id, thread_ts)
        return []

    LOGGER.info(
        "[%s].[%s] Found %d messages in thread",
        channel_id,
        thread_ts,
        len(raw_messages)
    )
    return [ThreadMessage.from_slack(msg) for msg in raw_messages]


async def fetch_thread(client: AsyncWebClient, ref: ThreadReference) -> ThreadData:
    messages = await fetch_thread_messages(client, ref.channel_id, ref.thread_ts)
    return ThreadData(
        messages=messages,
        channel_id=ref.channel_id,
        thread_ts=ref.thread_ts,
    )
