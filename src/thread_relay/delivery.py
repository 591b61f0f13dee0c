# src/thread_relay/delivery.py
"""
Deferred delivery of slash command results through Slack's response_url.

Bolt hands every lazy listener a ``respond`` bound to the command's
response_url; this module wraps it so a rejected post is an error rather
than a silently ignored status code.
"""
import logging
from typing import Optional

from slack_bolt.context.respond.async_respond import AsyncRespond

from thread_relay.errors import DeliveryError
from thread_relay.models import CommandResponse

LOGGER = logging.getLogger(__name__)


async def deliver(respond: Optional[AsyncRespond], response: CommandResponse) -> None:
    """
    POST a CommandResponse to the command's response_url.

    Raises DeliveryError when there is no response_url or Slack answers with
    a non-200 status.
    """
    if respond is None:
        raise DeliveryError(0, "no response_url on this request")
    result = await respond(
        text=response.text,
        response_type=response.response_type,
    )
    if result.status_code != 200:
        raise DeliveryError(result.status_code, result.body)
    LOGGER.info(
        "Delivered %s response to response_url (%d chars)",
        response.response_type,
        len(response.text)
    )
