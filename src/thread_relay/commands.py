# src/thread_relay/commands.py
"""
Slow-path work behind the slash commands.

These coroutines run in a Bolt lazy listener after Slack has been
acknowledged. Each returns the single CommandResponse to deliver through the
command's response_url; malformed input is answered here, upstream failures
propagate to the listener.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import openai
from slack_sdk.web.async_client import AsyncWebClient

from thread_relay.completion import CompletionForwarder, build_openai_client
from thread_relay.config import Settings
from thread_relay.links import generate_chat_id, parse_thread_link
from thread_relay.models import (
    CommandResponse,
    SlashCommand,
    ThreadMessage,
    ThreadReference,
)
from thread_relay.sessions import SessionStore
from thread_relay.slack_threads import fetch_thread, fetch_thread_messages

LOGGER = logging.getLogger(__name__)

CHAT_USAGE = "Please provide a thread link. Usage: `/chatgpt <thread_link> [chat_id]`"
FETCH_USAGE = "Please provide a thread link. Usage: `/fetch-thread <thread_link>`"
INVALID_LINK = "Invalid thread link format. Please provide a valid Slack thread link."
NO_MESSAGES = "No messages found in this thread."
GENERIC_FAILURE = "An error occurred while processing your request."

# Slack caps message text at 4000 chars; stop well before it
LISTING_SOFT_LIMIT = 3500
TRUNCATION_NOTE = "... (message truncated due to length)"


@dataclass(frozen=True)
class ChatRequest:
    reference: ThreadReference
    chat_id: Optional[str]


def resolve_chat_request(command: SlashCommand) -> Union[ChatRequest, CommandResponse]:
    """
    Work out which thread and chat id a /chatgpt invocation refers to.

    ``/chatgpt <thread_link> [chat_id]`` names the thread explicitly. When the
    command is issued inside a thread and the first token is not a link, the
    surrounding thread is used and the first token (if any) is the chat id.
    Returns an ephemeral CommandResponse when the input cannot be used.
    """
    tokens = command.text.split()

    if tokens:
        reference = parse_thread_link(tokens[0])
        if reference is not None:
            return ChatRequest(reference, tokens[1] if len(tokens) > 1 else None)

    if command.thread_ts and command.channel_id:
        LOGGER.info(
            "[%s].[%s] Using the thread the command was issued in",
            command.channel_id,
            command.thread_ts
        )
        return ChatRequest(
            ThreadReference(channel_id=command.channel_id, thread_ts=command.thread_ts),
            tokens[0] if tokens else None,
        )

    if not tokens:
        LOGGER.info("No thread link provided")
        return CommandResponse.ephemeral(CHAT_USAGE)

    LOGGER.info("Invalid thread link format: %r", tokens[0])
    return CommandResponse.ephemeral(INVALID_LINK)


def format_chat_reply(reply: str, chat_id: str) -> str:
    return (
        f"*ChatGPT Response:*\n\n{reply}\n\n"
        f"_Chat ID: `{chat_id}` - To continue this conversation, "
        f"use `/chatgpt <thread_link> {chat_id}` with another thread._"
    )


def format_thread_listing(messages: list[ThreadMessage]) -> str:
    text = f"*Found {len(messages)} messages in thread:*\n\n"
    for msg in messages:
        text += f"*{msg.username or msg.user}:* {msg.text}\n\n"
        if len(text) > LISTING_SOFT_LIMIT:
            text += TRUNCATION_NOTE
            break
    return text


class Relay:
    """
    Holds the collaborators the commands need.

    Slack and OpenAI clients are created on first use so that a missing
    credential only fails the commands that need it.
    """

    def __init__(
        self,
        settings: Settings,
        store: SessionStore,
        *,
        slack_client: Optional[AsyncWebClient] = None,
        openai_client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.settings = settings
        self.store = store
        self._slack_client = slack_client
        self._openai_client = openai_client
        self._forwarder: Optional[CompletionForwarder] = None

    @property
    def slack_client(self) -> AsyncWebClient:
        if self._slack_client is None:
            # No connection-error retries; a failed fetch is reported once
            self._slack_client = AsyncWebClient(
                token=self.settings.require("slack_bot_token"),
                retry_handlers=[],
            )
        return self._slack_client

    @property
    def forwarder(self) -> CompletionForwarder:
        if self._forwarder is None:
            if self._openai_client is None:
                self._openai_client = build_openai_client(self.settings.require("openai_api_key"))
            self._forwarder = CompletionForwarder(
                self._openai_client,
                self.store,
                model=self.settings.openai_model,
                max_tokens=self.settings.openai_max_tokens,
            )
        return self._forwarder

    async def chat_command(self, command: SlashCommand) -> CommandResponse:
        """/chatgpt <thread_link> [chat_id]"""
        resolved = resolve_chat_request(command)
        if isinstance(resolved, CommandResponse):
            return resolved

        ref = resolved.reference
        chat_id = resolved.chat_id
        if chat_id:
            LOGGER.info("Using provided chat ID: %s", chat_id)
        else:
            chat_id = generate_chat_id()
            LOGGER.info("Generated new chat ID: %s", chat_id)

        thread_data = await fetch_thread(self.slack_client, ref)
        if not thread_data.messages:
            return CommandResponse.ephemeral(NO_MESSAGES)

        await self.store.add_thread_to_session(chat_id, ref.channel_id, ref.thread_ts)
        reply = await self.forwarder.send_thread(chat_id, thread_data)
        LOGGER.info("[%s].[%s] Received response from ChatGPT", ref.channel_id, ref.thread_ts)
        return CommandResponse.in_channel(format_chat_reply(reply, chat_id))

    async def fetch_command(self, command: SlashCommand) -> CommandResponse:
        """/fetch-thread <thread_link>"""
        link = command.text.strip()
        if not link:
            return CommandResponse.ephemeral(FETCH_USAGE)

        ref = parse_thread_link(link)
        if ref is None:
            return CommandResponse.ephemeral(INVALID_LINK)

        # A missing token is a configuration error, not a fetch error
        client = self.slack_client
        try:
            messages = await fetch_thread_messages(client, ref.channel_id, ref.thread_ts)
        except Exception as exc:
            return CommandResponse.ephemeral(f"Error fetching thread messages: {str(exc) or 'Unknown error'}")

        if not messages:
            return CommandResponse.ephemeral(NO_MESSAGES)
        return CommandResponse.in_channel(format_thread_listing(messages))

    async def aclose(self) -> None:
        await self.store.aclose()
        if self._openai_client is not None:
            await self._openai_client.close()
