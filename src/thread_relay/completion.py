# src/thread_relay/completion.py
"""
Forwarding thread content to the OpenAI chat completion API.

Each call appends one user turn (the rendered thread) and one assistant turn
(the reply) to the session. The session is written back only after the
completion succeeds, so a failed call leaves the stored history untouched.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx
import openai

from thread_relay.models import ConversationTurn, ThreadData
from thread_relay.prompts import (
    NEW_THREAD_PREFIX,
    NO_RESPONSE_FALLBACK,
    THREAD_FOOTER,
    THREAD_HEADER,
)
from thread_relay.sessions import SessionStore

LOGGER = logging.getLogger(__name__)


def format_thread(thread_data: ThreadData) -> str:
    """Render a thread as one text block for the completion API."""
    formatted = THREAD_HEADER
    for message in thread_data.messages:
        speaker = message.username or f"User ({message.user})"
        formatted += f"{speaker}: {message.text}\n\n"
    formatted += THREAD_FOOTER
    return formatted


def build_openai_client(api_key: str, *, http_client: Optional[httpx.AsyncClient] = None) -> openai.AsyncOpenAI:
    """
    Build the OpenAI client used for completions.

    SDK retries are switched off: a quota or network failure surfaces on the
    first attempt and the user is told about it.
    """
    return openai.AsyncOpenAI(api_key=api_key, max_retries=0, http_client=http_client)


def _reply_text(completion) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return NO_RESPONSE_FALLBACK
    return choices[0].message.content or NO_RESPONSE_FALLBACK


class CompletionForwarder:
    def __init__(
        self,
        client: openai.AsyncOpenAI,
        store: SessionStore,
        *,
        model: str = "gpt-4",
        max_tokens: int = 2000,
    ):
        self._client = client
        self._store = store
        self._model = model
        self._max_tokens = max_tokens

    async def send_thread(self, session_id: str, thread_data: ThreadData) -> str:
        """
        Send the thread to ChatGPT within the session's running history.

        Returns the reply text. OpenAI errors propagate unchanged.
        """
        LOGGER.info("Processing thread for chat ID: %s", session_id)
        session = await self._store.get(session_id)

        user_turn = ConversationTurn(
            role="user",
            content=f"{NEW_THREAD_PREFIX}{format_thread(thread_data)}",
        )
        messages = [turn.model_dump() for turn in [*session.turns, user_turn]]

        LOGGER.info(
            "Sending request to OpenAI with %d messages (model=%s, max_tokens=%d)",
            len(messages),
            self._model,
            self._max_tokens
        )
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
            )
        except openai.OpenAIError:
            LOGGER.exception("Error sending thread to ChatGPT for chat ID: %s", session_id)
            raise

        reply = _reply_text(completion)

        session.turns.append(user_turn)
        session.turns.append(ConversationTurn(role="assistant", content=reply))
        session.touch()
        await self._store.put(session_id, session)

        LOGGER.info(
            "Added response to chat context. Total messages: %d",
            len(session.turns)
        )
        return reply
