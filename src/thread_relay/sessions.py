# src/thread_relay/sessions.py
"""
Session storage for multi-turn ChatGPT conversations.

A session is keyed by an opaque chat id supplied by the user (or generated on
first use) and holds the full completion history plus the threads that were
folded into it. Sessions are created lazily and never deleted.

There is no locking: two commands writing the same chat id at once race and
the last write wins.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis

from thread_relay.config import Settings
from thread_relay.models import ChatSession, ThreadReference
from thread_relay.prompts import SYSTEM_PROMPT

LOGGER = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "chat:"


class SessionStore(ABC):
    """Async get/put store for ChatSession records."""

    def __init__(self, *, key_prefix: str = DEFAULT_KEY_PREFIX, system_prompt: str = SYSTEM_PROMPT):
        self._prefix = key_prefix
        self._system_prompt = system_prompt

    def key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    @abstractmethod
    async def _load(self, key: str) -> Optional[ChatSession]:
        ...

    @abstractmethod
    async def _save(self, key: str, session: ChatSession) -> None:
        ...

    async def get(self, session_id: str) -> ChatSession:
        """
        Return the stored session, or a new one seeded with the system turn.

        The seeded session is not written; it is persisted by the first put.
        """
        session = await self._load(self.key(session_id))
        if session is None:
            LOGGER.info("Created new chat context for ID: %s", session_id)
            return ChatSession.seeded(session_id, self._system_prompt)
        return session

    async def put(self, session_id: str, session: ChatSession) -> None:
        await self._save(self.key(session_id), session)
        LOGGER.debug(
            "Saved chat session %s (%d turns, %d threads)",
            session_id,
            len(session.turns),
            len(session.threads)
        )

    async def add_thread_to_session(self, session_id: str, channel_id: str, thread_ts: str) -> ChatSession:
        """
        Record that a thread was folded into the session.

        Adding a thread that is already recorded is a no-op: nothing is
        written and ``updated_at`` is left alone.
        """
        session = await self.get(session_id)
        if session.has_thread(channel_id, thread_ts):
            LOGGER.info(
                "[%s].[%s] Thread already recorded for chat %s",
                channel_id,
                thread_ts,
                session_id
            )
            return session

        session.threads.append(ThreadReference(channel_id=channel_id, thread_ts=thread_ts))
        session.touch()
        await self.put(session_id, session)
        return session

    async def aclose(self) -> None:
        return None


class InMemorySessionStore(SessionStore):
    """Process-local store. History does not outlive the process."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._sessions: dict[str, ChatSession] = {}

    async def _load(self, key: str) -> Optional[ChatSession]:
        session = self._sessions.get(key)
        return session.model_copy(deep=True) if session is not None else None

    async def _save(self, key: str, session: ChatSession) -> None:
        self._sessions[key] = session.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Durable store: one JSON document per session under ``{prefix}{id}``."""

    def __init__(self, client: redis.Redis, **kwargs):
        super().__init__(**kwargs)
        self._redis = client

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisSessionStore":
        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    async def _load(self, key: str) -> Optional[ChatSession]:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return ChatSession.model_validate_json(raw)

    async def _save(self, key: str, session: ChatSession) -> None:
        await self._redis.set(key, session.model_dump_json())

    async def aclose(self) -> None:
        await self._redis.aclose()


def build_session_store(settings: Settings) -> SessionStore:
    if settings.redis_url:
        LOGGER.info("Using Redis session store (prefix=%r)", settings.session_key_prefix)
        return RedisSessionStore.from_url(settings.redis_url, key_prefix=settings.session_key_prefix)
    LOGGER.warning(
        "REDIS_URL is not set; chat sessions are kept in memory and will not outlive this process"
    )
    return InMemorySessionStore(key_prefix=settings.session_key_prefix)
