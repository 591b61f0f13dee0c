# src/thread_relay/models.py
"""
Records that flow through the relay.

Raw Slack payloads are loose dicts with optional keys; they are normalized
into these models at the point they enter the system.
"""
from __future__ import annotations

import time
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]
ResponseType = Literal["in_channel", "ephemeral"]

UNKNOWN_USER = "unknown"


class ThreadReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    channel_id: str
    thread_ts: str


class ThreadMessage(BaseModel):
    """One message of a Slack thread, as returned by conversations.replies."""

    model_config = ConfigDict(frozen=True)

    user: str = UNKNOWN_USER
    text: str = ""
    ts: str = ""
    # Only present on bot / webhook style messages
    username: Optional[str] = None

    @classmethod
    def from_slack(cls, raw: dict[str, Any]) -> "ThreadMessage":
        username = raw.get("username")
        return cls(
            user=raw.get("user") or UNKNOWN_USER,
            text=raw.get("text") or "",
            ts=raw.get("ts") or "",
            username=username if isinstance(username, str) and username else None,
        )


class ThreadData(BaseModel):
    messages: list[ThreadMessage]
    channel_id: str
    thread_ts: str


class ConversationTurn(BaseModel):
    role: Role
    content: str


class ChatSession(BaseModel):
    """
    An opaque-id keyed completion history spanning one or more threads.

    ``turns`` always starts with the system turn; user/assistant turns are
    appended in pairs by the completion forwarder.
    """

    id: str
    turns: list[ConversationTurn] = Field(default_factory=list)
    threads: list[ThreadReference] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

    @classmethod
    def seeded(cls, session_id: str, system_prompt: str) -> "ChatSession":
        now = time.time()
        return cls(
            id=session_id,
            turns=[ConversationTurn(role="system", content=system_prompt)],
            created_at=now,
            updated_at=now,
        )

    def has_thread(self, channel_id: str, thread_ts: str) -> bool:
        return any(
            t.channel_id == channel_id and t.thread_ts == thread_ts
            for t in self.threads
        )

    def touch(self) -> None:
        self.updated_at = time.time()


class SlashCommand(BaseModel):
    """The form body Slack POSTs for a slash command."""

    model_config = ConfigDict(extra="ignore")

    command: str = ""
    text: str = ""
    response_url: str
    trigger_id: str = ""
    user_id: str = ""
    user_name: str = ""
    team_id: str = ""
    channel_id: str = ""
    api_app_id: str = ""
    thread_ts: Optional[str] = None


class CommandResponse(BaseModel):
    response_type: ResponseType
    text: str

    @classmethod
    def in_channel(cls, text: str) -> "CommandResponse":
        return cls(response_type="in_channel", text=text)

    @classmethod
    def ephemeral(cls, text: str) -> "CommandResponse":
        return cls(response_type="ephemeral", text=text)
