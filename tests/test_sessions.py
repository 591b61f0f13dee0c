import asyncio
import json
import unittest

from tests.fakes import FakeRedis
from thread_relay.config import Settings
from thread_relay.models import ChatSession, ConversationTurn
from thread_relay.prompts import SYSTEM_PROMPT
from thread_relay.sessions import (
    InMemorySessionStore,
    RedisSessionStore,
    build_session_store,
)


class SessionStoreContract:
    """Behaviour shared by every backend; mixed into concrete test cases."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self) -> None:
        self._store = self.make_store()

    def test_unknown_id_is_seeded_with_system_turn(self) -> None:
        session = asyncio.run(self._store.get("new-chat"))
        self.assertEqual("new-chat", session.id)
        self.assertEqual(1, len(session.turns))
        self.assertEqual("system", session.turns[0].role)
        self.assertEqual(SYSTEM_PROMPT, session.turns[0].content)
        self.assertEqual([], session.threads)

    def test_put_then_get_round_trips_turns(self) -> None:
        session = ChatSession.seeded("abc", SYSTEM_PROMPT)
        session.turns.append(ConversationTurn(role="user", content="thread"))
        session.turns.append(ConversationTurn(role="assistant", content="reply"))

        asyncio.run(self._store.put("abc", session))
        loaded = asyncio.run(self._store.get("abc"))

        self.assertEqual(session.turns, loaded.turns)
        self.assertEqual(session.created_at, loaded.created_at)

    def test_add_thread_is_idempotent(self) -> None:
        first = asyncio.run(self._store.add_thread_to_session("abc", "C1", "1.0"))
        second = asyncio.run(self._store.add_thread_to_session("abc", "C1", "1.0"))
        loaded = asyncio.run(self._store.get("abc"))

        matching = [t for t in loaded.threads if t.channel_id == "C1" and t.thread_ts == "1.0"]
        self.assertEqual(1, len(matching))
        self.assertEqual(first.updated_at, second.updated_at)
        self.assertEqual(first.updated_at, loaded.updated_at)

    def test_add_thread_appends_new_threads(self) -> None:
        asyncio.run(self._store.add_thread_to_session("abc", "C1", "1.0"))
        asyncio.run(self._store.add_thread_to_session("abc", "C2", "2.0"))
        loaded = asyncio.run(self._store.get("abc"))
        self.assertEqual([("C1", "1.0"), ("C2", "2.0")], [(t.channel_id, t.thread_ts) for t in loaded.threads])


class InMemorySessionStoreTests(SessionStoreContract, unittest.TestCase):
    def make_store(self):
        return InMemorySessionStore()

    def test_get_does_not_persist_seeded_session(self) -> None:
        asyncio.run(self._store.get("lazy"))
        self.assertEqual(0, len(self._store))

    def test_mutating_loaded_session_does_not_touch_store(self) -> None:
        asyncio.run(self._store.put("abc", ChatSession.seeded("abc", SYSTEM_PROMPT)))
        loaded = asyncio.run(self._store.get("abc"))
        loaded.turns.append(ConversationTurn(role="user", content="unsaved"))
        self.assertEqual(1, len(asyncio.run(self._store.get("abc")).turns))


class RedisSessionStoreTests(SessionStoreContract, unittest.TestCase):
    def make_store(self):
        self._redis = FakeRedis()
        return RedisSessionStore(self._redis)

    def test_keys_are_namespaced(self) -> None:
        asyncio.run(self._store.put("abc", ChatSession.seeded("abc", SYSTEM_PROMPT)))
        self.assertEqual(["chat:abc"], list(self._redis.data))
        stored = json.loads(self._redis.data["chat:abc"])
        self.assertEqual("abc", stored["id"])
        self.assertEqual("system", stored["turns"][0]["role"])

    def test_custom_prefix(self) -> None:
        store = RedisSessionStore(self._redis, key_prefix="relay:chat:")
        asyncio.run(store.put("abc", ChatSession.seeded("abc", SYSTEM_PROMPT)))
        self.assertIn("relay:chat:abc", self._redis.data)

    def test_duplicate_thread_is_not_written(self) -> None:
        asyncio.run(self._store.add_thread_to_session("abc", "C1", "1.0"))
        asyncio.run(self._store.add_thread_to_session("abc", "C1", "1.0"))
        self.assertEqual(1, self._redis.set_calls)

    def test_aclose_closes_client(self) -> None:
        asyncio.run(self._store.aclose())
        self.assertTrue(self._redis.closed)


class BuildSessionStoreTests(unittest.TestCase):
    def test_without_redis_url_uses_memory(self) -> None:
        self.assertIsInstance(build_session_store(Settings()), InMemorySessionStore)

    def test_with_redis_url_uses_redis(self) -> None:
        store = build_session_store(Settings(redis_url="redis://localhost:6379/0", session_key_prefix="x:"))
        self.assertIsInstance(store, RedisSessionStore)
        self.assertEqual("x:abc", store.key("abc"))
