from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

import redis

logger = logging.getLogger(__name__)


def _key(user_id: str) -> str:
    return f"memories:{user_id}"


class TranscriptStore:
    """Recent chat messages per user.

    Uses a Redis list when a URL is configured and falls back to an in-process
    dict when there is none or Redis errors out.
    """

    def __init__(self, redis_url: Optional[str] = None, max_messages: int = 50, client=None) -> None:
        self.max_messages = max_messages
        self._memory: dict[str, list[str]] = {}
        self._lock = threading.Lock()
        self._client = client if client is not None else _redis_client(redis_url)

    def append_message(self, user_id: str, text: str, is_user_turn: bool = True) -> None:
        payload = json.dumps(
            {
                "role": "user" if is_user_turn else "assistant",
                "content": text,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            ensure_ascii=False,
        )
        if self._client is not None:
            try:
                pipe = self._client.pipeline()
                pipe.rpush(_key(user_id), payload)
                pipe.ltrim(_key(user_id), -self.max_messages, -1)
                pipe.execute()
                return
            except redis.RedisError:
                logger.warning("Redis unavailable, keeping transcript for %s in memory", user_id, exc_info=True)

        with self._lock:
            messages = self._memory.setdefault(user_id, [])
            messages.append(payload)
            del messages[: -self.max_messages]

    def fetch_recent(self, user_id: str, limit: int = 20) -> list[dict[str, str]]:
        if limit <= 0:
            return []
        raw: list[str] | None = None
        if self._client is not None:
            try:
                raw = self._client.lrange(_key(user_id), -limit, -1)
            except redis.RedisError:
                logger.warning("Redis unavailable, reading transcript for %s from memory", user_id, exc_info=True)

        if not raw:
            with self._lock:
                raw = list(self._memory.get(user_id, [])[-limit:])

        messages: list[dict[str, str]] = []
        for item in raw:
            try:
                entry = json.loads(item)
                messages.append({"role": entry["role"], "content": entry["content"]})
            except (ValueError, TypeError, KeyError):
                logger.warning("Skipping undecodable transcript entry for %s: %r", user_id, item)
        return messages

    def clear(self, user_id: str) -> None:
        if self._client is not None:
            try:
                self._client.delete(_key(user_id))
            except redis.RedisError:
                logger.warning("Redis unavailable, could not clear transcript for %s", user_id, exc_info=True)
        with self._lock:
            self._memory.pop(user_id, None)


def _redis_client(redis_url: Optional[str]):
    if not redis_url:
        return None
    return redis.Redis.from_url(redis_url, decode_responses=True)
