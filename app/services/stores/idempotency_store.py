from __future__ import annotations

from redis.asyncio import Redis


class CommandIdempotencyStore:
    """Remembers client request keys so a retried confirm tap runs once."""

    def __init__(self, redis: Redis, ttl_seconds: int = 600) -> None:
        self._redis = redis
        self._ttl = ttl_seconds

    async def is_claimed(self, conversation_id: str, command: str, request_key: str) -> bool:
        return await self._redis.get(self._key(conversation_id, command, request_key)) is not None

    async def claim(self, conversation_id: str, command: str, request_key: str) -> bool:
        # False when the same conversation already ran this command with this key.
        result = await self._redis.set(
            self._key(conversation_id, command, request_key),
            "1",
            ex=self._ttl,
            nx=True,
        )
        return bool(result)

    def _key(self, conversation_id: str, command: str, request_key: str) -> str:
        return f"actions:cmd:{conversation_id}:{command}:{request_key}"
