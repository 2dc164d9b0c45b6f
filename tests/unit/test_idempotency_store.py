from __future__ import annotations

import pytest

from app.services.stores.idempotency_store import CommandIdempotencyStore
from tests.fakes import FakeRedis


@pytest.mark.asyncio
async def test_claim_accepts_first_request_and_rejects_replay(fake_redis: FakeRedis) -> None:
    store = CommandIdempotencyStore(fake_redis)  # type: ignore[arg-type]

    assert await store.claim("conv-1", "confirm_action", "key-1") is True
    assert await store.claim("conv-1", "confirm_action", "key-1") is False


@pytest.mark.asyncio
async def test_claim_scopes_keys_by_conversation_and_command(fake_redis: FakeRedis) -> None:
    store = CommandIdempotencyStore(fake_redis)  # type: ignore[arg-type]

    assert await store.claim("conv-1", "confirm_action", "key-1") is True
    assert await store.claim("conv-2", "confirm_action", "key-1") is True
    assert await store.claim("conv-1", "confirm_event", "key-1") is True


@pytest.mark.asyncio
async def test_is_claimed_reports_only_claimed_keys(fake_redis: FakeRedis) -> None:
    store = CommandIdempotencyStore(fake_redis)  # type: ignore[arg-type]

    assert await store.is_claimed("conv-1", "confirm_action", "key-1") is False
    await store.claim("conv-1", "confirm_action", "key-1")
    assert await store.is_claimed("conv-1", "confirm_action", "key-1") is True
