from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from redis.asyncio import Redis

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.container import AppContainer
from app.core.logging import setup_logging
from app.integrations.backend.client import HTTPCalendarClient, HTTPContactClient, HTTPExecutionClient
from app.integrations.backend.session import FixedTimezoneSource, StaticSessionProvider


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.log_json)

    redis = Redis.from_url(settings.redis_url, decode_responses=False)
    client_options = {
        "base_url": settings.backend_base_url,
        "api_key": settings.backend_api_key,
        "timeout_seconds": settings.backend_timeout_seconds,
    }

    container = AppContainer(
        settings=settings,
        redis=redis,
        execution=HTTPExecutionClient(**client_options),
        calendar=HTTPCalendarClient(**client_options),
        contacts=HTTPContactClient(**client_options),
        session_provider=StaticSessionProvider(settings.trainer_id),
        timezone_source=FixedTimezoneSource(settings.local_timezone),
    )
    app.state.container = container

    try:
        yield
    finally:
        await container.registry.aclose()
        await redis.aclose()


app = FastAPI(title="AI Action Orchestrator", lifespan=lifespan)
app.include_router(api_router)


def run() -> None:
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
