from __future__ import annotations

import pytest

from app import main
from app.core.config import get_settings


def test_run_serves_app_with_configured_address(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, dict[str, object]]] = []
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setattr(main.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    get_settings.cache_clear()
    try:
        main.run()
    finally:
        get_settings.cache_clear()

    assert calls == [("app.main:app", {"host": "127.0.0.1", "port": 9100, "log_level": "info"})]
