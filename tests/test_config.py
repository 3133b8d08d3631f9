from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import FakeConnector, settle
from dargo_client.config import Settings, get_settings
from dargo_client.connection import ConnectionManager


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # keep a developer's .env / DARGO_* vars out of the tests
    monkeypatch.chdir(tmp_path)
    for key in ("DARGO_ENDPOINT_URL", "DARGO_MAX_RETRIES", "DARGO_BASE_DELAY_S", "DARGO_USE_TOUCH_EVENTS"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = Settings()
    assert s.max_retries == 5
    assert s.base_delay_s == 0.5
    assert s.use_touch_events is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DARGO_ENDPOINT_URL", "ws://10.0.0.2:9000/api/socket")
    monkeypatch.setenv("DARGO_MAX_RETRIES", "2")
    monkeypatch.setenv("DARGO_USE_TOUCH_EVENTS", "true")

    s = get_settings()
    assert s.endpoint_url == "ws://10.0.0.2:9000/api/socket"
    assert s.max_retries == 2
    assert s.use_touch_events is True
    assert get_settings() is s


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("DARGO_MAX_RETRIES=9\n", encoding="utf-8")
    assert Settings().max_retries == 9


def test_settings_are_frozen():
    s = Settings()
    with pytest.raises(ValidationError):
        s.max_retries = 1  # type: ignore[misc]


def test_negative_retries_rejected(monkeypatch):
    monkeypatch.setenv("DARGO_MAX_RETRIES", "-1")
    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.asyncio
async def test_manager_from_settings(scheduler):
    settings = Settings(endpoint_url="ws://example.test/ws", max_retries=1, base_delay_s=0.25)
    connector = FakeConnector(OSError())
    mgr = ConnectionManager.from_settings(settings, connector=connector, scheduler=scheduler)
    await settle()

    assert connector.urls == ["ws://example.test/ws"]
    assert mgr.max_retries == 1
    assert scheduler.delays == [0.5]
    await mgr.close()
