from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config (client).

    - Loaded from environment variables (`DARGO_` prefix)
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)
    - Frozen: endpoint and retry budget are fixed once the client starts
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DARGO_", extra="ignore", frozen=True)

    # Transport
    endpoint_url: str = "ws://127.0.0.1:8080/api/socket"
    ping_interval_s: float | None = 20.0
    ping_timeout_s: float | None = 20.0

    # Reconnect budget (lifetime total, not per attempt)
    max_retries: int = Field(default=5, ge=0)
    base_delay_s: float = Field(default=0.5, gt=0)

    # Input source: touch events instead of pointer events
    use_touch_events: bool = False

    # Debugging
    debug_log_msgs: bool = False
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
