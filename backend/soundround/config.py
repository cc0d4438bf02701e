"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - round_ttl_seconds governs rounds, sessions and the cookie max-age alike

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: works out-of-the-box against a local Redis
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from soundround.core.domain_types import MAX_UPLOAD_BYTES, TransitionPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Store
    redis_url: str = "redis://localhost:6379/0"

    @field_validator("redis_url", mode="before")
    @classmethod
    def add_redis_scheme(cls, v: str) -> str:
        """Accept bare host:port like REDIS_URL=localhost:6379."""
        if isinstance(v, str) and "://" not in v:
            return f"redis://{v}"
        return v

    round_ttl_seconds: int = 24 * 60 * 60

    # Files
    upload_dir: str = "temp/uploads"
    max_upload_bytes: int = MAX_UPLOAD_BYTES

    # Rounds
    join_code_max_attempts: int = 100
    state_transition_policy: TransitionPolicy = TransitionPolicy.FORWARD_ONLY

    # Cookie
    cookie_secure: bool = False

    # API
    cors_origins: list[str] = ["http://localhost:8080"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
