"""Client Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - No credentials in settings: tokens live only in the token store
    - get_settings() is cached (lru_cache), single instance per process
    - api_url never ends with "/" after validation

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - NEXT_PUBLIC_API_URL accepted as a fallback for API_URL so one .env serves
      both the web frontend and this client
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Backend
    api_url: str = ""
    next_public_api_url: str = ""
    same_origin_proxy: bool = False
    proxy_origin: str = "http://localhost:3000"
    request_timeout_seconds: float = 30.0

    # Durable storage: "memory://" or an async SQLAlchemy URL
    storage_url: str = "memory://"

    # Admin listing (backend caps page size at 100)
    admin_page_size: int = 100

    # Session keeper
    token_refresh_interval_seconds: float = 240.0
    idle_timeout_seconds: float = 900.0
    idle_check_interval_seconds: float = 60.0
    activity_throttle_seconds: float = 1.0

    # Agreement cache
    agreement_cache_ttl_seconds: float = 1800.0

    # Internal webhook relay routes
    webhook_base_url: str = ""

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("api_url", "next_public_api_url", "webhook_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    @field_validator("admin_page_size")
    @classmethod
    def cap_page_size(cls, v: int) -> int:
        """Backend rejects page sizes above 100."""
        return max(1, min(v, 100))

    @model_validator(mode="after")
    def fallback_api_url(self) -> "Settings":
        if not self.api_url and self.next_public_api_url:
            self.api_url = self.next_public_api_url
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
