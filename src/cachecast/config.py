from __future__ import annotations

from uuid import uuid4

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Outbound and inbound channels share one logical topic so every instance,
# the publisher included, receives each invalidation.
DEFAULT_INVALIDATION_CHANNEL = "cache-invalidation"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CACHECAST_", env_file=".env", extra="ignore")

    app_name: str = "cachecast"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Instance ID for distributed deployments
    instance_id: str = Field(default_factory=lambda: str(uuid4())[:8])

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    # Cache store
    cache_backend: str = "memory"
    cache_name: str = "my-cache-data"
    cache_ttl: int | None = None  # seconds; unset keeps entries until invalidated
    single_flight: bool = True
    max_key_length: int = 512

    # Invalidation bus
    bus_backend: str = "redis"
    invalidation_out_channel: str = DEFAULT_INVALIDATION_CHANNEL
    invalidation_in_channel: str = DEFAULT_INVALIDATION_CHANNEL

    # Observability
    enable_metrics: bool = True
    log_level: str = "INFO"


settings = Settings()
