"""Gate configuration loaded from the environment.

Every setting can be provided as an environment variable with the
``KICOMAV_`` prefix, or in a ``.env`` file in the working directory::

    KICOMAV_BASE_URL=http://kicomav:8080
    KICOMAV_CONNECT_TIMEOUT_MS=3000
    KICOMAV_READ_TIMEOUT_MS=120000
    KICOMAV_FAIL_OPEN=false
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kicomav_sdk.models import ClientConfig


class GateSettings(BaseSettings):
    """Daemon location, timeouts and failure posture.

    Attributes:
        base_url: Root URL of the KicomAV daemon.
        connect_timeout_ms: Connect timeout in milliseconds.
        read_timeout_ms: Read timeout in milliseconds.
        fail_open: Allow content when no verdict can be obtained. Off by
            default: an unusable daemon blocks uploads.
    """

    model_config = SettingsConfigDict(
        env_prefix="KICOMAV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:8080"
    connect_timeout_ms: int = Field(default=5000, gt=0)
    read_timeout_ms: int = Field(default=60000, gt=0)
    fail_open: bool = False

    @field_validator("base_url")
    @classmethod
    def _base_url_not_blank(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("base_url must not be empty")
        return value

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            base_url=self.base_url,
            connect_timeout=self.connect_timeout_ms / 1000,
            read_timeout=self.read_timeout_ms / 1000,
        )


@lru_cache
def get_settings() -> GateSettings:
    """Settings read once per process."""
    return GateSettings()
