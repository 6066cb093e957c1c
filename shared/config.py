"""
Shared configuration management for the KeyAuth consumer.
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SESSION_ERROR_POLICIES = ("name", "error")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="KEYAUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Service
    service_name: str = Field(default="consumer")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8020)


class ConsumerConfig(BaseConfig):
    """Consumer identity and provider protocol settings."""

    # Consumer identity
    name: str = Field(default="keyauth-consumer")
    about: str = Field(default="")
    redirect: str = Field(default="/")
    key_path: Optional[str] = Field(default=None)
    avatar_path: Optional[str] = Field(default=None)

    # Provider calls
    provider_scheme: str = Field(default="http")
    provider_timeout_seconds: float = Field(default=10.0)
    provider_failure_threshold: int = Field(default=5)
    provider_recovery_timeout: float = Field(default=30.0)
    session_error_policy: str = Field(default="name")

    # Session binding
    session_secret: Optional[str] = Field(default=None)
    session_cookie: str = Field(default="keyauth_session")
    mount_path: str = Field(default="")
    logout_redirect: Optional[str] = Field(default=None)

    @field_validator("session_error_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        value = value.lower()
        if value not in SESSION_ERROR_POLICIES:
            raise ValueError(
                f"session_error_policy must be one of {', '.join(SESSION_ERROR_POLICIES)}"
            )
        return value

    @field_validator("provider_scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        value = value.lower()
        if value not in ("http", "https"):
            raise ValueError("provider_scheme must be http or https")
        return value

    @field_validator("mount_path")
    @classmethod
    def _strip_mount_path(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides) -> "ConsumerConfig":
        """Build config from the `{name, about, redirect, key, avatar}` shape."""
        values: Dict[str, Any] = {
            "name": data.get("name"),
            "about": data.get("about"),
            "redirect": data.get("redirect"),
            "key_path": data.get("key"),
            "avatar_path": data.get("avatar"),
        }
        values = {k: v for k, v in values.items() if v is not None}
        values.update(overrides)
        return cls(**values)


def get_config(**overrides) -> ConsumerConfig:
    """Get configuration for the consumer service."""
    return ConsumerConfig(**overrides)
