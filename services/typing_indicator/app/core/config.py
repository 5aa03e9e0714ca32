"""
Configuration settings for the typing indicator service.
"""
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> str:
    """Find the .env file in potential locations."""
    env_file = os.getenv("ENV_FILE")
    if env_file and os.path.exists(env_file):
        return env_file

    possible_locations = [
        # services/typing_indicator/.env for local development
        os.path.join(Path(__file__).parent.parent.parent, ".env"),
        "/app/.env",
        ".env",
    ]

    for location in possible_locations:
        if os.path.exists(location):
            return location

    return possible_locations[0]


class Settings(BaseSettings):
    """Typing Indicator Service configuration settings."""

    # Service information
    PROJECT_NAME: str = "Typing Indicator Service"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"

    ENV: str = Field(
        default="development",
        description="Environment (development, staging, production)"
    )

    HOST: str = Field(default="0.0.0.0", description="Bind address")
    PORT: int = Field(default=8006, description="HTTP port")

    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"],
        description="CORS allowed origins"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    # Typing state
    TYPING_TIMEOUT_MS: int = Field(
        default=60000,
        description="Idle time after which a typing member is dropped"
    )
    SELF_PERSONA_ID: Optional[int] = Field(
        default=None,
        description="Persona this process acts as, excluded from results"
    )
    SELF_PERSONA_TYPE: str = Field(
        default="partner",
        description="Persona type of SELF_PERSONA_ID (partner or guest)"
    )

    # Bus topology
    TYPING_EXCHANGE: str = Field(default="chat")
    TYPING_QUEUE: str = Field(default="typing_status")
    TYPING_ROUTING_KEY: str = Field(default="member.typing_status")

    @field_validator("ENV")
    @classmethod
    def validate_env(cls, v: str) -> str:
        allowed_envs = ["development", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"ENV must be one of {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level

    @field_validator("TYPING_TIMEOUT_MS")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("TYPING_TIMEOUT_MS must be positive")
        return v

    @field_validator("SELF_PERSONA_TYPE")
    @classmethod
    def validate_persona_type(cls, v: str) -> str:
        if v not in ("partner", "guest"):
            raise ValueError("SELF_PERSONA_TYPE must be 'partner' or 'guest'")
        return v

    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow"
    )


settings = Settings()


def get_settings() -> Settings:
    return settings
