"""Application configuration management using Pydantic's BaseSettings."""

from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """Defines all configuration settings for the gateway, loaded from .env file."""

    # Remote chat service
    chat_api_base: str = "https://api.ea.systems"
    client_id: str = "test-client-001"

    # App settings
    debug: bool = True
    log_level: str = "INFO"

    # "confirm" waits for the user before submitting, "auto" submits at once
    workflow_mode: Literal["confirm", "auto"] = "confirm"

    # Network policy
    chat_timeout_seconds: float = 30.0
    execution_timeout_seconds: float = 60.0
    chat_connect_retries: int = 0

    # Session expiry
    session_timeout_minutes: int = 60
    idle_timeout_minutes: int = 30

    class Config:
        """Pydantic model configuration."""

        env_file = ".env"


settings = Settings()
