"""Application Configuration

Type-safe configuration using Pydantic Settings for environment variable handling.

Provider credentials are not listed here: pydantic-ai's providers read their
standard variables (OPENAI_API_KEY, ANTHROPIC_API_KEY, DEEPSEEK_API_KEY,
GROQ_API_KEY) directly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

LogLevel = Literal["trace", "debug", "info", "notice", "warn", "warning", "error", "fatal"]


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # =============================================================================
    # APPLICATION
    # =============================================================================

    app_name: str = Field(default="threadkit", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    app_description: str = Field(
        default="Provider-agnostic conversation threads with tool-use resolution",
        alias="APP_DESCRIPTION",
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # =============================================================================
    # API CONFIGURATION
    # =============================================================================

    # Minimum level printed to the console by logfire
    log_level: LogLevel = Field(default="info", alias="LOG_LEVEL")
    logfire_console: bool = Field(default=True, alias="LOGFIRE_CONSOLE")

    # CORS Settings
    cors_origins: str = Field(default="", alias="CORS_ORIGINS")
    cors_credentials: bool = Field(default=False, alias="CORS_CREDENTIALS")
    cors_methods: str = Field(default="*", alias="CORS_METHODS")
    cors_headers: str = Field(default="*", alias="CORS_HEADERS")

    # =============================================================================
    # CONVERSATION ENGINE
    # =============================================================================

    default_provider: str = Field(default="openai", alias="DEFAULT_PROVIDER")
    default_temperature: float = Field(default=0.7, ge=0.0, le=2.0, alias="DEFAULT_TEMPERATURE")
    system_prompt: str = Field(default="You are a helpful AI assistant.", alias="SYSTEM_PROMPT")
    max_tool_rounds: int = Field(default=8, ge=0, alias="MAX_TOOL_ROUNDS")
    provider_timeout_seconds: float = Field(default=60.0, gt=0, alias="PROVIDER_TIMEOUT_SECONDS")
    tool_timeout_seconds: float = Field(default=30.0, gt=0, alias="TOOL_TIMEOUT_SECONDS")
    enable_builtin_tools: bool = Field(default=True, alias="ENABLE_BUILTIN_TOOLS")

    model_config = {"env_file": ".env", "case_sensitive": False, "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.model_validate({})


settings = get_settings()
