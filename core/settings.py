from functools import lru_cache
from typing import List, Literal

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=True)
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])


class PgDbSettings(CustomSettings):
    POSTGRES_ENGINE: str = Field(default="postgresql+asyncpg")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="rehui")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: PostgresDsn | str = Field(default="")

    @model_validator(mode="before")
    def validate_postgres_dsn(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            _built_uri = PostgresDsn.build(
                scheme=data.get("POSTGRES_ENGINE", "postgresql+asyncpg"),
                username=data.get("POSTGRES_USER", "postgres"),
                password=data.get("POSTGRES_PASSWORD", "postgres"),
                host=data.get("POSTGRES_HOST", "localhost"),
                port=int(data.get("POSTGRES_PORT", 5432)),
                path=data.get("POSTGRES_DB", "rehui"),
            ).unicode_string()
            data["DATABASE_URL"] = _built_uri
        return data


class OpenAISettings(CustomSettings):
    """Chat model configuration.

    Env vars:
    - OPENAI_API_KEY
    - OPENAI_BASE_URL (optional, for OpenAI-compatible gateways)
    - OPENAI_MODEL
    """

    OPENAI_API_KEY: SecretStr = Field(default="")
    OPENAI_BASE_URL: str = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini")
    OPENAI_TEMPERATURE: float = Field(default=0.7)
    OPENAI_MAX_TOKENS: int = Field(default=2048)
    OPENAI_TIMEOUT: float = Field(default=60.0)


class ChatSettings(CustomSettings):
    """Configuration for the advisory chat pipeline.

    Set via env vars:
    - CHAT_HISTORY_WINDOW
    - CHAT_MAX_RECOMMENDATIONS
    - CHAT_STREAM_MODE (simulated | native)
    - CHAT_STREAM_CHUNK_DELAY_MS
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHAT_",
        case_sensitive=True,
        extra="ignore",
    )

    HISTORY_WINDOW: int = Field(default=20, ge=0)
    MAX_RECOMMENDATIONS: int = Field(default=5, ge=0, le=5)
    MAX_NEXT_STEPS: int = Field(default=5, ge=0)
    TITLE_MAX_CHARS: int = Field(default=50, ge=4)
    MAX_MESSAGE_CHARS: int = Field(default=2000)
    DEFAULT_LANGUAGE: Literal["en", "zh"] = Field(default="zh")
    STREAM_MODE: Literal["simulated", "native"] = Field(default="simulated")
    STREAM_CHUNK_DELAY_MS: int = Field(default=50, ge=0)


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: PgDbSettings = Field(default_factory=PgDbSettings)
    OPENAI: OpenAISettings = Field(default_factory=OpenAISettings)
    CHAT: ChatSettings = Field(default_factory=ChatSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
