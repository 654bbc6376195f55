"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration.

    Defaults target the OpenAI embeddings API. Any OpenAI-compatible
    server (TEI, Ollama, vLLM) works by overriding the base URL.
    """

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Embedding API base URL",
    )
    model: str = Field(
        default="text-embedding-ada-002",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key sent as a Bearer token",
    )
    batch_size: int = Field(
        default=100,
        description="Batch size for embedding requests",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )


class StorageSettings(BaseSettings):
    """Document store configuration."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_STORAGE_")

    max_size_in_mb: float = Field(
        default=4.8,
        description="Size budget for the serialized collection (max 5 MB)",
    )
    debounce_time_ms: int = Field(
        default=0,
        ge=0,
        description="Quiet period before a save is written (0 = save inline)",
    )
    store_path: str = Field(
        default="vector_storage.json",
        description="Path of the JSON file backend",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
