"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
  2. A ``.env`` file in the working directory

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults apply
when neither source sets a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docingest application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Embedding Provider ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (Ollama, TogetherAI, ...)
    openai_embedding_model: str = ""  # Empty = text-embedding-3-small

    # === Object Storage ===
    storage_backend: str = "local"  # "local" or "http"
    storage_root: str = "data/uploads"
    storage_base_url: str = ""
    storage_bucket: str = "documents"
    storage_api_key: str = ""

    # === Chunk Store ===
    sqlite_db_path: str = "data/docingest.db"

    # === Ingestion Tuning ===
    chunk_token_budget: int = 2000
    embedding_token_cap: int = 8000
    embedding_timeout_seconds: float = 30.0
    max_halvings: int = 12
    ingest_concurrency: int = 2

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_providers(self) -> dict[str, bool]:
        """Return which collaborators have the configuration they need."""
        return {
            "embedding": bool(self.openai_api_key),
            "storage": self.storage_backend == "local" or bool(self.storage_base_url),
            "chunk_store": bool(self.sqlite_db_path),
        }
