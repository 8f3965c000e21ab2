"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority
# order):
#
#   1. **Environment variables** — e.g., ACCESS_PASSWORD=s3cret
#      (highest priority — always wins)
#   2. **.env file** — key=value lines in the project root .env file
#      (lower priority — used for local development)
#
# Field `openai_api_key` maps to env var `OPENAI_API_KEY`.
#
# SECURITY: The .env file holds the shared upload password and API keys;
# keep it out of version control.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Gonçalinho application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Storage ===
    # The primary root is used when its parent directory is writable;
    # otherwise the fallback (relative to the working directory) is used.
    data_dir: str = "/var/www/goncalinho_data"
    fallback_data_dir: str = "./data_storage"
    max_upload_mb: int = 50

    # === Access ===
    # Shared secret for upload/delete.  Empty = mutations are not gated.
    access_password: str = ""

    # === LLM Providers ===
    # Empty string = "not configured" → provider selection in main.py
    # skips it and falls through to the next.
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs (TogetherAI, Groq, ...)
    openai_text_model: str = ""  # Override chat model (default gpt-4o-mini)
    anthropic_api_key: str = ""
    anthropic_model: str = ""  # Override Claude model
    ollama_base_url: str = "http://localhost:11434"  # Ollama always has a default URL
    ollama_model: str = ""  # Override local model (default llama3.1)

    # === Answer generation ===
    llm_temperature: float = 0.3
    history_window: int = 4
    rag_top_k: int = 15

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return provider names in selection priority order (Anthropic, OpenAI, Ollama)."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
