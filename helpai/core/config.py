"""
Central configuration. All API keys and settings in one place.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    # --- Database ---
    database_url: str = Field(
        default="sqlite+aiosqlite:///./helpai.db",
        alias="DATABASE_URL",
    )

    # --- Sessions ---
    session_secret: str = Field(default="help-ai-dev-secret-key", alias="SESSION_SECRET")
    session_cookie_name: str = Field(default="helpai_session", alias="SESSION_COOKIE_NAME")
    session_max_age_days: int = Field(default=7, alias="SESSION_MAX_AGE_DAYS")

    # --- Completion (Together AI) ---
    together_api_key: str = Field(default="", alias="TOGETHER_AI_API_KEY")
    together_base_url: str = Field(default="https://api.together.xyz/v1", alias="TOGETHER_BASE_URL")
    chat_model: str = Field(
        default="NousResearch/Nous-Hermes-2-Mixtral-8x7B-DPO",
        alias="CHAT_MODEL",
    )
    chat_temperature: float = Field(default=0.7, alias="CHAT_TEMPERATURE")
    chat_max_tokens: int = Field(default=1024, alias="CHAT_MAX_TOKENS")

    # --- Web Search (Serper) ---
    serper_api_key: str = Field(default="", alias="SERPER_API_KEY")
    serper_search_url: str = Field(default="https://google.serper.dev/search", alias="SERPER_SEARCH_URL")

    # --- Image generation (Stability) ---
    stability_api_key: str = Field(default="", alias="STABILITY_API_KEY")
    stability_base_url: str = Field(default="https://api.stability.ai", alias="STABILITY_BASE_URL")
    stability_engine: str = Field(default="stable-diffusion-xl-1024-v1-0", alias="STABILITY_ENGINE")

    # --- OAuth ---
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field(default="", alias="GOOGLE_CLIENT_SECRET")
    discord_client_id: str = Field(default="", alias="DISCORD_CLIENT_ID")
    discord_client_secret: str = Field(default="", alias="DISCORD_CLIENT_SECRET")
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")

    # --- Code downloads ---
    downloads_dir: str = Field(default="./downloads", alias="DOWNLOADS_DIR")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
