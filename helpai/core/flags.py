"""
Central feature flags.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the chat turn simply skips that step. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Web Search ───────────────────────────────────────────────────
    use_web_search: bool = Field(default=True, alias="FF_USE_WEB_SEARCH")
    # ON  → chat turns that look like search requests get Serper results
    #       folded into the system prompt. Needs a Serper key.
    # OFF → the model answers from its own knowledge.

    # ── Memory ───────────────────────────────────────────────────────
    use_memory: bool = Field(default=True, alias="FF_USE_MEMORY")
    # ON  → past topics are injected into the system prompt and each
    #       registered turn appends to the user's memory.
    # OFF → memory is neither read nor written.

    # ── Guest mode ───────────────────────────────────────────────────
    enable_guest_mode: bool = Field(default=True, alias="FF_ENABLE_GUEST_MODE")
    # ON  → requests with `x-guest-mode: true` run without an account.
    # OFF → the header is ignored and a session is required.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
