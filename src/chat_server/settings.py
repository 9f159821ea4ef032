"""Chat server configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_FILE, override=False)


class ChatSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OCTAVE_CHAT_", env_file=str(ENV_FILE), extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000

    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "OCTAVE_CHAT_OPENAI_API_KEY"),
    )
    openai_model: str = "gpt-4o"
    temperature: float = 0.2
    openai_timeout_s: float = 30.0

    # Run tool calls from one LLM turn concurrently; recording order is unaffected.
    concurrent_tools: bool = True

    trace_enabled: bool = False
    trace_dir: str = "traces"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> ChatSettings:
    return ChatSettings()
