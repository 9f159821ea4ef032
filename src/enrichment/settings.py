"""Enrichment (Octave) configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_FILE, override=False)

OCTAVE_HOSTS = {
    "dev": "https://dev.octavehq.com",
    "prod": "https://app.octavehq.com",
}


class EnrichmentSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OCTAVE_CHAT_", env_file=str(ENV_FILE), extra="ignore")

    tool_server_host: str = "0.0.0.0"
    tool_server_port: int = 3001

    octave_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OCTAVE_API_KEY", "OCTAVE_CHAT_OCTAVE_API_KEY"),
    )
    enrich_company_oid: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OCTAVE_ENRICH_COMPANY_OID", "OCTAVE_CHAT_ENRICH_COMPANY_OID"),
    )
    enrich_person_oid: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OCTAVE_ENRICH_PERSON_OID", "OCTAVE_CHAT_ENRICH_PERSON_OID"),
    )
    sequence_oid: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OCTAVE_SEQUENCE_OID", "OCTAVE_CHAT_SEQUENCE_OID"),
    )

    octave_env: Literal["dev", "prod"] = Field(
        default="dev",
        validation_alias=AliasChoices("OCTAVE_ENV", "OCTAVE_CHAT_OCTAVE_ENV"),
    )
    octave_api_version: str = "v2"
    octave_base_url: str | None = None

    request_timeout_s: float = 30.0
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        if self.octave_base_url:
            return self.octave_base_url.rstrip("/")
        return f"{OCTAVE_HOSTS[self.octave_env]}/api/{self.octave_api_version}"


@lru_cache(maxsize=1)
def get_settings() -> EnrichmentSettings:
    return EnrichmentSettings()
