"""Configuration for the HTTP server.

Only listener and CORS settings live here. Credentials for the call path are
validated by :class:`voice_flow_orchestrator.orchestrator.config.OrchestratorSettings`.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT", ge=1, le=65535)

    # Telephony and voice-provider callbacks are server-to-server; CORS only
    # matters for browser tooling. Override via CORS_ORIGINS=...
    cors_origins: str = Field(
        default="",
        validation_alias="CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
