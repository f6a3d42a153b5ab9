"""Configuration for the voice flow orchestrator.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Every credential the call path needs is validated at load time so a
misconfigured process fails before it answers its first webhook.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_REQUIRED_FIELDS: dict[str, str] = {
    "ultravox_api_key": "ULTRAVOX_API_KEY",
    "neo4j_uri": "NEO4J_URI",
    "neo4j_user": "NEO4J_USER",
    "neo4j_password": "NEO4J_PASSWORD",
    "base_domain": "BASE_DOMAIN",
}


class OrchestratorSettings(BaseSettings):
    """Settings for the call orchestrator and the flow graph.

    Environment variables:
    - ULTRAVOX_API_KEY
    - ULTRAVOX_API_URL      (optional)
    - NEO4J_URI / NEO4J_USER / NEO4J_PASSWORD
    - NEO4J_DATABASE        (optional)
    - BASE_DOMAIN           public host used to build tool callback URLs
    - NOTION_TOKEN          (optional)
    - LOG_LEVEL             (optional)
    - FLOW_EXECUTION_MODE   (optional) "agent" or "sequential"
    - FLOW_MAX_STEPS        (optional)
    - VOICE_INITIAL_STAGE   (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `OrchestratorSettings(_env_file=path_to_env)`.
    """

    # Defaults are intentionally empty; validation below enforces that values are provided.
    ultravox_api_key: str = Field(
        default="",
        validation_alias="ULTRAVOX_API_KEY",
        description="API key for the Ultravox voice-AI call API",
    )
    ultravox_api_url: str = Field(
        default="https://api.ultravox.ai/api/calls",
        validation_alias="ULTRAVOX_API_URL",
        description="Endpoint used to create Ultravox calls",
    )

    neo4j_uri: str = Field(default="", validation_alias="NEO4J_URI")
    neo4j_user: str = Field(default="", validation_alias="NEO4J_USER")
    neo4j_password: str = Field(default="", validation_alias="NEO4J_PASSWORD")
    neo4j_database: str | None = Field(
        default=None,
        validation_alias="NEO4J_DATABASE",
        description="Target database; the server default is used when unset",
    )

    base_domain: str = Field(
        default="",
        validation_alias="BASE_DOMAIN",
        description="Public host name the voice provider calls back into",
    )

    notion_token: str = Field(default="", validation_alias="NOTION_TOKEN")

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    flow_execution_mode: Literal["agent", "sequential"] = Field(
        default="agent",
        validation_alias="FLOW_EXECUTION_MODE",
        description=(
            "'agent' lets a tool-calling agent drive the steps; 'sequential' runs the "
            "steps in chain order and only uses the model to build each step's input."
        ),
    )
    flow_max_steps: int = Field(
        default=100,
        validation_alias="FLOW_MAX_STEPS",
        ge=1,
        le=10_000,
        description="Upper bound on the number of steps followed when loading a flow",
    )

    voice_initial_stage: str = Field(
        default="Introduction",
        validation_alias="VOICE_INITIAL_STAGE",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("base_domain")
    @classmethod
    def _normalize_base_domain(cls, value: str) -> str:
        value = value.strip()
        for scheme in ("https://", "http://"):
            if value.startswith(scheme):
                value = value[len(scheme) :]
        return value.rstrip("/")

    @model_validator(mode="after")
    def _require_credentials(self) -> OrchestratorSettings:
        missing = [
            env_name
            for field_name, env_name in _REQUIRED_FIELDS.items()
            if not str(getattr(self, field_name)).strip()
        ]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")
        return self

    @property
    def flow_execute_url(self) -> str:
        """Callback URL the voice session posts flow requests to."""

        return f"https://{self.base_domain}/flows/execute"

    def tool_url(self, tool_name: str) -> str:
        """Callback URL for a registered voice tool."""

        return f"https://{self.base_domain}/tools/{tool_name}"
