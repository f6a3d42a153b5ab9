"""Minimal async client for the Ultravox calls API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0)


class UltravoxCall(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    call_id: str = Field(alias="callId")
    join_url: str = Field(alias="joinUrl")


class UltravoxClient:
    def __init__(
        self,
        *,
        api_key: str,
        api_url: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Ultravox API key is required")
        self._api_url = api_url
        self._headers = {"X-API-Key": api_key, "Content-Type": "application/json"}
        self._client = client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

    @classmethod
    def from_settings(cls, settings: OrchestratorSettings) -> UltravoxClient:
        return cls(api_key=settings.ultravox_api_key, api_url=settings.ultravox_api_url)

    async def create_call(self, config: Mapping[str, Any]) -> UltravoxCall:
        """Start a call session and return its id and join URL.

        Transport and HTTP status errors are logged and re-raised unchanged.
        """

        try:
            response = await self._client.post(
                self._api_url, json=dict(config), headers=self._headers
            )
            response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("Ultravox call creation failed", extra={"url": self._api_url})
            raise

        call = UltravoxCall.model_validate(response.json())
        logger.info("Ultravox call created", extra={"call_id": call.call_id})
        return call

    async def aclose(self) -> None:
        await self._client.aclose()
