"""Actions available to flow steps."""

from __future__ import annotations

from notion_client import AsyncClient

from voice_flow_orchestrator.orchestrator.actions.notion import ActionName, build_notion_actions
from voice_flow_orchestrator.orchestrator.actions.registry import Action, ActionRegistry
from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings


def default_registry(settings: OrchestratorSettings) -> ActionRegistry:
    """Build the process-wide registry from configuration."""

    client = AsyncClient(auth=settings.notion_token)
    return ActionRegistry(build_notion_actions(client).values())


__all__ = ["Action", "ActionName", "ActionRegistry", "build_notion_actions", "default_registry"]
