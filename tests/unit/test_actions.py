from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest

from voice_flow_orchestrator.orchestrator.actions import (
    ActionName,
    ActionRegistry,
    build_notion_actions,
    default_registry,
)
from voice_flow_orchestrator.orchestrator.actions.registry import DuplicateActionError


def test_registry_lookup_and_listing(action_factory) -> None:
    registry = ActionRegistry([action_factory("A"), action_factory("B")])

    assert registry.get("A") is not None
    assert registry.get("C") is None
    assert registry.list() == ("A", "B")
    assert "B" in registry
    assert len(registry) == 2
    assert [action.name for action in registry] == ["A", "B"]


def test_registry_rejects_duplicate_names(action_factory) -> None:
    with pytest.raises(DuplicateActionError):
        ActionRegistry([action_factory("A"), action_factory("A")])


def test_every_notion_action_is_defined() -> None:
    actions = build_notion_actions(Mock())

    assert set(actions) == set(ActionName)
    for name, action in actions.items():
        assert action.name == name.value
        assert action.description
        assert action.input_schema["type"] == "object"
        assert action.output_schema["type"] == "object"


async def test_notion_action_passes_input_as_keyword_arguments() -> None:
    client = Mock()
    client.pages.update = AsyncMock(return_value={"object": "page", "id": "p1"})
    action = build_notion_actions(client)[ActionName.UPDATE_PAGE]

    result = await action.execute({"page_id": "p1", "properties": {"Status": "Done"}})

    assert result == {"object": "page", "id": "p1"}
    client.pages.update.assert_awaited_once_with(page_id="p1", properties={"Status": "Done"})


async def test_notion_action_reraises_client_errors() -> None:
    client = Mock()
    client.search = AsyncMock(side_effect=RuntimeError("Notion API unavailable"))
    action = build_notion_actions(client)[ActionName.SEARCH]

    with pytest.raises(RuntimeError, match="Notion API unavailable"):
        await action.execute({"query": "Quarterly report"})


def test_default_registry_contains_notion_catalog(settings) -> None:
    registry = default_registry(settings)

    assert len(registry) == len(ActionName)
    assert "NotionSearch" in registry
