"""Unit tests for flow graph persistence.

The store is mocked; these tests pin the Cypher parameters and row handling.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, Mock

import pytest

from voice_flow_orchestrator.orchestrator.graph.nodes import (
    AmbiguousNameError,
    LookupStatus,
    parse_action_node,
)
from voice_flow_orchestrator.orchestrator.graph.repository import FlowRepository
from voice_flow_orchestrator.orchestrator.graph.store import GraphStore, NodeNotFoundError


def _store(*responses: list[dict]) -> Mock:
    store = Mock(spec=GraphStore)
    store.run_query = AsyncMock(side_effect=list(responses))
    store.run_transaction = AsyncMock()
    return store


def _echo_create(query: str, params: dict) -> list[dict]:
    return [
        {
            "action": {
                "id": params["id"],
                "name": params["name"],
                "description": params["description"],
                "inputSchema": params["inputSchema"],
                "outputSchema": params["outputSchema"],
            }
        }
    ]


async def test_created_action_reads_back_with_parsed_schemas() -> None:
    persisted: list[dict] = []

    async def run_query(query: str, params: dict | None = None) -> list[dict]:
        if query.lstrip().startswith("CREATE"):
            rows = _echo_create(query, params)
            persisted.append(rows[0]["action"])
            return rows
        return [{"action": node} for node in persisted if node["name"] == params["name"]]

    store = Mock(spec=GraphStore)
    store.run_query = AsyncMock(side_effect=run_query)
    repository = FlowRepository(store)

    created = await repository.create_action(
        name="X", description="d", input_schema={}, output_schema={}
    )
    fetched = await repository.get_action_by_name("X")

    assert persisted[0]["inputSchema"] == "{}"
    assert fetched is not None
    assert fetched.id == created.id
    assert fetched.name == "X"
    assert fetched.description == "d"
    assert fetched.input_schema == {}
    assert fetched.output_schema == {}


async def test_create_action_serializes_schemas_as_json() -> None:
    store = Mock(spec=GraphStore)
    store.run_query = AsyncMock(side_effect=_echo_create)
    repository = FlowRepository(store)
    schema = {"type": "object", "properties": {"query": {"type": "string"}}}

    action = await repository.create_action(
        name="NotionSearch", description="Search", input_schema=schema, output_schema={}
    )

    params = store.run_query.await_args.args[1]
    assert json.loads(params["inputSchema"]) == schema
    assert params["outputSchema"] == "{}"
    assert action.input_schema == schema


def test_malformed_schema_is_kept_as_raw_text() -> None:
    node = parse_action_node(
        {"id": "a1", "name": "Broken", "inputSchema": "{not json", "outputSchema": '{"a": 1}'}
    )

    assert node.input_schema == "{not json"
    assert node.output_schema == {"a": 1}


async def test_find_by_name_returns_first_match_or_none() -> None:
    store = _store(
        [{"flow": {"id": "f1", "name": "F"}}, {"flow": {"id": "f2", "name": "F"}}],
        [],
    )
    repository = FlowRepository(store)

    assert await repository.find_flow_by_name("F") == {"id": "f1", "name": "F"}
    assert await repository.find_flow_by_name("missing") is None


async def test_resolve_by_name_reports_ambiguity() -> None:
    store = _store(
        [{"step": {"id": "s1", "name": "S"}}, {"step": {"id": "s2", "name": "S"}}],
        [],
        [{"step": {"id": "s3", "name": "T"}}],
    )
    repository = FlowRepository(store)

    ambiguous = await repository.resolve_flow_step_by_name("S")
    missing = await repository.resolve_flow_step_by_name("nope")
    found = await repository.resolve_flow_step_by_name("T")

    assert ambiguous.status is LookupStatus.AMBIGUOUS
    with pytest.raises(AmbiguousNameError, match="s1, s2"):
        ambiguous.require()
    assert missing.status is LookupStatus.NOT_FOUND
    with pytest.raises(NodeNotFoundError):
        missing.require()
    assert found.require().id == "s3"


async def test_delete_by_id_detaches_but_delete_by_name_does_not() -> None:
    store = _store([], [])
    repository = FlowRepository(store)

    await repository.delete_action_by_id("a1")
    await repository.delete_action_by_name("A")

    by_id, by_name = (call.args[0] for call in store.run_query.await_args_list)
    assert "DETACH DELETE" in by_id
    assert "DETACH" not in by_name
    assert "DELETE action" in by_name


async def test_link_operations_report_whether_both_endpoints_matched() -> None:
    store = _store([{"flow": {}, "step": {}}], [])
    repository = FlowRepository(store)

    assert await repository.set_flow_start_step("f1", "s1") is True
    assert await repository.set_flow_step_next("s1", "missing") is False

    first, second = store.run_query.await_args_list
    assert "MERGE (flow)-[:START]->(step)" in first.args[0]
    assert first.args[1] == {"flowId": "f1", "stepId": "s1"}
    assert second.args[1] == {"currentStepId": "s1", "nextStepId": "missing"}


async def test_append_step_runs_create_and_links_in_one_transaction() -> None:
    store = _store()
    store.run_transaction.return_value = [
        [{"step": {"id": "s2", "name": "S2", "instructions": "i"}}],
        [{"id": "a1"}],
        [{"id": "s1"}],
    ]
    repository = FlowRepository(store)

    step = await repository.append_step(
        flow_id="f1", name="S2", instructions="i", action_id="a1", after_step_id="s1"
    )

    assert step.id == "s2"
    (statements,) = store.run_transaction.await_args.args
    assert len(statements) == 3
    assert statements[0].query.strip().startswith("CREATE (step:FlowStep")
    assert "EXECUTES" in statements[1].query
    assert statements[1].expect_rows is True
    assert "NEXT" in statements[2].query
    assert statements[2].params["previousId"] == "s1"
    store.run_query.assert_not_awaited()


async def test_append_first_step_links_start() -> None:
    store = _store()
    store.run_transaction.return_value = [[{"step": {"id": "s1", "name": "S1"}}], [{"id": "f1"}]]
    repository = FlowRepository(store)

    await repository.append_step(flow_id="f1", name="S1", instructions="")

    (statements,) = store.run_transaction.await_args.args
    assert len(statements) == 2
    assert "START" in statements[1].query
    assert statements[1].params == {"flowId": "f1", "stepId": statements[0].params["id"]}


async def test_traversal_queries_parse_nodes() -> None:
    store = _store(
        [{"step": {"id": "s1", "name": "S1", "instructions": "go"}}],
        [],
        [{"action": {"id": "a1", "name": "A", "inputSchema": "{}", "outputSchema": "{}"}}],
    )
    repository = FlowRepository(store)

    start = await repository.find_start_step("f1")
    following = await repository.find_next_step("s1")
    action = await repository.find_step_action("s1")

    assert start is not None and start.instructions == "go"
    assert following is None
    assert action is not None and action.name == "A"
    assert store.run_query.await_args_list[0].args[1] == {"flowId": "f1"}
