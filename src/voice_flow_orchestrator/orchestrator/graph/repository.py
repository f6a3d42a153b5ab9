"""Flow graph persistence.

Actions, Flows and FlowSteps are nodes; `START`, `NEXT` and `EXECUTES` are edges:

    (:Flow)-[:START]->(:FlowStep)-[:NEXT]->(:FlowStep)
    (:FlowStep)-[:EXECUTES]->(:Action)

Every entity can be addressed by `id` or by `name`. Names are not constrained to
be unique: `find_*_by_name` / `get_*_by_name` return the first match, while
`resolve_*_by_name` reports ambiguity explicitly.

Deletes are deliberately asymmetric. Deleting by id detaches relationships first;
deleting by name does not, so Neo4j rejects the delete of a node that is still
linked.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from voice_flow_orchestrator.orchestrator.graph.nodes import (
    ActionNode,
    FlowNode,
    FlowStepNode,
    NameLookup,
    parse_action_node,
    parse_flow_node,
    parse_flow_step_node,
)
from voice_flow_orchestrator.orchestrator.graph.store import GraphStore, Record, Statement

logger = logging.getLogger(__name__)


def _generate_id() -> str:
    return str(uuid.uuid4())


def _first(rows: list[Record], key: str) -> dict[str, Any] | None:
    if not rows:
        return None
    return rows[0][key]


class FlowRepository:
    """Create, read, link and delete flow graph nodes."""

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    # ==================== Actions ====================

    async def create_action(
        self,
        *,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        output_schema: dict[str, Any],
    ) -> ActionNode:
        rows = await self._store.run_query(
            """
            CREATE (action:Action {
              id: $id,
              name: $name,
              description: $description,
              inputSchema: $inputSchema,
              outputSchema: $outputSchema
            })
            RETURN action
            """,
            {
                "id": _generate_id(),
                "name": name,
                "description": description,
                "inputSchema": json.dumps(input_schema),
                "outputSchema": json.dumps(output_schema),
            },
        )
        logger.info("Created action node", extra={"action": name})
        return parse_action_node(rows[0]["action"])

    async def find_action_by_id(self, action_id: str) -> dict[str, Any] | None:
        rows = await self._store.run_query(
            "MATCH (action:Action {id: $id}) RETURN action", {"id": action_id}
        )
        return _first(rows, "action")

    async def find_action_by_name(self, name: str) -> dict[str, Any] | None:
        rows = await self._store.run_query(
            "MATCH (action:Action {name: $name}) RETURN action", {"name": name}
        )
        return _first(rows, "action")

    async def get_action_by_id(self, action_id: str) -> ActionNode | None:
        properties = await self.find_action_by_id(action_id)
        return parse_action_node(properties) if properties is not None else None

    async def get_action_by_name(self, name: str) -> ActionNode | None:
        properties = await self.find_action_by_name(name)
        return parse_action_node(properties) if properties is not None else None

    async def resolve_action_by_name(self, name: str) -> NameLookup[ActionNode]:
        rows = await self._store.run_query(
            "MATCH (action:Action {name: $name}) RETURN action", {"name": name}
        )
        return NameLookup(
            label="Action",
            name=name,
            matches=tuple(parse_action_node(row["action"]) for row in rows),
        )

    async def list_actions(self) -> list[ActionNode]:
        rows = await self._store.run_query(
            "MATCH (action:Action) RETURN action ORDER BY action.name"
        )
        return [parse_action_node(row["action"]) for row in rows]

    async def delete_action_by_id(self, action_id: str) -> None:
        await self._store.run_query(
            "MATCH (action:Action {id: $id}) DETACH DELETE action", {"id": action_id}
        )

    async def delete_action_by_name(self, name: str) -> None:
        await self._store.run_query(
            "MATCH (action:Action {name: $name}) DELETE action", {"name": name}
        )

    # ==================== Flows ====================

    async def create_flow(
        self, *, name: str, description: str, input_schema: dict[str, Any]
    ) -> FlowNode:
        rows = await self._store.run_query(
            """
            CREATE (flow:Flow {
              id: $id,
              name: $name,
              description: $description,
              inputSchema: $inputSchema
            })
            RETURN flow
            """,
            {
                "id": _generate_id(),
                "name": name,
                "description": description,
                "inputSchema": json.dumps(input_schema),
            },
        )
        logger.info("Created flow node", extra={"flow": name})
        return parse_flow_node(rows[0]["flow"])

    async def find_flow_by_id(self, flow_id: str) -> dict[str, Any] | None:
        rows = await self._store.run_query(
            "MATCH (flow:Flow {id: $id}) RETURN flow", {"id": flow_id}
        )
        return _first(rows, "flow")

    async def find_flow_by_name(self, name: str) -> dict[str, Any] | None:
        rows = await self._store.run_query(
            "MATCH (flow:Flow {name: $name}) RETURN flow", {"name": name}
        )
        return _first(rows, "flow")

    async def get_flow_by_id(self, flow_id: str) -> FlowNode | None:
        properties = await self.find_flow_by_id(flow_id)
        return parse_flow_node(properties) if properties is not None else None

    async def get_flow_by_name(self, name: str) -> FlowNode | None:
        properties = await self.find_flow_by_name(name)
        return parse_flow_node(properties) if properties is not None else None

    async def resolve_flow_by_name(self, name: str) -> NameLookup[FlowNode]:
        rows = await self._store.run_query(
            "MATCH (flow:Flow {name: $name}) RETURN flow", {"name": name}
        )
        return NameLookup(
            label="Flow", name=name, matches=tuple(parse_flow_node(row["flow"]) for row in rows)
        )

    async def list_flows(self) -> list[FlowNode]:
        rows = await self._store.run_query("MATCH (flow:Flow) RETURN flow ORDER BY flow.name")
        return [parse_flow_node(row["flow"]) for row in rows]

    async def delete_flow_by_id(self, flow_id: str) -> None:
        await self._store.run_query(
            "MATCH (flow:Flow {id: $id}) DETACH DELETE flow", {"id": flow_id}
        )

    async def delete_flow_by_name(self, name: str) -> None:
        await self._store.run_query("MATCH (flow:Flow {name: $name}) DELETE flow", {"name": name})

    async def set_flow_start_step(self, flow_id: str, step_id: str) -> bool:
        rows = await self._store.run_query(
            """
            MATCH (flow:Flow {id: $flowId})
            MATCH (step:FlowStep {id: $stepId})
            MERGE (flow)-[:START]->(step)
            RETURN flow, step
            """,
            {"flowId": flow_id, "stepId": step_id},
        )
        return bool(rows)

    async def set_flow_start_step_by_name(self, flow_name: str, step_name: str) -> bool:
        rows = await self._store.run_query(
            """
            MATCH (flow:Flow {name: $flowName})
            MATCH (step:FlowStep {name: $stepName})
            MERGE (flow)-[:START]->(step)
            RETURN flow, step
            """,
            {"flowName": flow_name, "stepName": step_name},
        )
        return bool(rows)

    # ==================== Flow steps ====================

    async def create_flow_step(self, *, name: str, instructions: str) -> FlowStepNode:
        rows = await self._store.run_query(
            """
            CREATE (step:FlowStep {id: $id, name: $name, instructions: $instructions})
            RETURN step
            """,
            {"id": _generate_id(), "name": name, "instructions": instructions},
        )
        logger.info("Created flow step node", extra={"step": name})
        return parse_flow_step_node(rows[0]["step"])

    async def find_flow_step_by_id(self, step_id: str) -> dict[str, Any] | None:
        rows = await self._store.run_query(
            "MATCH (step:FlowStep {id: $id}) RETURN step", {"id": step_id}
        )
        return _first(rows, "step")

    async def find_flow_step_by_name(self, name: str) -> dict[str, Any] | None:
        rows = await self._store.run_query(
            "MATCH (step:FlowStep {name: $name}) RETURN step", {"name": name}
        )
        return _first(rows, "step")

    async def get_flow_step_by_id(self, step_id: str) -> FlowStepNode | None:
        properties = await self.find_flow_step_by_id(step_id)
        return parse_flow_step_node(properties) if properties is not None else None

    async def get_flow_step_by_name(self, name: str) -> FlowStepNode | None:
        properties = await self.find_flow_step_by_name(name)
        return parse_flow_step_node(properties) if properties is not None else None

    async def resolve_flow_step_by_name(self, name: str) -> NameLookup[FlowStepNode]:
        rows = await self._store.run_query(
            "MATCH (step:FlowStep {name: $name}) RETURN step", {"name": name}
        )
        return NameLookup(
            label="FlowStep",
            name=name,
            matches=tuple(parse_flow_step_node(row["step"]) for row in rows),
        )

    async def delete_flow_step_by_id(self, step_id: str) -> None:
        await self._store.run_query(
            "MATCH (step:FlowStep {id: $id}) DETACH DELETE step", {"id": step_id}
        )

    async def delete_flow_step_by_name(self, name: str) -> None:
        """Delete an unlinked step by name.

        A step that still has relationships is refused by the database;
        use :meth:`delete_flow_step_by_id` to remove it with its edges.
        """

        await self._store.run_query(
            "MATCH (step:FlowStep {name: $name}) DELETE step", {"name": name}
        )

    async def set_flow_step_next(self, current_step_id: str, next_step_id: str) -> bool:
        rows = await self._store.run_query(
            """
            MATCH (current:FlowStep {id: $currentStepId})
            MATCH (next:FlowStep {id: $nextStepId})
            MERGE (current)-[:NEXT]->(next)
            RETURN current, next
            """,
            {"currentStepId": current_step_id, "nextStepId": next_step_id},
        )
        return bool(rows)

    async def set_flow_step_next_by_name(self, current_step_name: str, next_step_name: str) -> bool:
        rows = await self._store.run_query(
            """
            MATCH (current:FlowStep {name: $currentStepName})
            MATCH (next:FlowStep {name: $nextStepName})
            MERGE (current)-[:NEXT]->(next)
            RETURN current, next
            """,
            {"currentStepName": current_step_name, "nextStepName": next_step_name},
        )
        return bool(rows)

    async def set_flow_step_action(self, step_id: str, action_id: str) -> bool:
        rows = await self._store.run_query(
            """
            MATCH (step:FlowStep {id: $stepId})
            MATCH (action:Action {id: $actionId})
            MERGE (step)-[:EXECUTES]->(action)
            RETURN step, action
            """,
            {"stepId": step_id, "actionId": action_id},
        )
        return bool(rows)

    async def set_flow_step_action_by_name(self, step_name: str, action_name: str) -> bool:
        rows = await self._store.run_query(
            """
            MATCH (step:FlowStep {name: $stepName})
            MATCH (action:Action {name: $actionName})
            MERGE (step)-[:EXECUTES]->(action)
            RETURN step, action
            """,
            {"stepName": step_name, "actionName": action_name},
        )
        return bool(rows)

    async def append_step(
        self,
        *,
        flow_id: str,
        name: str,
        instructions: str,
        action_id: str | None = None,
        after_step_id: str | None = None,
    ) -> FlowStepNode:
        """Create a step and wire it into a flow in one transaction.

        With no `after_step_id` the step becomes the flow's start step; otherwise it
        is linked as the `NEXT` of that step. A missing flow, action or predecessor
        rolls back the step creation too.
        """

        step_id = _generate_id()
        statements = [
            Statement(
                query="""
                CREATE (step:FlowStep {id: $id, name: $name, instructions: $instructions})
                RETURN step
                """,
                params={"id": step_id, "name": name, "instructions": instructions},
            )
        ]
        if action_id is not None:
            statements.append(
                Statement(
                    query="""
                    MATCH (step:FlowStep {id: $stepId})
                    MATCH (action:Action {id: $actionId})
                    MERGE (step)-[:EXECUTES]->(action)
                    RETURN action.id AS id
                    """,
                    params={"stepId": step_id, "actionId": action_id},
                    expect_rows=True,
                    description=f"Action with ID {action_id} not found",
                )
            )
        if after_step_id is None:
            statements.append(
                Statement(
                    query="""
                    MATCH (flow:Flow {id: $flowId})
                    MATCH (step:FlowStep {id: $stepId})
                    MERGE (flow)-[:START]->(step)
                    RETURN flow.id AS id
                    """,
                    params={"flowId": flow_id, "stepId": step_id},
                    expect_rows=True,
                    description=f"Flow with ID {flow_id} not found",
                )
            )
        else:
            statements.append(
                Statement(
                    query="""
                    MATCH (previous:FlowStep {id: $previousId})
                    MATCH (step:FlowStep {id: $stepId})
                    MERGE (previous)-[:NEXT]->(step)
                    RETURN previous.id AS id
                    """,
                    params={"previousId": after_step_id, "stepId": step_id},
                    expect_rows=True,
                    description=f"FlowStep with ID {after_step_id} not found",
                )
            )

        results = await self._store.run_transaction(statements)
        logger.info(
            "Appended flow step",
            extra={"flow_id": flow_id, "step": name, "after_step_id": after_step_id},
        )
        return parse_flow_step_node(results[0][0]["step"])

    # ==================== Traversal ====================

    async def find_start_step(self, flow_id: str) -> FlowStepNode | None:
        rows = await self._store.run_query(
            """
            MATCH (:Flow {id: $flowId})-[:START]->(step:FlowStep)
            RETURN step
            LIMIT 1
            """,
            {"flowId": flow_id},
        )
        properties = _first(rows, "step")
        return parse_flow_step_node(properties) if properties is not None else None

    async def find_next_step(self, step_id: str) -> FlowStepNode | None:
        rows = await self._store.run_query(
            """
            MATCH (:FlowStep {id: $stepId})-[:NEXT]->(next:FlowStep)
            RETURN next
            LIMIT 1
            """,
            {"stepId": step_id},
        )
        properties = _first(rows, "next")
        return parse_flow_step_node(properties) if properties is not None else None

    async def find_step_action(self, step_id: str) -> ActionNode | None:
        rows = await self._store.run_query(
            """
            MATCH (:FlowStep {id: $stepId})-[:EXECUTES]->(action:Action)
            RETURN action
            LIMIT 1
            """,
            {"stepId": step_id},
        )
        properties = _first(rows, "action")
        return parse_action_node(properties) if properties is not None else None

    # ==================== Maintenance ====================

    async def reset(self) -> None:
        """Remove every node and relationship from the database."""

        logger.warning("Resetting flow graph database")
        await self._store.run_query("MATCH (n) DETACH DELETE n")
