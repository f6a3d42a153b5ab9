"""Administrative graph setup: action nodes, the sample flow, database reset."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from voice_flow_orchestrator.orchestrator.actions import ActionName, ActionRegistry
from voice_flow_orchestrator.orchestrator.graph.nodes import FlowNode
from voice_flow_orchestrator.orchestrator.graph.repository import FlowRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SampleStep:
    name: str
    instructions: str
    action: ActionName


SAMPLE_FLOW_NAME = "NotionFindPageAndUpdateStatus"
SAMPLE_FLOW_DESCRIPTION = "Searches for a Notion page and then updates its status"
SAMPLE_FLOW_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "pageName": {"type": "string"},
        "status": {"type": "string"},
    },
}
SAMPLE_FLOW_STEPS = (
    SampleStep(
        name="NotionSearchForPageStep",
        instructions=(
            "For a task, the page name is under "
            "result.properties?.['Task name']?.title?.[0]?.plain_text"
        ),
        action=ActionName.SEARCH,
    ),
    SampleStep(
        name="NotionUpdatePageStatusStep",
        instructions=(
            "Update the page status to the provided status by passing it in the properties "
            "object. Valid statuses are 'On Hold', 'In Progress', 'Completed', and 'Not Started'."
        ),
        action=ActionName.UPDATE_PAGE,
    ),
)


async def init_actions(repository: FlowRepository, registry: ActionRegistry) -> int:
    """Persist every registered action as an Action node.

    Actions that already have a node with the same name are left alone.

    Returns:
        Number of nodes created.
    """

    created = 0
    for action in registry:
        if await repository.find_action_by_name(action.name) is not None:
            logger.info("Action node already exists", extra={"action": action.name})
            continue
        await repository.create_action(
            name=action.name,
            description=action.description,
            input_schema=dict(action.input_schema),
            output_schema=dict(action.output_schema),
        )
        created += 1

    logger.info("Action nodes initialized", extra={"created": created, "total": len(registry)})
    return created


async def init_sample_flow(repository: FlowRepository) -> FlowNode:
    """Create the sample Notion flow.

    Its actions must already exist as nodes (see `init_actions`). Each step is
    created and linked in a single transaction.

    Raises:
        NodeNotFoundError: A required Action node is missing.
        AmbiguousNameError: An action name matches more than one node.
    """

    action_ids = {}
    for step in SAMPLE_FLOW_STEPS:
        lookup = await repository.resolve_action_by_name(step.action.value)
        action_ids[step.name] = lookup.require().id

    flow = await repository.create_flow(
        name=SAMPLE_FLOW_NAME,
        description=SAMPLE_FLOW_DESCRIPTION,
        input_schema=SAMPLE_FLOW_INPUT_SCHEMA,
    )

    previous_id: str | None = None
    for step in SAMPLE_FLOW_STEPS:
        node = await repository.append_step(
            flow_id=flow.id,
            name=step.name,
            instructions=step.instructions,
            action_id=action_ids[step.name],
            after_step_id=previous_id,
        )
        previous_id = node.id

    logger.info("Sample flow created", extra={"flow_id": flow.id, "flow": flow.name})
    return flow


async def reset_database(repository: FlowRepository) -> None:
    await repository.reset()
    logger.info("Database reset")
