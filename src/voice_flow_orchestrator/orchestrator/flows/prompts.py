"""Prompt templates for flow execution."""

from __future__ import annotations

import json

from voice_flow_orchestrator.orchestrator.flows.models import Flow, FlowStep

NONE_PROVIDED = "None provided."

FLOW_SYSTEM_PROMPT = """\
You are a workflow execution assistant that helps users complete the "{name}" flow.

The flow is a way to automate tasks and get things done to achieve the caller's goals.
The flow has a start step and a series of steps that need to be executed in order.
Each step has a name, instructions, and an action tool that can be used to execute the step.

INSTRUCTIONS:
You have access to tools that correspond to each step in the workflow. Use these tools to \
execute the steps. The tools are called actions.
You will receive a plain text request for running the flow that should include information \
needed to complete the flow.
However, the request may be incomplete or missing information. Sometimes things may be \
misspelled or unclear.
If you need to clarify something or additional information to complete the flow, ask the \
user for clarification.
While you are executing the flow, you should inform the user of your thought process and \
the progress of the flow.
If you encounter any issues or errors, do not keep trying to execute the flow. You should \
tell the user that the flow failed and provide a detailed explanation of the error as well \
as any suggestions for how to resolve the issue.
When all steps are completed successfully, inform the user that the workflow is complete \
and provide a summary of the results.

WORKFLOW DESCRIPTION:
{description}

WORKFLOW INPUT SCHEMA:
{input_schema}

STEPS TO EXECUTE (in order):
{steps}
"""

RESULTS_SYSTEM_PROMPT = """\
You are an automated agent that executes tasks by breaking them down into steps.
You have already executed the steps and now need to format and describe the results of the \
step executions into a coherent response.

Anything between the following `results` html blocks is the outputs of the step executions.

<results>
    {context}
<results/>"""

STEP_INPUT_SYSTEM_PROMPT = """\
You prepare the input for one step of the "{flow_name}" workflow.

Return only arguments that satisfy the input schema of the "{action_name}" action.
Use the caller's request and the results of earlier steps. Do not invent identifiers \
that do not appear in either.

STEP:
- name: {step_name}
- additional instructions: {instructions}

ACTION DESCRIPTION:
{action_description}

EARLIER STEP RESULTS:
{previous_results}
"""


def _render_schema(schema: object) -> str:
    if isinstance(schema, str):
        return schema
    return json.dumps(schema, indent=2, default=str)


def render_step(index: int, step: FlowStep) -> str:
    action = step.action.name if step.action is not None else "None (no action bound)"
    return (
        f"\nStep #{index}:\n"
        f"- name: {step.name}\n"
        f"- associated action tool: {action}\n"
        f"- additional instructions: {step.instructions or NONE_PROVIDED}"
    )


def build_flow_system_prompt(flow: Flow) -> str:
    return FLOW_SYSTEM_PROMPT.format(
        name=flow.name,
        description=flow.description or NONE_PROVIDED,
        input_schema=_render_schema(flow.input_schema),
        steps="\n".join(render_step(i, step) for i, step in enumerate(flow.steps, start=1)),
    )
