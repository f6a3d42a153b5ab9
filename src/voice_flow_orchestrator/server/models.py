"""Pydantic models for the HTTP server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from voice_flow_orchestrator.orchestrator.flows.models import Flow
from voice_flow_orchestrator.orchestrator.graph.similarity import SimilarAction


class FlowExecuteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    flow_id: str = Field(alias="flowId", min_length=1)
    request_message: str = Field(alias="requestMessage")


class ErrorBody(BaseModel):
    error: str
    message: str | None = None


class ApiFlowStep(BaseModel):
    id: str
    name: str
    action: str | None = None
    bound: bool


class ApiFlow(BaseModel):
    id: str
    name: str
    description: str
    steps: list[ApiFlowStep] = Field(default_factory=list)

    @classmethod
    def from_flow(cls, flow: Flow) -> ApiFlow:
        return cls(
            id=flow.id,
            name=flow.name,
            description=flow.description,
            steps=[
                ApiFlowStep(id=s.id, name=s.name, action=s.action_name, bound=s.is_bound)
                for s in flow.steps
            ],
        )


class ApiSimilarAction(BaseModel):
    id: str | None = None
    name: str
    description: str
    score: float

    @classmethod
    def from_similar(cls, similar: SimilarAction) -> ApiSimilarAction:
        return cls(
            id=similar.id,
            name=similar.name,
            description=similar.description,
            score=similar.score,
        )
