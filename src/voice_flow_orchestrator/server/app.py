"""FastAPI app factory.

Endpoints are intentionally thin wrappers over :class:`FlowOrchestrator`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError
from twilio.twiml.voice_response import VoiceResponse

from voice_flow_orchestrator.core.orchestrator import FlowOrchestrator, ToolNotFoundError
from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings
from voice_flow_orchestrator.orchestrator.flows.loader import FlowNotFoundError
from voice_flow_orchestrator.orchestrator.graph.similarity import (
    EmbeddingMissingError,
    VectorIndexMissingError,
)
from voice_flow_orchestrator.orchestrator.graph.store import NodeNotFoundError
from voice_flow_orchestrator.orchestrator.logging import log_context
from voice_flow_orchestrator.server.config import ServerSettings
from voice_flow_orchestrator.server.models import (
    ApiFlow,
    ApiSimilarAction,
    ErrorBody,
    FlowExecuteRequest,
)

logger = logging.getLogger(__name__)

CONNECT_ERROR_MESSAGE = "Sorry, there was an error connecting your call."


def _error(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    body = ErrorBody(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _twiml(response: VoiceResponse) -> Response:
    return Response(content=str(response), media_type="text/xml")


async def _json_object(request: Request) -> dict[str, Any] | None:
    """Request body as a JSON object; an empty body counts as `{}`."""

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return body if isinstance(body, dict) else None


def create_app(
    settings: OrchestratorSettings | None = None,
    *,
    orchestrator: FlowOrchestrator | None = None,
    server_settings: ServerSettings | None = None,
) -> FastAPI:
    """Build the ASGI app.

    Settings are validated here, so a misconfigured process fails before it
    serves a request. An injected orchestrator is not closed on shutdown.
    """

    owns_orchestrator = orchestrator is None
    if orchestrator is None:
        orchestrator = FlowOrchestrator(settings or OrchestratorSettings())
    server_settings = server_settings or ServerSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_orchestrator:
            await orchestrator.close()

    app = FastAPI(
        title="Voice Flow Orchestrator",
        version="0.1.0",
        description="Telephony webhooks and voice tool callbacks for graph-stored flows.",
        lifespan=lifespan,
    )

    app.state.settings = orchestrator.settings
    app.state.orchestrator = orchestrator

    origins = server_settings.parsed_cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.post("/incoming", response_class=Response)
    async def incoming_call() -> Response:
        logger.info("Incoming call received")
        twiml = VoiceResponse()
        try:
            call = await orchestrator.start_call()
        except Exception:
            logger.exception("Error handling incoming call")
            twiml.say(CONNECT_ERROR_MESSAGE)
            return _twiml(twiml)

        connect = twiml.connect()
        connect.stream(url=call.join_url, name="ultravox")
        return _twiml(twiml)

    @app.post("/tools/{tool_name}", response_model=None)
    async def invoke_tool(tool_name: str, request: Request) -> JSONResponse:
        body = await _json_object(request)
        if body is None:
            return _error(400, "Request body must be a JSON object")

        try:
            with log_context(tool=tool_name):
                result = await orchestrator.invoke_tool(tool_name, body)
        except ToolNotFoundError as e:
            logger.warning("Unknown tool requested", extra={"tool": tool_name})
            return _error(404, str(e))
        except Exception as e:
            logger.exception("Error executing tool", extra={"tool": tool_name})
            return _error(500, "Error executing tool", str(e))

        return JSONResponse(
            status_code=200,
            content=jsonable_encoder(result.body),
            headers=dict(result.headers),
        )

    @app.post("/flows/execute", response_model=None)
    async def execute_flow(request: Request) -> JSONResponse:
        body = await _json_object(request)
        if body is None:
            return _error(400, "Request body must be a JSON object")
        try:
            req = FlowExecuteRequest.model_validate(body)
        except ValidationError as e:
            logger.warning("Invalid flow request", extra={"errors": e.error_count()})
            return _error(400, "Invalid request", str(e))

        logger.info(
            "Flow request received",
            extra={"flow_id": req.flow_id, "request_message": req.request_message},
        )
        try:
            with log_context(flow_id=req.flow_id):
                result = await orchestrator.execute_flow(req.flow_id, req.request_message)
        except FlowNotFoundError as e:
            logger.warning("Flow not found", extra={"flow_id": req.flow_id})
            return _error(404, "Flow not found", str(e))
        except Exception as e:
            logger.exception("Error executing flow", extra={"flow_id": req.flow_id})
            return _error(500, "Error executing flow", str(e))

        return JSONResponse(status_code=200, content=result)

    @app.get("/test", response_class=PlainTextResponse)
    async def liveness() -> str:
        return "OK"

    @app.get("/flows", response_model=list[ApiFlow])
    async def list_flows() -> list[ApiFlow]:
        flows = await orchestrator.list_flows()
        return [ApiFlow.from_flow(flow) for flow in flows]

    @app.get("/actions/{action_id}/similar", response_model=list[ApiSimilarAction])
    async def similar_actions(
        action_id: str,
        limit: int = Query(default=10, ge=1, le=100),
        threshold: float = Query(default=0.7, ge=0.0, le=1.0),
    ) -> list[ApiSimilarAction]:
        try:
            similar = await orchestrator.find_similar_actions(
                action_id, limit=limit, threshold=threshold
            )
        except (NodeNotFoundError, EmbeddingMissingError) as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except VectorIndexMissingError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        return [ApiSimilarAction.from_similar(s) for s in similar]

    return app
