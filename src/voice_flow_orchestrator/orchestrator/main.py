"""CLI entrypoint for the voice flow orchestrator.

Serves the HTTP app and runs the administrative graph commands.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

import uvicorn
from pydantic import ValidationError

from voice_flow_orchestrator import __version__
from voice_flow_orchestrator.core.orchestrator import FlowOrchestrator
from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings
from voice_flow_orchestrator.orchestrator.flows.loader import (
    CyclicFlowError,
    FlowNotFoundError,
    NoStartStepError,
)
from voice_flow_orchestrator.orchestrator.graph.nodes import AmbiguousNameError
from voice_flow_orchestrator.orchestrator.graph.similarity import (
    EmbeddingMissingError,
    VectorIndexMissingError,
)
from voice_flow_orchestrator.orchestrator.graph.store import NodeNotFoundError
from voice_flow_orchestrator.orchestrator.logging import configure_logging, log_context
from voice_flow_orchestrator.orchestrator.seed import (
    init_actions,
    init_sample_flow,
    reset_database,
)
from voice_flow_orchestrator.server.app import create_app
from voice_flow_orchestrator.server.config import ServerSettings

logger = logging.getLogger(__name__)

# Exit code 3: a named entity is missing, ambiguous or unusable.
_NOT_FOUND_ERRORS = (
    FlowNotFoundError,
    NoStartStepError,
    CyclicFlowError,
    NodeNotFoundError,
    AmbiguousNameError,
    EmbeddingMissingError,
    VectorIndexMissingError,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voice-flow",
        description="Voice-call automation backend for graph-stored flows",
    )
    parser.add_argument(
        "--version", action="version", version=f"voice-flow-orchestrator {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None, help="Bind address (defaults to HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (defaults to PORT)")

    subparsers.add_parser("init-actions", help="Create an Action node for every registered action")
    subparsers.add_parser("init-flows", help="Create the sample Notion flow")

    reset_db = subparsers.add_parser("reset-db", help="Delete every node and relationship")
    reset_db.add_argument(
        "--yes",
        action="store_true",
        help="Confirm the reset; without it nothing is deleted",
    )

    subparsers.add_parser("list-flows", help="List flows that can be executed")

    run_flow = subparsers.add_parser("run-flow", help="Execute a flow with a plain-text request")
    run_flow.add_argument("flow", help="Flow id or name")
    run_flow.add_argument("request", help="Natural-language request for the flow")

    create_index = subparsers.add_parser(
        "create-vector-index", help="Create the Action embedding vector index"
    )
    create_index.add_argument("--dimensions", type=int, default=768)
    create_index.add_argument(
        "--similarity-function", choices=["cosine", "euclidean"], default="cosine"
    )
    create_index.add_argument(
        "--recreate", action="store_true", help="Drop the index first if it exists"
    )

    embed = subparsers.add_parser(
        "embed-action", help="Compute and store the embedding of an action's description"
    )
    embed_target = embed.add_mutually_exclusive_group(required=True)
    embed_target.add_argument("--id", dest="action_id", default=None)
    embed_target.add_argument("--name", dest="action_name", default=None)
    embed_target.add_argument(
        "--all", dest="embed_all", action="store_true", help="Embed every Action node"
    )

    similar = subparsers.add_parser("similar-actions", help="Find actions similar to one action")
    similar_target = similar.add_mutually_exclusive_group(required=True)
    similar_target.add_argument("--id", dest="action_id", default=None)
    similar_target.add_argument("--name", dest="action_name", default=None)
    similar.add_argument("--limit", type=int, default=10)
    similar.add_argument("--threshold", type=float, default=0.7)

    return parser


async def _list_flows(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    flows = await orchestrator.list_flows()
    if not flows:
        print("No executable flows found")
        return 0
    for flow in flows:
        print(f"{flow.id}  {flow.name}: {flow.description}")
        for index, step in enumerate(flow.steps, start=1):
            action = step.action_name or "(no action)"
            print(f"    {index}. {step.name} -> {action}")
    return 0


async def _run_flow(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    result = await orchestrator.execute_flow(args.flow, args.request)
    print(result)
    return 0


async def _init_actions(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    created = await init_actions(orchestrator.repository, orchestrator.registry)
    print(f"Created {created} action node(s); {len(orchestrator.registry)} actions registered")
    return 0


async def _init_flows(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    flow = await init_sample_flow(orchestrator.repository)
    print(f"Created flow {flow.name} ({flow.id})")
    return 0


async def _reset_db(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to reset the database without --yes", file=sys.stderr)
        return 2
    await reset_database(orchestrator.repository)
    print("Database reset")
    return 0


async def _create_vector_index(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    similarity = orchestrator.similarity()
    if args.recreate and await similarity.drop_vector_index():
        print(f"Dropped vector index {similarity.index_name}")
    await similarity.create_vector_index(
        dimensions=args.dimensions, similarity_function=args.similarity_function
    )
    print(f"Vector index {similarity.index_name} ready")
    return 0


async def _embed_action(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    similarity = orchestrator.similarity(with_embedder=True)
    if args.embed_all:
        actions = await orchestrator.repository.list_actions()
        for action in actions:
            await similarity.set_action_embedding(action.id)
        print(f"Embedded {len(actions)} action(s)")
        return 0

    if args.action_id is not None:
        vector = await similarity.set_action_embedding(args.action_id)
        target = args.action_id
    else:
        lookup = await orchestrator.repository.resolve_action_by_name(args.action_name)
        action = lookup.require()
        vector = await similarity.set_action_embedding(action.id)
        target = args.action_name
    print(f"Stored {len(vector)}-dimensional embedding for {target}")
    return 0


async def _similar_actions(orchestrator: FlowOrchestrator, args: argparse.Namespace) -> int:
    action_id = args.action_id
    if action_id is None:
        lookup = await orchestrator.repository.resolve_action_by_name(args.action_name)
        action_id = lookup.require().id

    similar = await orchestrator.find_similar_actions(
        action_id, limit=args.limit, threshold=args.threshold
    )
    if not similar:
        print("No similar actions above the threshold")
    for item in similar:
        print(f"{item.score:.3f}  {item.name}: {item.description}")
    return 0


_COMMANDS: dict[str, Callable[[FlowOrchestrator, argparse.Namespace], Awaitable[int]]] = {
    "init-actions": _init_actions,
    "init-flows": _init_flows,
    "reset-db": _reset_db,
    "list-flows": _list_flows,
    "run-flow": _run_flow,
    "create-vector-index": _create_vector_index,
    "embed-action": _embed_action,
    "similar-actions": _similar_actions,
}


async def _run_command(settings: OrchestratorSettings, args: argparse.Namespace) -> int:
    orchestrator = FlowOrchestrator(settings)
    try:
        with log_context(command=args.command):
            return await _COMMANDS[args.command](orchestrator, args)
    finally:
        await orchestrator.close()


def _serve(settings: OrchestratorSettings, args: argparse.Namespace) -> int:
    server_settings = ServerSettings()
    app = create_app(settings, server_settings=server_settings)
    uvicorn.run(
        app,
        host=args.host or server_settings.host,
        port=args.port or server_settings.port,
        log_config=None,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = OrchestratorSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        if args.command == "serve":
            return _serve(settings, args)

        if args.command in _COMMANDS:
            return asyncio.run(_run_command(settings, args))

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ValidationError as e:
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    except _NOT_FOUND_ERRORS as e:
        logger.warning(str(e), extra={"command": args.command})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
