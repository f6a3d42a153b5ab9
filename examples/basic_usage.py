#!/usr/bin/env python3
"""Programmatic flow execution example.

This demonstrates using the orchestrator components directly:

* load settings from `.env`
* list the flows that can be executed
* run one flow against a plain-text request

The flow is passed as an argument, by id or by name.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from voice_flow_orchestrator.core.orchestrator import FlowOrchestrator
from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings
from voice_flow_orchestrator.orchestrator.flows.loader import FlowNotFoundError
from voice_flow_orchestrator.orchestrator.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a flow (programmatic example).")
    parser.add_argument("--flow", required=True, help="Flow id or name")
    parser.add_argument(
        "--request",
        default="Set the status of the 'Quarterly report' page to 'In Progress'",
        help="Natural-language request passed to the flow",
    )
    return parser.parse_args(argv)


async def _run(settings: OrchestratorSettings, flow: str, request: str) -> int:
    orchestrator = FlowOrchestrator(settings)
    try:
        for available in await orchestrator.list_flows():
            print(f"available: {available.name} ({len(available.steps)} steps)")

        try:
            result = await orchestrator.execute_flow(flow, request)
        except FlowNotFoundError as e:
            print(str(e))
            return 3

        print(result)
        return 0
    finally:
        await orchestrator.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = OrchestratorSettings()
    configure_logging(settings.log_level)

    return asyncio.run(_run(settings, args.flow, args.request))


if __name__ == "__main__":
    raise SystemExit(main())
