"""FastAPI server adapter for voice-flow-orchestrator.

This module exposes the telephony webhook, the voice tool callbacks and a small
read API over the orchestrator services.

Design intent:
- Keep business logic in `voice_flow_orchestrator.orchestrator.*` and `core`
- Keep server-specific concerns (routing, CORS, error envelopes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from voice_flow_orchestrator.server.app import create_app
