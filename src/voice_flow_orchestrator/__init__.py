"""Voice Flow Orchestrator.

Answers inbound calls with a voice-AI session, and runs multi-step flows stored
as a Neo4j graph when the voice agent calls back mid-call:
- configuration loaded from `.env`
- structured logging
- flow graph persistence, traversal and agent-driven execution
"""

__version__ = "0.1.0"

from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings

__all__ = ["__version__", "OrchestratorSettings"]
