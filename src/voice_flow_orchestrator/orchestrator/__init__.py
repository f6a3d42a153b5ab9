"""Orchestrator components.

- Settings loaded from .env
- Structured logging
- The flow graph (Neo4j) and flow execution
- Voice call setup and mid-call tools
- A small CLI surface
"""
