"""Module entrypoint: `python -m voice_flow_orchestrator.cli`.

The CLI is implemented in `voice_flow_orchestrator.orchestrator.main`.
"""

from __future__ import annotations

from voice_flow_orchestrator.orchestrator.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
