"""Voice-AI call setup and mid-call tool callbacks."""
