"""Flow loading and execution."""
