"""Neo4j persistence for the flow graph."""
