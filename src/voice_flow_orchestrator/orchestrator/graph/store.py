"""Neo4j graph store adapter.

This intentionally wraps the async Neo4j driver to keep Cypher execution out of
the HTTP and CLI code and make tests easy.

Every call opens its own session and releases it on every exit path. Single
statements run in auto-commit mode, so a multi-statement mutation issued as
separate `run_query` calls is not atomic; use `run_transaction` when a group of
writes must land together.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase

from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class NodeNotFoundError(LookupError):
    """Raised when a graph entity required by an operation does not exist."""


@dataclass(frozen=True, slots=True)
class Statement:
    """A single parameterized Cypher statement.

    When `expect_rows` is set, an empty result aborts the surrounding
    transaction with :class:`NodeNotFoundError`.
    """

    query: str
    params: Mapping[str, Any] = field(default_factory=dict)
    expect_rows: bool = False
    description: str = ""


class GraphStore:
    """Small wrapper around the async Neo4j driver."""

    def __init__(
        self,
        *,
        uri: str,
        user: str,
        password: str,
        database: str | None = None,
        driver: AsyncDriver | None = None,
    ) -> None:
        if not uri:
            raise ValueError("Neo4j URI is required")

        self._uri = uri
        self._database = database
        self._driver = driver or AsyncGraphDatabase.driver(uri, auth=(user, password))

    @classmethod
    def from_settings(cls, settings: OrchestratorSettings) -> GraphStore:
        return cls(
            uri=settings.neo4j_uri,
            user=settings.neo4j_user,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
        )

    async def run_query(self, query: str, params: Mapping[str, Any] | None = None) -> list[Record]:
        """Run one statement in its own session and return its rows as dicts.

        Nodes in the result are converted to plain property dicts.
        """

        async with self._driver.session(database=self._database) as session:
            try:
                result = await session.run(query, dict(params or {}))
                return await result.data()
            except Exception:
                logger.exception("Cypher query failed", extra={"query": _first_line(query)})
                raise

    async def run_transaction(self, statements: Sequence[Statement]) -> list[list[Record]]:
        """Run several statements in a single write transaction.

        Either every statement commits or none does. There is no retry.
        """

        results: list[list[Record]] = []
        async with self._driver.session(database=self._database) as session:
            tx = await session.begin_transaction()
            try:
                for statement in statements:
                    result = await tx.run(statement.query, dict(statement.params))
                    rows = await result.data()
                    if statement.expect_rows and not rows:
                        raise NodeNotFoundError(
                            statement.description or "Statement matched no graph entities"
                        )
                    results.append(rows)
                await tx.commit()
            except Exception:
                logger.exception(
                    "Graph transaction rolled back", extra={"statements": len(statements)}
                )
                if not tx.closed():
                    await tx.rollback()
                raise
            finally:
                await tx.close()
        return results

    async def verify_connectivity(self) -> None:
        await self._driver.verify_connectivity()

    async def close(self) -> None:
        await self._driver.close()


def _first_line(query: str) -> str:
    for line in query.splitlines():
        if line.strip():
            return line.strip()
    return ""
