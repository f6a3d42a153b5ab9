"""Action registry.

An Action is a named wrapper around exactly one call to an external service,
with declared input and output JSON schemas. The registry is built once at
process start and never changes afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

ActionExecutor = Callable[[Mapping[str, Any]], Awaitable[Any]]


class DuplicateActionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class Action:
    name: str
    description: str
    input_schema: Mapping[str, Any]
    output_schema: Mapping[str, Any]
    execute: ActionExecutor = field(repr=False, compare=False)


class ActionRegistry:
    """Immutable name -> Action table."""

    def __init__(self, actions: Iterable[Action] = ()) -> None:
        table: dict[str, Action] = {}
        for action in actions:
            if action.name in table:
                raise DuplicateActionError(f"Action {action.name!r} registered twice")
            table[action.name] = action
        self._actions = table
        logger.debug("Action registry built", extra={"actions": len(table)})

    def get(self, name: str) -> Action | None:
        return self._actions.get(name)

    def list(self) -> tuple[str, ...]:  # noqa: A003 (registry contract)
        return tuple(self._actions)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._actions

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)
