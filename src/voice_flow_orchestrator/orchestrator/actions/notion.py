"""Notion actions.

Each action performs a single `notion_client.AsyncClient` call with the action
input passed through as keyword arguments. Failures are logged and re-raised
unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from notion_client import AsyncClient

from voice_flow_orchestrator.orchestrator.actions.registry import Action

logger = logging.getLogger(__name__)


class ActionName(str, Enum):
    RETRIEVE_BLOCK = "NotionRetrieveBlock"
    UPDATE_BLOCK = "NotionUpdateBlock"
    DELETE_BLOCK = "NotionDeleteBlock"
    APPEND_BLOCK_CHILDREN = "NotionAppendBlockChildren"
    LIST_BLOCK_CHILDREN = "NotionListBlockChildren"
    RETRIEVE_DATABASE = "NotionRetrieveDatabase"
    QUERY_DATABASE = "NotionQueryDatabase"
    CREATE_DATABASE = "NotionCreateDatabase"
    UPDATE_DATABASE = "NotionUpdateDatabase"
    CREATE_PAGE = "NotionCreatePage"
    RETRIEVE_PAGE = "NotionRetrievePage"
    UPDATE_PAGE = "NotionUpdatePage"
    RETRIEVE_PAGE_PROPERTY = "NotionRetrievePageProperty"
    RETRIEVE_USER = "NotionRetrieveUser"
    LIST_USERS = "NotionListUsers"
    RETRIEVE_CURRENT_USER = "NotionRetrieveCurrentUser"
    CREATE_COMMENT = "NotionCreateComment"
    LIST_COMMENTS = "NotionListComments"
    SEARCH = "NotionSearch"


# ==================== Schema fragments ====================


def _string(description: str | None = None) -> dict[str, Any]:
    return {"type": "string", "description": description} if description else {"type": "string"}


def _number(description: str) -> dict[str, Any]:
    return {"type": "number", "description": description}


def _boolean(description: str | None = None) -> dict[str, Any]:
    return {"type": "boolean", "description": description} if description else {"type": "boolean"}


def _object(description: str | None = None) -> dict[str, Any]:
    return {"type": "object", "description": description} if description else {"type": "object"}


def _objects(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "array", "items": {"type": "object"}}
    if description:
        schema["description"] = description
    return schema


def _input(properties: dict[str, Any], required: tuple[str, ...] = ()) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


def _output(**properties: dict[str, Any]) -> dict[str, Any]:
    return {"type": "object", "properties": {"object": _string(), **properties}}


_PAGINATION = {
    "start_cursor": _string("Pagination cursor"),
    "page_size": _number("Number of items to return per page"),
}
_BLOCK_ID = {"block_id": _string("Identifier for a block")}
_DATABASE_ID = {"database_id": _string("Identifier for a database")}
_PAGE_ID = {"page_id": _string("Identifier for a page")}

_BLOCK_OUTPUT = _output(
    id=_string(),
    type=_string(),
    created_time=_string(),
    last_edited_time=_string(),
    has_children=_boolean(),
)
_LIST_OUTPUT = _output(results=_objects(), next_cursor=_string(), has_more=_boolean())
_DATABASE_OUTPUT = _output(
    id=_string(),
    created_time=_string(),
    last_edited_time=_string(),
    title=_objects(),
    properties=_object(),
)
_PAGE_OUTPUT = _output(
    id=_string(),
    created_time=_string(),
    last_edited_time=_string(),
    parent=_object(),
    properties=_object(),
)
_USER_OUTPUT = _output(id=_string(), name=_string(), avatar_url=_string(), type=_string())


# ==================== Catalog ====================


@dataclass(frozen=True, slots=True)
class _NotionEndpoint:
    description: str
    input_schema: dict[str, Any]
    output_schema: dict[str, Any]
    method: Callable[[AsyncClient], Callable[..., Any]]
    failure: str


_CATALOG: dict[ActionName, _NotionEndpoint] = {
    # Blocks
    ActionName.RETRIEVE_BLOCK: _NotionEndpoint(
        description="Retrieves a Block object using the ID specified.",
        input_schema=_input(_BLOCK_ID, required=("block_id",)),
        output_schema=_BLOCK_OUTPUT,
        method=lambda client: client.blocks.retrieve,
        failure="Error retrieving block",
    ),
    ActionName.UPDATE_BLOCK: _NotionEndpoint(
        description="Updates the content of the block specified by ID.",
        input_schema=_input(
            {**_BLOCK_ID, "archived": _boolean("Whether the block is archived")},
            required=("block_id",),
        ),
        output_schema=_BLOCK_OUTPUT,
        method=lambda client: client.blocks.update,
        failure="Error updating block",
    ),
    ActionName.DELETE_BLOCK: _NotionEndpoint(
        description="Sets a block to archived: true using the ID specified.",
        input_schema=_input(_BLOCK_ID, required=("block_id",)),
        output_schema=_output(id=_string(), type=_string(), archived=_boolean()),
        method=lambda client: client.blocks.delete,
        failure="Error deleting block",
    ),
    ActionName.APPEND_BLOCK_CHILDREN: _NotionEndpoint(
        description="Creates and appends new children blocks to the parent block specified by ID.",
        input_schema=_input(
            {**_BLOCK_ID, "children": _objects("Child blocks to append")},
            required=("block_id", "children"),
        ),
        output_schema=_output(results=_objects()),
        method=lambda client: client.blocks.children.append,
        failure="Error appending block children",
    ),
    ActionName.LIST_BLOCK_CHILDREN: _NotionEndpoint(
        description=(
            "Returns a paginated array of child block objects for the block specified by ID."
        ),
        input_schema=_input({**_BLOCK_ID, **_PAGINATION}, required=("block_id",)),
        output_schema=_LIST_OUTPUT,
        method=lambda client: client.blocks.children.list,
        failure="Error listing block children",
    ),
    # Databases
    ActionName.RETRIEVE_DATABASE: _NotionEndpoint(
        description="Retrieves a Database object using the ID specified.",
        input_schema=_input(_DATABASE_ID, required=("database_id",)),
        output_schema=_DATABASE_OUTPUT,
        method=lambda client: client.databases.retrieve,
        failure="Error retrieving database",
    ),
    ActionName.QUERY_DATABASE: _NotionEndpoint(
        description="Gets a list of Pages from a database with provided filter and sort options.",
        input_schema=_input(
            {
                **_DATABASE_ID,
                "filter": _object("Filter criteria"),
                "sorts": _objects("Sort criteria"),
                **_PAGINATION,
            },
            required=("database_id",),
        ),
        output_schema=_LIST_OUTPUT,
        method=lambda client: client.databases.query,
        failure="Error querying database",
    ),
    ActionName.CREATE_DATABASE: _NotionEndpoint(
        description=(
            "Creates a database as a child of the specified parent page, "
            "with the specified properties schema."
        ),
        input_schema=_input(
            {
                "parent": _object("Parent page"),
                "title": _objects("Title of the database"),
                "properties": _object("Database properties schema"),
            },
            required=("parent", "title", "properties"),
        ),
        output_schema=_DATABASE_OUTPUT,
        method=lambda client: client.databases.create,
        failure="Error creating database",
    ),
    ActionName.UPDATE_DATABASE: _NotionEndpoint(
        description=(
            "Updates an existing database as specified by the ID, "
            "allowing title and properties schema changes."
        ),
        input_schema=_input(
            {
                **_DATABASE_ID,
                "title": _objects("Title of the database"),
                "properties": _object("Database properties schema"),
            },
            required=("database_id",),
        ),
        output_schema=_DATABASE_OUTPUT,
        method=lambda client: client.databases.update,
        failure="Error updating database",
    ),
    # Pages
    ActionName.CREATE_PAGE: _NotionEndpoint(
        description="Creates a new page in the specified parent page or database.",
        input_schema=_input(
            {
                "parent": _object("Parent page or database"),
                "properties": _object("Page properties"),
                "children": _objects("Page content blocks"),
            },
            required=("parent", "properties"),
        ),
        output_schema=_PAGE_OUTPUT,
        method=lambda client: client.pages.create,
        failure="Error creating page",
    ),
    ActionName.RETRIEVE_PAGE: _NotionEndpoint(
        description="Retrieves a Page object using the ID specified.",
        input_schema=_input(_PAGE_ID, required=("page_id",)),
        output_schema=_PAGE_OUTPUT,
        method=lambda client: client.pages.retrieve,
        failure="Error retrieving page",
    ),
    ActionName.UPDATE_PAGE: _NotionEndpoint(
        description="Updates page property values for the specified page.",
        input_schema=_input(
            {
                **_PAGE_ID,
                "properties": _object("Page properties to update"),
                "archived": _boolean("Whether the page is archived"),
            },
            required=("page_id",),
        ),
        output_schema=_PAGE_OUTPUT,
        method=lambda client: client.pages.update,
        failure="Error updating page",
    ),
    ActionName.RETRIEVE_PAGE_PROPERTY: _NotionEndpoint(
        description="Retrieves a page property item for the specified page and property.",
        input_schema=_input(
            {**_PAGE_ID, "property_id": _string("Identifier for a property")},
            required=("page_id", "property_id"),
        ),
        output_schema=_LIST_OUTPUT,
        method=lambda client: client.pages.properties.retrieve,
        failure="Error retrieving page property",
    ),
    # Users
    ActionName.RETRIEVE_USER: _NotionEndpoint(
        description="Retrieves a User object using the ID specified.",
        input_schema=_input({"user_id": _string("Identifier for a user")}, required=("user_id",)),
        output_schema=_USER_OUTPUT,
        method=lambda client: client.users.retrieve,
        failure="Error retrieving user",
    ),
    ActionName.LIST_USERS: _NotionEndpoint(
        description="Returns a paginated list of Users for the workspace.",
        input_schema=_input(dict(_PAGINATION)),
        output_schema=_LIST_OUTPUT,
        method=lambda client: client.users.list,
        failure="Error listing users",
    ),
    ActionName.RETRIEVE_CURRENT_USER: _NotionEndpoint(
        description="Retrieves the bot User associated with the API token.",
        input_schema=_input({}),
        output_schema=_USER_OUTPUT,
        method=lambda client: client.users.me,
        failure="Error retrieving current user",
    ),
    # Comments
    ActionName.CREATE_COMMENT: _NotionEndpoint(
        description="Creates a comment in a discussion within a page or as a standalone comment.",
        input_schema=_input(
            {
                "parent": _object("Parent page or discussion"),
                "discussion_id": _string("Identifier for a discussion"),
                "rich_text": _objects("Rich text content"),
            }
        ),
        output_schema=_output(
            id=_string(),
            parent=_object(),
            discussion_id=_string(),
            rich_text=_objects(),
            created_time=_string(),
            last_edited_time=_string(),
        ),
        method=lambda client: client.comments.create,
        failure="Error creating comment",
    ),
    ActionName.LIST_COMMENTS: _NotionEndpoint(
        description="Returns a paginated list of comments for the specified block.",
        input_schema=_input({**_BLOCK_ID, **_PAGINATION}),
        output_schema=_LIST_OUTPUT,
        method=lambda client: client.comments.list,
        failure="Error listing comments",
    ),
    # Search
    ActionName.SEARCH: _NotionEndpoint(
        description="Searches all pages and databases that the integration has access to.",
        input_schema=_input(
            {
                "query": _string("Search query"),
                "filter": _object("Filter criteria"),
                "sort": _object("Sort criteria"),
                **_PAGINATION,
            }
        ),
        output_schema=_LIST_OUTPUT,
        method=lambda client: client.search,
        failure="Error searching",
    ),
}


def _make_executor(client: AsyncClient, name: ActionName, endpoint: _NotionEndpoint):
    async def execute(payload: Mapping[str, Any]) -> Any:
        call = endpoint.method(client)
        try:
            return await call(**dict(payload))
        except Exception:
            logger.exception(endpoint.failure, extra={"action": name.value})
            raise

    return execute


def build_notion_actions(client: AsyncClient) -> dict[ActionName, Action]:
    """Build one Action per Notion endpoint, all sharing `client`."""

    missing = [name.value for name in ActionName if name not in _CATALOG]
    if missing:
        raise RuntimeError(f"Notion actions without a definition: {', '.join(missing)}")

    return {
        name: Action(
            name=name.value,
            description=endpoint.description,
            input_schema=endpoint.input_schema,
            output_schema=endpoint.output_schema,
            execute=_make_executor(client, name, endpoint),
        )
        for name, endpoint in _CATALOG.items()
    }
