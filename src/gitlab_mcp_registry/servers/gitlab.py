"""GitLab MCP server: exposes the registry manager's catalog as MCP tools."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import Tool, ToolResult
from mcp.types import TextContent, ToolAnnotations
from pydantic import Field, ValidationError

from ..exceptions import (
    ActionNotAllowedError,
    GitLabApiError,
    GitLabAuthError,
    GitLabGraphQLError,
    GitLabNotFoundError,
    GitLabTimeoutError,
    NamespaceNotFoundError,
    ReadOnlyModeError,
    ScopeViolationError,
    TierNotSufficientError,
    ToolNotFoundError,
)
from ..manager import RegistryManager, get_instance
from ..tools.base import ToolDefinition

logger = logging.getLogger(__name__)


def _ok(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _err(error: Exception) -> str:
    detail: dict[str, Any] = {"error": str(error)}

    if isinstance(error, NamespaceNotFoundError):
        detail["status_code"] = error.status_code
        detail["hint"] = "Check the path with browse_namespaces (action 'verify')."
    elif isinstance(error, GitLabNotFoundError):
        detail["status_code"] = error.status_code
        detail["body"] = error.body
        detail["hint"] = "Verify the resource ID/path. Use browse_projects to confirm it exists."
    elif isinstance(error, GitLabAuthError):
        detail["status_code"] = error.status_code
        detail["body"] = error.body
        detail["hint"] = "Check GITLAB_TOKEN permissions. Token needs 'api' scope."
    elif isinstance(error, GitLabApiError):
        detail["status_code"] = error.status_code
        detail["body"] = error.body
        if error.status_code == 409:
            detail["hint"] = "Conflict. The resource may already exist or be locked."
        elif error.status_code == 422:
            detail["hint"] = "Validation failed. Check required fields and formats."
        elif error.status_code == 429:
            detail["hint"] = "Rate limited. Wait before retrying."
    elif isinstance(error, ReadOnlyModeError):
        detail["hint"] = "Server is in read-only mode. Unset GITLAB_READ_ONLY_MODE to enable writes."
    elif isinstance(error, TierNotSufficientError):
        detail["hint"] = f"This action needs GitLab {error.required.title()}. Set GITLAB_TIER if detection is wrong."
    elif isinstance(error, ActionNotAllowedError):
        detail["hint"] = "The action is denied by GITLAB_DENIED_ACTIONS or the active profile."
    elif isinstance(error, ScopeViolationError):
        detail["hint"] = "The active profile limits calls to allowed_projects and allowed_groups."
    elif isinstance(error, ToolNotFoundError):
        detail["hint"] = "The tool is disabled or filtered out by the current configuration."
    elif isinstance(error, GitLabTimeoutError):
        detail["hint"] = "Increase GITLAB_API_TIMEOUT_MS or narrow the request."
    elif isinstance(error, GitLabGraphQLError):
        detail["hint"] = "The GraphQL API rejected the request. Check IDs and type names."
    elif isinstance(error, ValidationError):
        detail["details"] = [
            {"loc": ".".join(str(p) for p in e["loc"]), "msg": e["msg"]} for e in error.errors()
        ]
    return json.dumps(detail, indent=2, ensure_ascii=False)


class RegistryTool(Tool):
    """MCP tool backed by one catalog entry; calls go through the manager."""

    manager: Any = Field(default=None, exclude=True)

    @classmethod
    def from_definition(cls, definition: ToolDefinition, manager: RegistryManager) -> RegistryTool:
        read = not definition.mutates and _is_read_only(definition, manager)
        mode = "read" if read else "write"
        return cls(
            name=definition.name,
            description=definition.description,
            parameters=definition.input_schema,
            tags={"gitlab", definition.entity, mode},
            annotations=ToolAnnotations(
                readOnlyHint=mode == "read",
                openWorldHint=True,
            ),
            manager=manager,
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        try:
            data = await self.manager.dispatch(self.name, arguments)
        except Exception as e:
            logger.debug("Tool %s failed: %s", self.name, e)
            raise ToolError(_err(e)) from e
        return ToolResult(content=[TextContent(type="text", text=_ok(data))])


def _is_read_only(definition: ToolDefinition, manager: RegistryManager) -> bool:
    registry = manager.registry_by_name(definition.entity)
    return registry is not None and definition.name in registry.get_read_only_tool_names()


def build_server(manager: RegistryManager | None = None) -> FastMCP:
    """Create a FastMCP server exposing ``manager``'s filtered catalog."""
    manager = manager or get_instance()

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {"manager": manager}
        finally:
            await manager.close()

    mcp = FastMCP(
        name="GitLab MCP Registry",
        instructions=(
            "Provides GitLab tools grouped by entity: projects, milestones, work items,"
            " releases, CI/CD variables, webhooks, branches and tags, integrations,"
            " repository files, labels, wiki pages and snippets. Action-based tools take"
            " an 'action' argument."
        ),
        lifespan=lifespan,
    )
    for definition in manager.tools:
        mcp.add_tool(RegistryTool.from_definition(definition, manager))
    logger.info("Registered %d GitLab tools", len(manager.tools))
    return mcp
