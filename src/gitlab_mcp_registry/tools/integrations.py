"""Project integration (service) tools."""

from __future__ import annotations

from typing import Any

from ..models import integrations as m
from ..utils import encode_id, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


class IntegrationRegistry(EntityRegistry):
    name = "integrations"
    gate = EnvGate("USE_INTEGRATIONS", True)
    read_only_tools = ("list_integrations", "manage_integration")

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "list_integrations",
                "INTEGRATIONS: list the integrations active on a project (Slack, Jira, "
                "Discord, Teams, Jenkins, ...).",
                m.ListIntegrations,
                self.list_integrations,
            ),
            self.define(
                "manage_integration",
                "INTEGRATION CHANGES: 'get' reads the settings of one integration, 'update' "
                "configures it (settings under 'config' are sent as top-level fields), "
                "'disable' turns it off.",
                m.ManageIntegration,
                self.manage_integration,
                actions=[
                    ActionSpec("get", mutates=False),
                    ActionSpec("update", mutates=True),
                    ActionSpec("disable", mutates=True),
                ],
            ),
        ]

    async def list_integrations(self, args: dict[str, Any]) -> Any:
        inp = m.ListIntegrations.model_validate(args)
        path = f"projects/{encode_id(inp.project_id)}/integrations"
        return await self.client.get(path, to_query(inp.to_params("project_id")) or None)

    async def manage_integration(self, args: dict[str, Any]) -> Any:
        inp = m.ManageIntegration.validate_python(args)
        self.ensure_allowed("manage_integration", inp.action)
        path = f"projects/{encode_id(inp.project_id)}/integrations/{inp.integration}"

        if isinstance(inp, m.GetIntegration):
            return await self.client.get(path)
        if isinstance(inp, m.UpdateIntegration):
            body = inp.to_params("project_id", "integration", "config")
            body.update(inp.config or {})
            return await self.client.put(path, body)

        await self.client.delete(path)
        return {"deleted": True}
