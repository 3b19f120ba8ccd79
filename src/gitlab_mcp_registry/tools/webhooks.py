"""Project and group webhook tools."""

from __future__ import annotations

from typing import Any

from ..exceptions import TierNotSufficientError
from ..models import webhooks as m
from ..tiers import Tier, is_tier_sufficient, parse_tier
from ..utils import encode_id, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition

_NON_BODY_FIELDS = ("projectId", "groupId", "hookId", "trigger")


class WebhookRegistry(EntityRegistry):
    name = "webhooks"
    gate = EnvGate("USE_WEBHOOKS", True)
    read_only_tools = ("list_webhooks", "manage_webhook")

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "list_webhooks",
                "WEBHOOKS: list the webhooks configured on a project (scope 'project') or "
                "a group (scope 'group', Premium).",
                m.ListWebhooks,
                self.list_webhooks,
                actions=[
                    ActionSpec("project", mutates=False),
                    ActionSpec("group", mutates=False, tier=Tier.PREMIUM),
                ],
                discriminator="scope",
            ),
            self.define(
                "manage_webhook",
                "WEBHOOK CHANGES: 'create', 'read', 'update', 'delete' or 'test' a project "
                "or group webhook. 'test' fires a sample event for the given trigger.",
                m.ManageWebhook,
                self.manage_webhook,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("read", mutates=False),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                    ActionSpec("test", mutates=True),
                ],
            ),
        ]

    def _check_group_tier(self, tool: str, action: str, scope: str) -> None:
        if scope != "group":
            return
        available = parse_tier(self.config.tier if self.config else None)
        if not is_tier_sufficient(available, Tier.PREMIUM):
            raise TierNotSufficientError(tool, action, Tier.PREMIUM.value, available.value)

    @staticmethod
    def _base(inp: m.ProjectWebhooks | m.GroupWebhooks | Any) -> str:
        if inp.scope == "group":
            return f"groups/{encode_id(inp.groupId)}/hooks"
        return f"projects/{encode_id(inp.projectId)}/hooks"

    async def list_webhooks(self, args: dict[str, Any]) -> Any:
        inp = m.ListWebhooks.validate_python(args)
        self._check_group_tier("list_webhooks", inp.scope, inp.scope)
        params = to_query(inp.to_params("projectId", "groupId")) or None
        return await self.client.get(self._base(inp), params)

    async def manage_webhook(self, args: dict[str, Any]) -> Any:
        inp = m.ManageWebhook.validate_python(args)
        self.ensure_allowed("manage_webhook", inp.action)
        self._check_group_tier("manage_webhook", inp.action, inp.scope)
        client = self.client
        base = self._base(inp)

        if isinstance(inp, m.CreateWebhook):
            return await client.post(base, inp.to_params(*_NON_BODY_FIELDS))
        path = f"{base}/{inp.hookId}"
        if isinstance(inp, m.ReadWebhook):
            return await client.get(path)
        if isinstance(inp, m.UpdateWebhook):
            return await client.put(path, inp.to_params(*_NON_BODY_FIELDS))
        if isinstance(inp, m.DeleteWebhook):
            await client.delete(path)
            return {"success": True, "message": "Webhook deleted successfully"}
        return await client.post(f"{path}/test/{inp.trigger}")
