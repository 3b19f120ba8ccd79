"""Wiki page tools for projects and groups."""

from __future__ import annotations

from typing import Any

from ..models import wiki as m
from ..utils import encode_segment, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


class WikiRegistry(EntityRegistry):
    name = "wiki"
    gate = EnvGate("USE_GITLAB_WIKI", True)
    read_only_tools = ("browse_wiki",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_wiki",
                "WIKI: 'list' shows the wiki pages of a project or group, 'get' reads one "
                "page by slug.",
                m.BrowseWiki,
                self.browse_wiki,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                ],
            ),
            self.define(
                "manage_wiki",
                "WIKI CHANGES: 'create' a page, 'update' its title, content or format, "
                "'delete' it permanently.",
                m.ManageWiki,
                self.manage_wiki,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                ],
            ),
        ]

    async def browse_wiki(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseWiki.validate_python(args)

        if isinstance(inp, m.ListWikiPages):
            params = to_query(inp.to_params("namespace")) or None
            return await self.client.namespace_request("GET", inp.namespace, "/wikis", params=params)
        params = to_query(inp.to_params("namespace", "slug")) or None
        return await self.client.namespace_request(
            "GET", inp.namespace, f"/wikis/{encode_segment(inp.slug)}", params=params
        )

    async def manage_wiki(self, args: dict[str, Any]) -> Any:
        inp = m.ManageWiki.validate_python(args)
        self.ensure_allowed("manage_wiki", inp.action)
        client = self.client

        if isinstance(inp, m.CreateWikiPage):
            body = inp.to_params("namespace")
            return await client.namespace_request("POST", inp.namespace, "/wikis", json_data=body)

        suffix = f"/wikis/{encode_segment(inp.slug)}"
        if isinstance(inp, m.UpdateWikiPage):
            body = inp.to_params("namespace", "slug")
            return await client.namespace_request("PUT", inp.namespace, suffix, json_data=body)

        await client.namespace_request("DELETE", inp.namespace, suffix)
        return {"deleted": True, "slug": inp.slug}
