"""Personal, project and public snippet tools."""

from __future__ import annotations

from typing import Any

from ..models import snippets as m
from ..utils import encode_id, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


def _snippets_path(project_id: str | None) -> str:
    if project_id:
        return f"projects/{encode_id(project_id)}/snippets"
    return "snippets"


class SnippetRegistry(EntityRegistry):
    name = "snippets"
    gate = EnvGate("USE_SNIPPETS", True)
    read_only_tools = ("browse_snippets",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_snippets",
                "SNIPPETS: 'list' with scope 'personal' (your snippets), 'project' (needs "
                "project_id) or 'public'; 'get' reads one snippet, or its raw content with "
                "raw=true. Omit project_id for personal snippets.",
                m.BrowseSnippets,
                self.browse_snippets,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                ],
            ),
            self.define(
                "manage_snippet",
                "SNIPPET CHANGES: 'create' a personal or project snippet with one or more "
                "files, 'update' its title, description, visibility or files (file actions "
                "create/update/delete/move), 'delete' it permanently.",
                m.ManageSnippet,
                self.manage_snippet,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                ],
            ),
        ]

    async def browse_snippets(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseSnippets.validate_python(args)

        if isinstance(inp, m.ListSnippets):
            if inp.scope == "public":
                path = "snippets/public"
            else:
                path = _snippets_path(inp.project_id if inp.scope == "project" else None)
            return await self.client.get(path, to_query(inp.to_params("project_id")) or None)

        path = f"{_snippets_path(inp.project_id)}/{inp.id}"
        if inp.raw:
            return await self.client.get(f"{path}/raw", raw=True)
        return await self.client.get(path)

    async def manage_snippet(self, args: dict[str, Any]) -> Any:
        inp = m.ManageSnippet.validate_python(args)
        self.ensure_allowed("manage_snippet", inp.action)
        base = _snippets_path(inp.project_id)

        if isinstance(inp, m.CreateSnippet):
            return await self.client.post(base, inp.to_params("project_id"))
        if isinstance(inp, m.UpdateSnippet):
            return await self.client.put(f"{base}/{inp.id}", inp.to_params("project_id", "id"))

        await self.client.delete(f"{base}/{inp.id}")
        return {"deleted": True, "id": inp.id}
