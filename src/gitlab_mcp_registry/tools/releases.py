"""Release and release asset link tools."""

from __future__ import annotations

from typing import Any

from ..models import releases as m
from ..utils import encode_id, encode_segment, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


class ReleaseRegistry(EntityRegistry):
    name = "releases"
    gate = EnvGate("USE_RELEASES", True)
    read_only_tools = ("browse_releases",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_releases",
                "RELEASES: 'list' shows project releases, 'get' one release by tag, "
                "'assets' the asset links attached to it.",
                m.BrowseReleases,
                self.browse_releases,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                    ActionSpec("assets", mutates=False),
                ],
            ),
            self.define(
                "manage_release",
                "RELEASE CHANGES: 'create', 'update' or 'delete' a release (the tag is kept), "
                "'create_link' and 'delete_link' manage its asset links.",
                m.ManageRelease,
                self.manage_release,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                    ActionSpec("create_link", mutates=True),
                    ActionSpec("delete_link", mutates=True),
                ],
            ),
        ]

    def _base(self, project_id: str) -> str:
        return f"projects/{encode_id(project_id)}/releases"

    async def browse_releases(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseReleases.validate_python(args)
        base = self._base(inp.project_id)

        if isinstance(inp, m.ListReleases):
            return await self.client.get(base, to_query(inp.to_params("project_id")))
        path = f"{base}/{encode_segment(inp.tag_name)}"
        if isinstance(inp, m.GetRelease):
            params = to_query(inp.to_params("project_id", "tag_name")) or None
            return await self.client.get(path, params)
        params = to_query(inp.to_params("project_id", "tag_name")) or None
        return await self.client.get(f"{path}/assets/links", params)

    async def manage_release(self, args: dict[str, Any]) -> Any:
        inp = m.ManageRelease.validate_python(args)
        self.ensure_allowed("manage_release", inp.action)
        client = self.client
        base = self._base(inp.project_id)

        if isinstance(inp, m.CreateRelease):
            return await client.post(base, inp.to_params("project_id"))

        path = f"{base}/{encode_segment(inp.tag_name)}"
        if isinstance(inp, m.UpdateRelease):
            return await client.put(path, inp.to_params("project_id", "tag_name"))
        if isinstance(inp, m.DeleteRelease):
            await client.delete(path)
            return {"deleted": True, "tag_name": inp.tag_name}
        if isinstance(inp, m.CreateReleaseLink):
            body = inp.to_params("project_id", "tag_name")
            return await client.post(f"{path}/assets/links", body)

        await client.delete(f"{path}/assets/links/{encode_segment(inp.link_id)}")
        return {"deleted": True, "tag_name": inp.tag_name, "link_id": inp.link_id}
