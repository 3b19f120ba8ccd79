"""Label tools for projects and groups."""

from __future__ import annotations

from typing import Any

from ..models import labels as m
from ..utils import encode_segment, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


class LabelRegistry(EntityRegistry):
    name = "labels"
    gate = EnvGate("USE_LABELS", True)
    read_only_tools = ("browse_labels",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_labels",
                "LABELS: 'list' shows the labels of a project or group (run it before "
                "creating new ones), 'get' reads one label by ID or title. Group labels are "
                "inherited by every project in the group.",
                m.BrowseLabels,
                self.browse_labels,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                ],
            ),
            self.define(
                "manage_label",
                "LABEL CHANGES: 'create' a label (name and color), 'update' its name, color, "
                "description or priority, 'delete' it from every issue and merge request.",
                m.ManageLabel,
                self.manage_label,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                ],
            ),
        ]

    async def browse_labels(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseLabels.validate_python(args)

        if isinstance(inp, m.ListLabels):
            params = to_query(inp.to_params("namespace")) or None
            return await self.client.namespace_request(
                "GET", inp.namespace, "/labels", params=params
            )
        params = to_query(inp.to_params("namespace", "label_id")) or None
        return await self.client.namespace_request(
            "GET", inp.namespace, f"/labels/{encode_segment(inp.label_id)}", params=params
        )

    async def manage_label(self, args: dict[str, Any]) -> Any:
        inp = m.ManageLabel.validate_python(args)
        self.ensure_allowed("manage_label", inp.action)
        client = self.client

        if isinstance(inp, m.CreateLabel):
            body = inp.to_params("namespace")
            return await client.namespace_request("POST", inp.namespace, "/labels", json_data=body)

        suffix = f"/labels/{encode_segment(inp.label_id)}"
        if isinstance(inp, m.UpdateLabel):
            body = inp.to_params("namespace", "label_id")
            return await client.namespace_request("PUT", inp.namespace, suffix, json_data=body)

        await client.namespace_request("DELETE", inp.namespace, suffix)
        return {"deleted": True, "label_id": inp.label_id}
