"""Milestone tools for projects and groups."""

from __future__ import annotations

from typing import Any

from ..exceptions import GitLabApiError
from ..models import milestones as m
from ..tiers import Tier
from ..utils import clean_gids, encode_segment, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


class MilestoneRegistry(EntityRegistry):
    name = "milestones"
    gate = EnvGate("USE_MILESTONE", True)
    read_only_tools = ("browse_milestones",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_milestones",
                "MILESTONES: 'list' browses project or group milestones, 'get' shows one "
                "milestone, 'issues' and 'merge_requests' list its work, 'burndown' returns "
                "burndown events (Premium). The namespace may be a project or a group path.",
                m.BrowseMilestones,
                self.browse_milestones,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                    ActionSpec("issues", mutates=False),
                    ActionSpec("merge_requests", mutates=False),
                    ActionSpec("burndown", mutates=False, tier=Tier.PREMIUM),
                ],
            ),
            self.define(
                "manage_milestone",
                "MILESTONE CHANGES: 'create', 'update' (state_event closes or reopens), "
                "'delete', or 'promote' a project milestone to its group.",
                m.ManageMilestone,
                self.manage_milestone,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                    ActionSpec("promote", mutates=True),
                ],
            ),
        ]

    async def browse_milestones(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseMilestones.validate_python(args)
        client = self.client

        if isinstance(inp, m.ListMilestones):
            params: list[tuple[str, Any]] = list(
                to_query(inp.to_params("namespace", "iids")).items()
            )
            # GitLab expects iids[]=1&iids[]=2 rather than a comma list
            params.extend(("iids[]", iid) for iid in inp.iids or ())
            return clean_gids(
                await client.namespace_request("GET", inp.namespace, "/milestones", params=params)
            )

        suffix = f"/milestones/{encode_segment(inp.milestone_id)}"
        if isinstance(inp, m.MilestoneIssues):
            suffix += "/issues"
        elif isinstance(inp, m.MilestoneMergeRequests):
            suffix += "/merge_requests"
        elif isinstance(inp, m.MilestoneBurndown):
            suffix += "/burndown_events"
        params = to_query(inp.to_params("namespace", "milestone_id")) or None
        return clean_gids(
            await client.namespace_request("GET", inp.namespace, suffix, params=params)
        )

    async def manage_milestone(self, args: dict[str, Any]) -> Any:
        inp = m.ManageMilestone.validate_python(args)
        self.ensure_allowed("manage_milestone", inp.action)
        client = self.client

        if isinstance(inp, m.CreateMilestone):
            body = inp.to_params("namespace")
            return clean_gids(
                await client.namespace_request("POST", inp.namespace, "/milestones", json_data=body)
            )

        suffix = f"/milestones/{encode_segment(inp.milestone_id)}"
        if isinstance(inp, m.UpdateMilestone):
            body = inp.to_params("namespace", "milestone_id")
            return clean_gids(
                await client.namespace_request("PUT", inp.namespace, suffix, json_data=body)
            )
        if isinstance(inp, m.DeleteMilestone):
            await client.namespace_request("DELETE", inp.namespace, suffix)
            return {"deleted": True, "milestone_id": inp.milestone_id}

        entity, enc = await client.resolve_namespace(inp.namespace)
        if entity != "projects":
            raise GitLabApiError(
                400, "Bad Request", "Milestone promotion is only available for projects, not groups"
            )
        return clean_gids(await client.post(f"projects/{enc}{suffix}/promote"))
