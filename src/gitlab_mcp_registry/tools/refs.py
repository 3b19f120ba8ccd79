"""Branch, tag and ref protection tools."""

from __future__ import annotations

from typing import Any

from ..models import refs as m
from ..tiers import Tier
from ..utils import encode_id, encode_segment, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


class RefRegistry(EntityRegistry):
    name = "refs"
    gate = EnvGate("USE_REFS", True)
    read_only_tools = ("browse_refs",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_refs",
                "BRANCHES AND TAGS: list or get branches and tags, and inspect branch and "
                "tag protection rules. Protected tags need GitLab Premium.",
                m.BrowseRefs,
                self.browse_refs,
                actions=[
                    ActionSpec("list_branches", mutates=False),
                    ActionSpec("get_branch", mutates=False),
                    ActionSpec("list_tags", mutates=False),
                    ActionSpec("get_tag", mutates=False),
                    ActionSpec("list_protected_branches", mutates=False),
                    ActionSpec("get_protected_branch", mutates=False),
                    ActionSpec("list_protected_tags", mutates=False, tier=Tier.PREMIUM),
                ],
            ),
            self.define(
                "manage_ref",
                "REF CHANGES: create or delete branches and tags, protect, unprotect or "
                "update branch protection (push, merge and force-push rules), protect or "
                "unprotect tags (Premium).",
                m.ManageRef,
                self.manage_ref,
                actions=[
                    ActionSpec("create_branch", mutates=True),
                    ActionSpec("delete_branch", mutates=True),
                    ActionSpec("protect_branch", mutates=True),
                    ActionSpec("unprotect_branch", mutates=True),
                    ActionSpec("update_branch_protection", mutates=True),
                    ActionSpec("create_tag", mutates=True),
                    ActionSpec("delete_tag", mutates=True),
                    ActionSpec("protect_tag", mutates=True, tier=Tier.PREMIUM),
                    ActionSpec("unprotect_tag", mutates=True, tier=Tier.PREMIUM),
                ],
            ),
        ]

    async def browse_refs(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseRefs.validate_python(args)
        project = f"projects/{encode_id(inp.project_id)}"
        client = self.client

        if isinstance(inp, m.ListBranches):
            return await client.get(
                f"{project}/repository/branches", to_query(inp.to_params("project_id"))
            )
        if isinstance(inp, m.GetBranch):
            return await client.get(f"{project}/repository/branches/{encode_segment(inp.branch)}")
        if isinstance(inp, m.ListTags):
            return await client.get(
                f"{project}/repository/tags", to_query(inp.to_params("project_id"))
            )
        if isinstance(inp, m.GetTag):
            return await client.get(f"{project}/repository/tags/{encode_segment(inp.tag_name)}")
        if isinstance(inp, m.ListProtectedBranches):
            return await client.get(
                f"{project}/protected_branches", to_query(inp.to_params("project_id"))
            )
        if isinstance(inp, m.GetProtectedBranch):
            return await client.get(f"{project}/protected_branches/{encode_segment(inp.name)}")
        return await client.get(f"{project}/protected_tags", to_query(inp.to_params("project_id")))

    async def manage_ref(self, args: dict[str, Any]) -> Any:
        inp = m.ManageRef.validate_python(args)
        self.ensure_allowed("manage_ref", inp.action)
        project = f"projects/{encode_id(inp.project_id)}"
        client = self.client

        if isinstance(inp, m.CreateRefBranch):
            return await client.post(
                f"{project}/repository/branches", {"branch": inp.branch, "ref": inp.ref}
            )
        if isinstance(inp, m.DeleteBranch):
            await client.delete(f"{project}/repository/branches/{encode_segment(inp.branch)}")
            return {"deleted": True, "branch": inp.branch}
        if isinstance(inp, m.ProtectBranch):
            return await client.post(f"{project}/protected_branches", inp.to_params("project_id"))
        if isinstance(inp, m.UnprotectBranch):
            await client.delete(f"{project}/protected_branches/{encode_segment(inp.name)}")
            return {"unprotected": True, "name": inp.name}
        if isinstance(inp, m.UpdateBranchProtection):
            return await client.patch(
                f"{project}/protected_branches/{encode_segment(inp.name)}",
                inp.to_params("project_id", "name"),
            )
        if isinstance(inp, m.CreateTag):
            return await client.post(f"{project}/repository/tags", inp.to_params("project_id"))
        if isinstance(inp, m.DeleteTag):
            await client.delete(f"{project}/repository/tags/{encode_segment(inp.tag_name)}")
            return {"deleted": True, "tag_name": inp.tag_name}
        if isinstance(inp, m.ProtectTag):
            return await client.post(f"{project}/protected_tags", inp.to_params("project_id"))

        await client.delete(f"{project}/protected_tags/{encode_segment(inp.name)}")
        return {"unprotected": True, "name": inp.name}
