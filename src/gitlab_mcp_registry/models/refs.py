"""Input schemas for branch and tag tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .base import Paginated, ToolInput
from .core import ProjectId

BranchName = Annotated[str, Field(min_length=1, description="Branch name")]
TagName = Annotated[str, Field(min_length=1, description="Tag name")]
RefName = Annotated[str, Field(min_length=1, description="Branch or tag name (wildcards allowed)")]
AccessLevel = Literal[0, 30, 40, 60]


class AccessRule(BaseModel):
    user_id: int | None = None
    group_id: int | None = None
    access_level: AccessLevel | None = None


# ── browse_refs ───────────────────────────────────────────────


class ListBranches(Paginated):
    action: Literal["list_branches"]
    project_id: ProjectId
    search: str | None = None
    regex: str | None = None


class GetBranch(ToolInput):
    action: Literal["get_branch"]
    project_id: ProjectId
    branch: BranchName


class ListTags(Paginated):
    action: Literal["list_tags"]
    project_id: ProjectId
    search: str | None = None
    order_by: Literal["name", "updated", "version"] | None = None
    sort: Literal["asc", "desc"] | None = None


class GetTag(ToolInput):
    action: Literal["get_tag"]
    project_id: ProjectId
    tag_name: TagName


class ListProtectedBranches(Paginated):
    action: Literal["list_protected_branches"]
    project_id: ProjectId
    search: str | None = None


class GetProtectedBranch(ToolInput):
    action: Literal["get_protected_branch"]
    project_id: ProjectId
    name: RefName


class ListProtectedTags(Paginated):
    action: Literal["list_protected_tags"]
    project_id: ProjectId


BrowseRefs = TypeAdapter(
    Annotated[
        Union[
            ListBranches,
            GetBranch,
            ListTags,
            GetTag,
            ListProtectedBranches,
            GetProtectedBranch,
            ListProtectedTags,
        ],
        Field(discriminator="action"),
    ]
)


# ── manage_ref ────────────────────────────────────────────────


class CreateRefBranch(ToolInput):
    action: Literal["create_branch"]
    project_id: ProjectId
    branch: BranchName
    ref: str = Field(min_length=1, description="Source branch, tag or commit SHA")


class DeleteBranch(ToolInput):
    action: Literal["delete_branch"]
    project_id: ProjectId
    branch: BranchName


class _ProtectionRules(ToolInput):
    allow_force_push: bool | None = None
    allowed_to_push: list[AccessRule] | None = None
    allowed_to_merge: list[AccessRule] | None = None
    allowed_to_unprotect: list[AccessRule] | None = None
    code_owner_approval_required: bool | None = None


class ProtectBranch(_ProtectionRules):
    action: Literal["protect_branch"]
    project_id: ProjectId
    name: RefName
    push_access_level: AccessLevel | None = None
    merge_access_level: AccessLevel | None = None
    unprotect_access_level: AccessLevel | None = None


class UnprotectBranch(ToolInput):
    action: Literal["unprotect_branch"]
    project_id: ProjectId
    name: RefName


class UpdateBranchProtection(_ProtectionRules):
    action: Literal["update_branch_protection"]
    project_id: ProjectId
    name: RefName


class CreateTag(ToolInput):
    action: Literal["create_tag"]
    project_id: ProjectId
    tag_name: TagName
    ref: str = Field(min_length=1)
    message: str | None = Field(None, description="Creates an annotated tag when set")


class DeleteTag(ToolInput):
    action: Literal["delete_tag"]
    project_id: ProjectId
    tag_name: TagName


class ProtectTag(ToolInput):
    action: Literal["protect_tag"]
    project_id: ProjectId
    name: RefName
    create_access_level: AccessLevel | None = None
    allowed_to_create: list[AccessRule] | None = None


class UnprotectTag(ToolInput):
    action: Literal["unprotect_tag"]
    project_id: ProjectId
    name: RefName


ManageRef = TypeAdapter(
    Annotated[
        Union[
            CreateRefBranch,
            DeleteBranch,
            ProtectBranch,
            UnprotectBranch,
            UpdateBranchProtection,
            CreateTag,
            DeleteTag,
            ProtectTag,
            UnprotectTag,
        ],
        Field(discriminator="action"),
    ]
)
