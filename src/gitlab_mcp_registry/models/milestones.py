"""Input schemas for milestone tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from .base import Paginated, ToolInput

Namespace = Annotated[
    str, Field(min_length=1, description="Project or group path (e.g. 'group' or 'group/project')")
]
MilestoneId = Annotated[str, Field(min_length=1, description="Milestone ID")]


class ListMilestones(Paginated):
    action: Literal["list"]
    namespace: Namespace
    iids: list[int] | None = None
    state: Literal["active", "closed"] | None = None
    title: str | None = None
    search: str | None = None
    include_ancestors: bool | None = None
    updated_before: str | None = None
    updated_after: str | None = None


class GetMilestone(ToolInput):
    action: Literal["get"]
    namespace: Namespace
    milestone_id: MilestoneId


class MilestoneIssues(Paginated):
    action: Literal["issues"]
    namespace: Namespace
    milestone_id: MilestoneId


class MilestoneMergeRequests(Paginated):
    action: Literal["merge_requests"]
    namespace: Namespace
    milestone_id: MilestoneId


class MilestoneBurndown(Paginated):
    action: Literal["burndown"]
    namespace: Namespace
    milestone_id: MilestoneId


BrowseMilestones = TypeAdapter(
    Annotated[
        Union[ListMilestones, GetMilestone, MilestoneIssues, MilestoneMergeRequests, MilestoneBurndown],
        Field(discriminator="action"),
    ]
)


class CreateMilestone(ToolInput):
    action: Literal["create"]
    namespace: Namespace
    title: str = Field(min_length=1)
    description: str | None = None
    due_date: str | None = Field(None, description="YYYY-MM-DD")
    start_date: str | None = Field(None, description="YYYY-MM-DD")


class UpdateMilestone(ToolInput):
    action: Literal["update"]
    namespace: Namespace
    milestone_id: MilestoneId
    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    start_date: str | None = None
    state_event: Literal["close", "activate"] | None = None


class DeleteMilestone(ToolInput):
    action: Literal["delete"]
    namespace: Namespace
    milestone_id: MilestoneId


class PromoteMilestone(ToolInput):
    action: Literal["promote"]
    namespace: Namespace
    milestone_id: MilestoneId


ManageMilestone = TypeAdapter(
    Annotated[
        Union[CreateMilestone, UpdateMilestone, DeleteMilestone, PromoteMilestone],
        Field(discriminator="action"),
    ]
)
