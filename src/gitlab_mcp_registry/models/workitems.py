"""Input schemas for work item tools (GraphQL)."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from .base import ToolInput

WorkItemType = Literal[
    "EPIC",
    "ISSUE",
    "TASK",
    "INCIDENT",
    "TEST_CASE",
    "REQUIREMENT",
    "OBJECTIVE",
    "KEY_RESULT",
]
WorkItemState = Literal["OPEN", "CLOSED"]


class ListWorkItems(ToolInput):
    action: Literal["list"]
    namespace: str = Field(
        min_length=1,
        description="Group path (returns epics) or project path (returns issues/tasks)",
    )
    types: list[WorkItemType] | None = Field(None, description="Filter by work item types")
    state: list[WorkItemState] = Field(
        default_factory=lambda: ["OPEN"], description="States to keep (default: OPEN)"
    )
    first: int = Field(20, ge=1, le=100, description="Page size")
    after: str | None = Field(None, description="Cursor from a previous endCursor")
    simple: bool = Field(True, description="Return a trimmed representation")


class GetWorkItem(ToolInput):
    action: Literal["get"]
    id: str = Field(min_length=1, description="Work item ID (numeric or global ID)")


BrowseWorkItems = TypeAdapter(
    Annotated[Union[ListWorkItems, GetWorkItem], Field(discriminator="action")]
)


class CreateWorkItem(ToolInput):
    action: Literal["create"]
    namespace: str = Field(
        min_length=1, description="Group path for epics, project path for issues/tasks"
    )
    title: str = Field(min_length=1)
    workItemType: str = Field(min_length=1, description="Type name, e.g. ISSUE, TASK, EPIC")
    description: str | None = None
    assigneeIds: list[str] | None = None
    labelIds: list[str] | None = None
    milestoneId: str | None = None


class UpdateWorkItem(ToolInput):
    action: Literal["update"]
    id: str = Field(min_length=1)
    title: str | None = None
    description: str | None = None
    state: Literal["CLOSE", "REOPEN"] | None = Field(None, description="State event")
    assigneeIds: list[str] | None = None
    labelIds: list[str] | None = None
    milestoneId: str | None = None


class DeleteWorkItem(ToolInput):
    action: Literal["delete"]
    id: str = Field(min_length=1)


ManageWorkItem = TypeAdapter(
    Annotated[Union[CreateWorkItem, UpdateWorkItem, DeleteWorkItem], Field(discriminator="action")]
)
