"""Input schemas for label tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from .base import ToolInput

Namespace = Annotated[str, Field(min_length=1, description="Project or group path")]
LabelId = Annotated[str, Field(min_length=1, description="Label ID or title")]
Color = Annotated[
    str, Field(description="6-digit hex color with leading '#' (e.g. #FFAABB) or a CSS color name")
]


class ListLabels(ToolInput):
    action: Literal["list"]
    namespace: Namespace
    search: str | None = Field(None, description="Keyword to filter labels by")
    with_counts: bool | None = Field(None, description="Include issue and merge request counts")
    include_ancestor_groups: bool | None = None


class GetLabel(ToolInput):
    action: Literal["get"]
    namespace: Namespace
    label_id: LabelId
    include_ancestor_groups: bool | None = None


BrowseLabels = TypeAdapter(Annotated[Union[ListLabels, GetLabel], Field(discriminator="action")])


class CreateLabel(ToolInput):
    action: Literal["create"]
    namespace: Namespace
    name: str = Field(min_length=1)
    color: Color
    description: str | None = None
    priority: int | None = Field(None, ge=0)


class UpdateLabel(ToolInput):
    action: Literal["update"]
    namespace: Namespace
    label_id: LabelId
    new_name: str | None = None
    color: Color | None = None
    description: str | None = None
    priority: int | None = Field(None, ge=0)


class DeleteLabel(ToolInput):
    action: Literal["delete"]
    namespace: Namespace
    label_id: LabelId


ManageLabel = TypeAdapter(
    Annotated[Union[CreateLabel, UpdateLabel, DeleteLabel], Field(discriminator="action")]
)
