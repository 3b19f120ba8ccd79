"""Input schemas for release tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .base import Paginated, ToolInput
from .core import ProjectId

TagName = Annotated[str, Field(min_length=1, description="Tag the release is attached to")]
LinkType = Literal["other", "runbook", "image", "package"]


class ListReleases(Paginated):
    action: Literal["list"]
    project_id: ProjectId
    order_by: Literal["released_at", "created_at"] | None = None
    sort: Literal["asc", "desc"] | None = None
    include_html_description: bool | None = None


class GetRelease(ToolInput):
    action: Literal["get"]
    project_id: ProjectId
    tag_name: TagName
    include_html_description: bool | None = None


class ReleaseAssets(Paginated):
    action: Literal["assets"]
    project_id: ProjectId
    tag_name: TagName


BrowseReleases = TypeAdapter(
    Annotated[Union[ListReleases, GetRelease, ReleaseAssets], Field(discriminator="action")]
)


class AssetLink(BaseModel):
    name: str
    url: str
    direct_asset_path: str | None = None
    link_type: LinkType | None = None


class ReleaseAssetsInput(BaseModel):
    links: list[AssetLink] = []


class CreateRelease(ToolInput):
    action: Literal["create"]
    project_id: ProjectId
    tag_name: TagName
    name: str | None = None
    description: str | None = Field(None, description="Release notes (Markdown)")
    ref: str | None = Field(None, description="Ref to create the tag from if it does not exist")
    tag_message: str | None = None
    milestones: list[str] | None = None
    released_at: str | None = Field(None, description="ISO 8601 timestamp")
    assets: ReleaseAssetsInput | None = None


class UpdateRelease(ToolInput):
    action: Literal["update"]
    project_id: ProjectId
    tag_name: TagName
    name: str | None = None
    description: str | None = None
    milestones: list[str] | None = None
    released_at: str | None = None


class DeleteRelease(ToolInput):
    action: Literal["delete"]
    project_id: ProjectId
    tag_name: TagName


class CreateReleaseLink(ToolInput):
    action: Literal["create_link"]
    project_id: ProjectId
    tag_name: TagName
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    direct_asset_path: str | None = None
    link_type: LinkType | None = None


class DeleteReleaseLink(ToolInput):
    action: Literal["delete_link"]
    project_id: ProjectId
    tag_name: TagName
    link_id: str = Field(min_length=1)


ManageRelease = TypeAdapter(
    Annotated[
        Union[CreateRelease, UpdateRelease, DeleteRelease, CreateReleaseLink, DeleteReleaseLink],
        Field(discriminator="action"),
    ]
)
