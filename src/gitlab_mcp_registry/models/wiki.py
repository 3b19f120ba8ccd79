"""Input schemas for wiki tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from .base import Paginated, ToolInput

Namespace = Annotated[str, Field(min_length=1, description="Project or group path")]
Slug = Annotated[str, Field(min_length=1, description="Wiki page slug")]
Format = Literal["markdown", "rdoc", "asciidoc", "org"]


class ListWikiPages(Paginated):
    action: Literal["list"]
    namespace: Namespace
    with_content: bool | None = Field(None, description="Include page content")


class GetWikiPage(ToolInput):
    action: Literal["get"]
    namespace: Namespace
    slug: Slug
    version: str | None = Field(None, description="Page version SHA")
    render_html: bool | None = None


BrowseWiki = TypeAdapter(
    Annotated[Union[ListWikiPages, GetWikiPage], Field(discriminator="action")]
)


class CreateWikiPage(ToolInput):
    action: Literal["create"]
    namespace: Namespace
    title: str = Field(min_length=1)
    content: str
    format: Format | None = None


class UpdateWikiPage(ToolInput):
    action: Literal["update"]
    namespace: Namespace
    slug: Slug
    title: str | None = None
    content: str | None = None
    format: Format | None = None


class DeleteWikiPage(ToolInput):
    action: Literal["delete"]
    namespace: Namespace
    slug: Slug


ManageWiki = TypeAdapter(
    Annotated[Union[CreateWikiPage, UpdateWikiPage, DeleteWikiPage], Field(discriminator="action")]
)
