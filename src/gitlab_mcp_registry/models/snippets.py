"""Input schemas for snippet tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, model_validator

from .base import Paginated, ToolInput

_VISIBILITY_ALIASES = {"priv": "private", "intern": "internal", "pub": "public"}


def _normalize_visibility(value: object) -> object:
    if isinstance(value, str):
        value = value.strip().lower()
        return _VISIBILITY_ALIASES.get(value, value)
    return value


Visibility = Annotated[
    Literal["private", "internal", "public"], BeforeValidator(_normalize_visibility)
]
ProjectRef = Annotated[
    str | None, Field(description="Project ID or path for a project snippet; omit for a personal one")
]


class SnippetFile(BaseModel):
    file_path: str = Field(min_length=1, description="Path of the file inside the snippet")
    content: str | None = None
    action: Literal["create", "update", "delete", "move"] | None = Field(
        None, description="File change, update only"
    )
    previous_path: str | None = Field(None, description="Original path for 'move'")


class ListSnippets(Paginated):
    action: Literal["list"]
    scope: Literal["personal", "project", "public"] = Field(
        description="'personal' for your snippets, 'project' for a project's, 'public' for all public ones"
    )
    project_id: ProjectRef = None
    visibility: Visibility | None = None
    created_after: str | None = Field(None, description="ISO 8601 date")
    created_before: str | None = Field(None, description="ISO 8601 date")

    @model_validator(mode="after")
    def _project_scope_needs_project(self) -> ListSnippets:
        if self.scope == "project" and not self.project_id:
            raise ValueError("project_id is required when scope is 'project'")
        return self


class GetSnippet(ToolInput):
    action: Literal["get"]
    id: int = Field(gt=0, description="Snippet ID")
    project_id: ProjectRef = None
    raw: bool = Field(False, description="Return the raw file content instead of metadata")


BrowseSnippets = TypeAdapter(
    Annotated[Union[ListSnippets, GetSnippet], Field(discriminator="action")]
)


class CreateSnippet(ToolInput):
    action: Literal["create"]
    project_id: ProjectRef = None
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    visibility: Visibility = "private"
    files: list[SnippetFile] = Field(min_length=1)


class UpdateSnippet(ToolInput):
    action: Literal["update"]
    id: int = Field(gt=0)
    project_id: ProjectRef = None
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    visibility: Visibility | None = None
    files: list[SnippetFile] | None = None


class DeleteSnippet(ToolInput):
    action: Literal["delete"]
    id: int = Field(gt=0)
    project_id: ProjectRef = None


ManageSnippet = TypeAdapter(
    Annotated[Union[CreateSnippet, UpdateSnippet, DeleteSnippet], Field(discriminator="action")]
)
