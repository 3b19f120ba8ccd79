"""Input schemas for project integration tools."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from .base import Paginated, ToolInput

Slug = Annotated[
    str,
    Field(
        min_length=1,
        pattern=r"^[a-z0-9-]+$",
        description="Integration slug, e.g. 'slack', 'jira', 'microsoft-teams'",
    ),
]


class ListIntegrations(Paginated):
    project_id: str = Field(min_length=1, description="Project ID or path")


class GetIntegration(ToolInput):
    action: Literal["get"]
    project_id: str = Field(min_length=1)
    integration: Slug


class UpdateIntegration(ToolInput):
    model_config = {"extra": "allow", "populate_by_name": True}

    action: Literal["update"]
    project_id: str = Field(min_length=1)
    integration: Slug
    active: bool | None = None
    config: dict[str, Any] | None = Field(
        None, description="Integration specific settings, merged into the request body"
    )


class DisableIntegration(ToolInput):
    action: Literal["disable"]
    project_id: str = Field(min_length=1)
    integration: Slug


ManageIntegration = TypeAdapter(
    Annotated[
        Union[GetIntegration, UpdateIntegration, DisableIntegration],
        Field(discriminator="action"),
    ]
)
