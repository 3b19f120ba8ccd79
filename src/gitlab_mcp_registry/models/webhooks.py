"""Input schemas for webhook tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter, model_validator

from .base import Paginated, ToolInput

HookTrigger = Literal[
    "push_events",
    "tag_push_events",
    "issues_events",
    "confidential_issues_events",
    "note_events",
    "confidential_note_events",
    "merge_requests_events",
    "job_events",
    "pipeline_events",
    "wiki_page_events",
    "deployment_events",
    "releases_events",
    "emoji_events",
    "resource_access_token_events",
]


class ProjectWebhooks(Paginated):
    scope: Literal["project"]
    projectId: str = Field(min_length=1, description="Project ID or path")


class GroupWebhooks(Paginated):
    scope: Literal["group"]
    groupId: str = Field(min_length=1, description="Group ID or path")


ListWebhooks = TypeAdapter(
    Annotated[Union[ProjectWebhooks, GroupWebhooks], Field(discriminator="scope")]
)


class _HookTarget(ToolInput):
    scope: Literal["project", "group"]
    projectId: str | None = None
    groupId: str | None = None

    @model_validator(mode="after")
    def _check_target(self):
        if self.scope == "project" and not self.projectId:
            raise ValueError("projectId is required when scope is 'project'")
        if self.scope == "group" and not self.groupId:
            raise ValueError("groupId is required when scope is 'group'")
        return self


class _HookSettings(_HookTarget):
    name: str | None = None
    description: str | None = None
    token: str | None = Field(None, description="Secret token sent in X-Gitlab-Token")
    enable_ssl_verification: bool | None = None
    push_events: bool | None = None
    push_events_branch_filter: str | None = None
    tag_push_events: bool | None = None
    issues_events: bool | None = None
    confidential_issues_events: bool | None = None
    note_events: bool | None = None
    confidential_note_events: bool | None = None
    merge_requests_events: bool | None = None
    job_events: bool | None = None
    pipeline_events: bool | None = None
    wiki_page_events: bool | None = None
    deployment_events: bool | None = None
    releases_events: bool | None = None
    emoji_events: bool | None = None
    subgroup_events: bool | None = None


class CreateWebhook(_HookSettings):
    action: Literal["create"]
    url: str = Field(min_length=1)


class ReadWebhook(_HookTarget):
    action: Literal["read"]
    hookId: int = Field(ge=1)


class UpdateWebhook(_HookSettings):
    action: Literal["update"]
    hookId: int = Field(ge=1)
    url: str | None = None


class DeleteWebhook(_HookTarget):
    action: Literal["delete"]
    hookId: int = Field(ge=1)


class WebhookTestDelivery(_HookTarget):
    action: Literal["test"]
    hookId: int = Field(ge=1)
    trigger: HookTrigger


ManageWebhook = TypeAdapter(
    Annotated[
        Union[CreateWebhook, ReadWebhook, UpdateWebhook, DeleteWebhook, WebhookTestDelivery],
        Field(discriminator="action"),
    ]
)
