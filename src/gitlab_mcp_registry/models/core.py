"""Input schemas for project, namespace, commit, event, user and todo tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from .base import Paginated, ToolInput

Visibility = Literal["private", "internal", "public"]
SortOrder = Literal["asc", "desc"]

ProjectId = Annotated[
    str, Field(min_length=1, description="Project ID or URL-encoded path (e.g. 'group/project')")
]


# ── browse_projects ───────────────────────────────────────────


class SearchProjects(Paginated):
    action: Literal["search"]
    q: str | None = Field(
        None, description="Search terms. 'topic:name' filters by topic (repeatable)"
    )
    with_programming_language: str | None = None
    visibility: Visibility | None = None
    order_by: Literal["id", "name", "path", "created_at", "updated_at", "last_activity_at"] | None = None
    sort: SortOrder | None = None


class ListProjects(Paginated):
    action: Literal["list"]
    group_id: str | None = Field(None, description="List projects of this group instead")
    visibility: Visibility | None = None
    archived: bool | None = None
    owned: bool | None = None
    starred: bool | None = None
    membership: bool | None = None
    search: str | None = None
    simple: bool | None = None
    order_by: str | None = None
    sort: SortOrder | None = None
    include_subgroups: bool | None = None
    with_shared: bool | None = None
    with_programming_language: str | None = None


class GetProject(ToolInput):
    action: Literal["get"]
    project_id: ProjectId
    statistics: bool | None = Field(None, description="Include storage statistics")
    license: bool | None = Field(None, description="Include license information")


BrowseProjects = TypeAdapter(
    Annotated[Union[SearchProjects, ListProjects, GetProject], Field(discriminator="action")]
)


# ── browse_namespaces ─────────────────────────────────────────


class ListNamespaces(Paginated):
    action: Literal["list"]
    search: str | None = None
    owned_only: bool | None = None
    top_level_only: bool | None = None
    with_statistics: bool | None = None
    min_access_level: int | None = None


class GetNamespace(ToolInput):
    action: Literal["get"]
    namespace_id: str = Field(min_length=1, description="Namespace ID or full path")


class VerifyNamespace(ToolInput):
    action: Literal["verify"]
    namespace_id: str = Field(min_length=1, description="Namespace path to check")


BrowseNamespaces = TypeAdapter(
    Annotated[Union[ListNamespaces, GetNamespace, VerifyNamespace], Field(discriminator="action")]
)


# ── browse_commits ────────────────────────────────────────────


class ListCommits(Paginated):
    action: Literal["list"]
    project_id: ProjectId
    ref_name: str | None = None
    since: str | None = Field(None, description="ISO 8601 date")
    until: str | None = Field(None, description="ISO 8601 date")
    path: str | None = None
    author: str | None = None
    all: bool | None = None
    with_stats: bool | None = None
    first_parent: bool | None = None
    order: Literal["default", "topo"] | None = None
    trailers: bool | None = None


class GetCommit(ToolInput):
    action: Literal["get"]
    project_id: ProjectId
    sha: str = Field(min_length=1, description="Commit SHA, branch or tag")
    stats: bool | None = None


class GetCommitDiff(ToolInput):
    action: Literal["diff"]
    project_id: ProjectId
    sha: str = Field(min_length=1, description="Commit SHA, branch or tag")
    unidiff: bool | None = None


BrowseCommits = TypeAdapter(
    Annotated[Union[ListCommits, GetCommit, GetCommitDiff], Field(discriminator="action")]
)


# ── browse_events ─────────────────────────────────────────────


class _EventFilters(Paginated):
    target_type: str | None = None
    event_action: str | None = Field(None, description="pushed, commented, merged, ...")
    before: str | None = Field(None, description="YYYY-MM-DD")
    after: str | None = Field(None, description="YYYY-MM-DD")
    sort: SortOrder | None = None


class UserEvents(_EventFilters):
    action: Literal["user"]


class ProjectEvents(_EventFilters):
    action: Literal["project"]
    project_id: ProjectId


BrowseEvents = TypeAdapter(
    Annotated[Union[UserEvents, ProjectEvents], Field(discriminator="action")]
)


# ── manage_repository ─────────────────────────────────────────


class CreateRepository(ToolInput):
    action: Literal["create"]
    name: str = Field(min_length=1, description="Project name")
    namespace: str | None = Field(None, description="Target namespace path (default: current user)")
    description: str | None = None
    visibility: Visibility | None = None
    initialize_with_readme: bool | None = None
    issues_enabled: bool | None = None
    merge_requests_enabled: bool | None = None
    jobs_enabled: bool | None = None
    wiki_enabled: bool | None = None
    snippets_enabled: bool | None = None
    lfs_enabled: bool | None = None
    request_access_enabled: bool | None = None
    only_allow_merge_if_pipeline_succeeds: bool | None = None
    only_allow_merge_if_all_discussions_are_resolved: bool | None = None


class ForkRepository(ToolInput):
    action: Literal["fork"]
    project_id: ProjectId
    namespace: str | None = None
    namespace_path: str | None = None
    fork_name: str | None = None
    fork_path: str | None = None


ManageRepository = TypeAdapter(
    Annotated[Union[CreateRepository, ForkRepository], Field(discriminator="action")]
)


# ── single-purpose tools ──────────────────────────────────────


class GetUsers(Paginated):
    username: str | None = None
    public_email: str | None = None
    search: str | None = Field(None, description="Name, username or email fragment")
    active: bool | None = None
    blocked: bool | None = None
    humans: bool | None = None


class ListProjectMembers(Paginated):
    project_id: ProjectId
    query: str | None = None


class ListGroupIterations(Paginated):
    group_id: str = Field(min_length=1, description="Group ID or path")
    state: Literal["opened", "upcoming", "current", "closed", "all"] | None = None
    search: str | None = None
    include_ancestors: bool | None = None


class DownloadAttachment(ToolInput):
    project_id: ProjectId
    secret: str = Field(min_length=1, description="32-character secret from the upload URL")
    filename: str = Field(min_length=1)


class CreateBranch(ToolInput):
    project_id: ProjectId
    branch: str = Field(min_length=1, description="New branch name")
    ref: str = Field(min_length=1, description="Source branch, tag or commit SHA")


class CreateGroup(ToolInput):
    name: str = Field(min_length=1)
    path: str = Field(min_length=1)
    description: str | None = None
    visibility: Visibility | None = None
    parent_id: int | None = Field(None, description="Parent group ID for subgroups")
    lfs_enabled: bool | None = None
    request_access_enabled: bool | None = None
    default_branch_protection: int | None = Field(None, ge=0, le=4)
    avatar: str | None = None


class ListTodos(Paginated):
    action: (
        Literal[
            "assigned",
            "mentioned",
            "build_failed",
            "marked",
            "approval_required",
            "directly_addressed",
            "review_requested",
        ]
        | None
    ) = Field(None, description="Filter by the action that created the todo")
    author_id: int | None = None
    project_id: int | None = None
    group_id: int | None = None
    state: Literal["pending", "done"] | None = None
    type: Literal["Issue", "MergeRequest", "DesignManagement::Design", "AlertManagement::Alert"] | None = None


class MarkTodoDone(ToolInput):
    action: Literal["mark_done"]
    id: int = Field(ge=1, description="Todo ID")


class MarkAllTodosDone(ToolInput):
    action: Literal["mark_all_done"]


class RestoreTodo(ToolInput):
    action: Literal["restore"]
    id: int = Field(ge=1, description="Todo ID")


ManageTodos = TypeAdapter(
    Annotated[Union[MarkTodoDone, MarkAllTodosDone, RestoreTodo], Field(discriminator="action")]
)
