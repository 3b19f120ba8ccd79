"""Core tools: projects, namespaces, commits, events, users, groups and todos."""

from __future__ import annotations

import base64
import re
from typing import Any

from ..exceptions import GitLabApiError
from ..models import core as m
from ..tiers import Tier
from ..utils import clean_gids, compact, encode_id, encode_segment, to_query
from .base import ActionSpec, EntityRegistry, ToolDefinition

_TOPIC = re.compile(r"topic:(\w+)")


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9-]", "-", name.lower())
    return re.sub(r"-+", "-", slug).strip("-")


class CoreRegistry(EntityRegistry):
    name = "core"
    read_only_tools = (
        "browse_projects",
        "browse_namespaces",
        "browse_commits",
        "browse_events",
        "get_users",
        "list_project_members",
        "list_group_iterations",
        "download_attachment",
        "list_todos",
    )

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_projects",
                "PROJECT DISCOVERY: find, browse or inspect GitLab projects. 'search' finds "
                "projects by name or topic, 'list' browses accessible projects (or those of a "
                "group), 'get' returns full details of a known project.",
                m.BrowseProjects,
                self.browse_projects,
                actions=[
                    ActionSpec("search", mutates=False),
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                ],
            ),
            self.define(
                "browse_namespaces",
                "NAMESPACE OPERATIONS: 'list' discovers groups and user namespaces, 'get' "
                "returns details, 'verify' checks whether a path exists.",
                m.BrowseNamespaces,
                self.browse_namespaces,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                    ActionSpec("verify", mutates=False),
                ],
            ),
            self.define(
                "browse_commits",
                "COMMIT HISTORY: 'list' browses commits with date, author or path filters, "
                "'get' returns commit metadata, 'diff' returns the code changes.",
                m.BrowseCommits,
                self.browse_commits,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                    ActionSpec("diff", mutates=False),
                ],
            ),
            self.define(
                "browse_events",
                "ACTIVITY FEED: 'user' shows your recent activity, 'project' the activity of "
                "one project. Filter by date range or event action.",
                m.BrowseEvents,
                self.browse_events,
                actions=[
                    ActionSpec("user", mutates=False),
                    ActionSpec("project", mutates=False),
                ],
            ),
            self.define(
                "manage_repository",
                "REPOSITORY MANAGEMENT: 'create' starts a new project, 'fork' copies an "
                "existing one into another namespace.",
                m.ManageRepository,
                self.manage_repository,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("fork", mutates=True),
                ],
            ),
            self.define(
                "get_users",
                "FIND USERS: search GitLab users by username, public email or name.",
                m.GetUsers,
                self.get_users,
            ),
            self.define(
                "list_project_members",
                "TEAM MEMBERS: list project members with access levels "
                "(10=Guest, 20=Reporter, 30=Developer, 40=Maintainer, 50=Owner).",
                m.ListProjectMembers,
                self.list_project_members,
            ),
            self.define(
                "list_group_iterations",
                "SPRINTS: list group iterations filtered by state. Requires GitLab Premium.",
                m.ListGroupIterations,
                self.list_group_iterations,
                tier=Tier.PREMIUM,
            ),
            self.define(
                "download_attachment",
                "DOWNLOAD: retrieve an issue or merge request attachment as base64.",
                m.DownloadAttachment,
                self.download_attachment,
            ),
            self.define(
                "create_branch",
                "NEW BRANCH: create a branch from a branch, tag or commit SHA.",
                m.CreateBranch,
                self.create_branch,
            ),
            self.define(
                "create_group",
                "CREATE GROUP: create a group, or a subgroup when parent_id is set.",
                m.CreateGroup,
                self.create_group,
            ),
            self.define(
                "list_todos",
                "TASK QUEUE: list your todos, filtered by state, action or target type.",
                m.ListTodos,
                self.list_todos,
            ),
            self.define(
                "manage_todos",
                "TODO ACTIONS: 'mark_done' completes one todo, 'mark_all_done' clears the "
                "queue, 'restore' returns a done todo to pending.",
                m.ManageTodos,
                self.manage_todos,
                actions=[
                    ActionSpec("mark_done", mutates=True),
                    ActionSpec("mark_all_done", mutates=True),
                    ActionSpec("restore", mutates=True),
                ],
            ),
        ]

    # ── Projects ──────────────────────────────────────────────────

    async def browse_projects(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseProjects.validate_python(args)
        client = self.client

        if isinstance(inp, m.SearchProjects):
            params: dict[str, Any] = {}
            if inp.q:
                terms = inp.q
                topics = _TOPIC.findall(terms)
                if topics:
                    params["topic"] = ",".join(topics)
                    terms = _TOPIC.sub("", terms).strip()
                if terms:
                    params["search"] = terms
            params.update(
                to_query(
                    {
                        "with_programming_language": inp.with_programming_language,
                        "visibility": inp.visibility,
                        "order_by": inp.order_by,
                        "sort": inp.sort,
                        "per_page": inp.per_page,
                        "page": inp.page,
                    }
                )
            )
            params["active"] = True
            return clean_gids(await client.get("projects", params))

        if isinstance(inp, m.ListProjects):
            params = {
                "order_by": "created_at",
                "sort": "desc",
                "simple": True,
                "per_page": 20,
                **to_query(inp.to_params("group_id")),
            }
            if inp.group_id:
                path = f"groups/{encode_id(inp.group_id)}/projects"
            else:
                params["active"] = True
                path = "projects"
            return clean_gids(await client.get(path, params))

        params = {}
        if inp.statistics:
            params["statistics"] = True
        if inp.license:
            params["license"] = True
        return clean_gids(await client.get(f"projects/{encode_id(inp.project_id)}", params))

    async def browse_namespaces(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseNamespaces.validate_python(args)
        client = self.client

        if isinstance(inp, m.ListNamespaces):
            return clean_gids(await client.get("namespaces", to_query(inp.to_params())))

        path = f"namespaces/{encode_id(inp.namespace_id)}"
        if isinstance(inp, m.GetNamespace):
            return clean_gids(await client.get(path))

        found, status, data = await client.exists(path)
        return {
            "exists": found,
            "status": status,
            "namespace": inp.namespace_id,
            "data": clean_gids(data) if found else None,
        }

    async def browse_commits(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseCommits.validate_python(args)
        base = f"projects/{encode_id(inp.project_id)}/repository/commits"

        if isinstance(inp, m.ListCommits):
            return await self.client.get(base, to_query(inp.to_params("project_id")))
        if isinstance(inp, m.GetCommit):
            params = {"stats": True} if inp.stats else None
            return await self.client.get(f"{base}/{encode_segment(inp.sha)}", params)
        params = {"unidiff": True} if inp.unidiff else None
        return await self.client.get(f"{base}/{encode_segment(inp.sha)}/diff", params)

    async def browse_events(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseEvents.validate_python(args)
        params = to_query(inp.to_params("project_id", "event_action"))
        if inp.event_action:
            params["action"] = inp.event_action

        if isinstance(inp, m.ProjectEvents):
            return await self.client.get(f"projects/{encode_id(inp.project_id)}/events", params)
        return await self.client.get("events", params)

    async def manage_repository(self, args: dict[str, Any]) -> Any:
        inp = m.ManageRepository.validate_python(args)
        self.ensure_allowed("manage_repository", inp.action)
        client = self.client

        if isinstance(inp, m.ForkRepository):
            body = compact(
                {
                    "namespace": inp.namespace,
                    "namespace_path": inp.namespace_path,
                    "name": inp.fork_name,
                    "path": inp.fork_path,
                }
            )
            return await client.post(f"projects/{encode_id(inp.project_id)}/fork", body)

        namespace_id = None
        namespace_path = "current-user"
        if inp.namespace:
            found, _, resolved = await client.exists(f"namespaces/{encode_id(inp.namespace)}")
            if not found:
                raise GitLabApiError(
                    404, "Not Found", f"Namespace '{inp.namespace}' not found or not accessible"
                )
            namespace_id = resolved["id"]
            namespace_path = resolved.get("full_path", inp.namespace)

        project_path = f"{namespace_path}/{inp.name}"
        found, _, existing = await client.exists(f"projects/{encode_id(project_path)}")
        if found:
            raise GitLabApiError(
                409,
                "Conflict",
                f"Project '{project_path}' already exists (ID: {existing.get('id')}).",
            )

        path = _slugify(inp.name)
        body = {"name": inp.name, "path": path, **inp.to_params("name", "namespace")}
        if namespace_id is not None:
            body["namespace_id"] = namespace_id
        project = await client.post("projects", body)
        return {
            **project,
            "validation": {
                "namespace_resolved": (
                    f"{inp.namespace} -> {namespace_id}" if inp.namespace else "current-user"
                ),
                "generated_path": path,
            },
        }

    # ── Users, members, groups ───────────────────────────────────

    async def get_users(self, args: dict[str, Any]) -> Any:
        inp = m.GetUsers.model_validate(args)
        return clean_gids(await self.client.get("users", to_query(inp.to_params())))

    async def list_project_members(self, args: dict[str, Any]) -> Any:
        inp = m.ListProjectMembers.model_validate(args)
        path = f"projects/{encode_id(inp.project_id)}/members"
        return clean_gids(await self.client.get(path, to_query(inp.to_params("project_id"))))

    async def list_group_iterations(self, args: dict[str, Any]) -> Any:
        inp = m.ListGroupIterations.model_validate(args)
        path = f"groups/{encode_id(inp.group_id)}/iterations"
        return await self.client.get(path, to_query(inp.to_params("group_id")))

    async def download_attachment(self, args: dict[str, Any]) -> Any:
        inp = m.DownloadAttachment.model_validate(args)
        path = (
            f"projects/{encode_id(inp.project_id)}/uploads/"
            f"{encode_segment(inp.secret)}/{encode_segment(inp.filename)}"
        )
        content, content_type = await self.client.download(path)
        return {
            "filename": inp.filename,
            "content": base64.b64encode(content).decode("ascii"),
            "contentType": content_type,
        }

    async def create_branch(self, args: dict[str, Any]) -> Any:
        inp = m.CreateBranch.model_validate(args)
        path = f"projects/{encode_id(inp.project_id)}/repository/branches"
        return await self.client.post(path, {"branch": inp.branch, "ref": inp.ref})

    async def create_group(self, args: dict[str, Any]) -> Any:
        inp = m.CreateGroup.model_validate(args)
        return await self.client.post("groups", inp.to_params())

    # ── Todos ─────────────────────────────────────────────────────

    async def list_todos(self, args: dict[str, Any]) -> Any:
        inp = m.ListTodos.model_validate(args)
        params = to_query(inp.model_dump(mode="json", exclude_none=True))
        return clean_gids(await self.client.get("todos", params))

    async def manage_todos(self, args: dict[str, Any]) -> Any:
        inp = m.ManageTodos.validate_python(args)
        self.ensure_allowed("manage_todos", inp.action)

        if isinstance(inp, m.MarkAllTodosDone):
            await self.client.post("todos/mark_all_as_done")
            return {"success": True, "message": "All todos marked as done"}
        if isinstance(inp, m.MarkTodoDone):
            return clean_gids(await self.client.post(f"todos/{inp.id}/mark_as_done"))
        return clean_gids(await self.client.post(f"todos/{inp.id}/mark_as_pending"))
