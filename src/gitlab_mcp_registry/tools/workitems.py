"""Work item tools (epics, issues, tasks) over the GraphQL API."""

from __future__ import annotations

import logging
import re
from typing import Any

from ..exceptions import GitLabGraphQLError, GitLabNotFoundError
from ..models import workitems as m
from ..utils import clean_gids, to_gid, to_gids
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 200

_WIDGETS = """
  widgets {
    type
    ... on WorkItemWidgetAssignees {
      assignees { nodes { id username name webUrl avatarUrl } }
    }
    ... on WorkItemWidgetLabels {
      labels { nodes { id title color textColor description } }
    }
    ... on WorkItemWidgetMilestone {
      milestone { id title description state startDate dueDate }
    }
    ... on WorkItemWidgetHierarchy {
      hasChildren
      parent { id iid title workItemType { id name } }
    }
  }
"""

_FIELDS = (
    """
  id
  iid
  title
  description
  state
  workItemType { id name }
  createdAt
  updatedAt
  closedAt
  webUrl
"""
    + _WIDGETS
)

NAMESPACE_WORK_ITEMS = (
    """
query GetNamespaceWorkItems($namespacePath: ID!, $types: [IssueType!], $first: Int, $after: String) {
  namespace(fullPath: $namespacePath) {
    __typename
    fullPath
    workItems(types: $types, first: $first, after: $after) {
      nodes {"""
    + _FIELDS
    + """}
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""
)

WORK_ITEM = (
    """
query GetWorkItem($id: WorkItemID!) {
  workItem(id: $id) {"""
    + _FIELDS
    + """}
}
"""
)

WORK_ITEM_TYPES = """
query GetWorkItemTypes($namespacePath: ID!) {
  namespace(fullPath: $namespacePath) {
    workItemTypes { nodes { id name } }
  }
}
"""

CREATE_WORK_ITEM = (
    """
mutation CreateWorkItem($input: WorkItemCreateInput!) {
  workItemCreate(input: $input) {
    workItem {"""
    + _FIELDS
    + """}
    errors
  }
}
"""
)

UPDATE_WORK_ITEM = (
    """
mutation UpdateWorkItem($input: WorkItemUpdateInput!) {
  workItemUpdate(input: $input) {
    workItem {"""
    + _FIELDS
    + """}
    errors
  }
}
"""
)

DELETE_WORK_ITEM = """
mutation DeleteWorkItem($id: WorkItemID!) {
  workItemDelete(input: { id: $id }) {
    errors
  }
}
"""


def _type_key(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip()).upper()


def _nodes(value: dict[str, Any] | None) -> list[dict[str, Any]]:
    return (value or {}).get("nodes") or []


def simplify_widget(widget: dict[str, Any]) -> dict[str, Any] | None:
    """Reduce a widget to its essential fields, or ``None`` if it carries nothing useful."""
    kind = widget.get("type")
    if kind == "ASSIGNEES":
        people = _nodes(widget.get("assignees"))
        if people:
            return {
                "type": kind,
                "assignees": [
                    {"id": p.get("id"), "username": p.get("username"), "name": p.get("name")}
                    for p in people
                ],
            }
    elif kind == "LABELS":
        labels = _nodes(widget.get("labels"))
        if labels:
            return {
                "type": kind,
                "labels": [
                    {"id": lb.get("id"), "title": lb.get("title"), "color": lb.get("color")}
                    for lb in labels
                ],
            }
    elif kind == "MILESTONE":
        milestone = widget.get("milestone")
        if milestone:
            return {
                "type": kind,
                "milestone": {
                    "id": milestone.get("id"),
                    "title": milestone.get("title"),
                    "state": milestone.get("state"),
                },
            }
    elif kind == "HIERARCHY":
        parent = widget.get("parent")
        if parent or widget.get("hasChildren"):
            return {
                "type": kind,
                "parent": (
                    {
                        "id": parent.get("id"),
                        "iid": parent.get("iid"),
                        "title": parent.get("title"),
                        "workItemType": (parent.get("workItemType") or {}).get("name"),
                    }
                    if parent
                    else None
                ),
                "hasChildren": bool(widget.get("hasChildren")),
            }
    return None


def simplify_work_item(item: dict[str, Any]) -> dict[str, Any]:
    """Trimmed representation of a work item for listings."""
    item_type = item.get("workItemType")
    simple: dict[str, Any] = {
        "id": item.get("id"),
        "iid": item.get("iid"),
        "title": item.get("title"),
        "state": item.get("state"),
        "workItemType": item_type.get("name", "Unknown") if isinstance(item_type, dict) else (item_type or "Unknown"),
        "webUrl": item.get("webUrl"),
        "createdAt": item.get("createdAt"),
        "updatedAt": item.get("updatedAt"),
    }
    description = item.get("description")
    if isinstance(description, str) and description:
        if len(description) > DESCRIPTION_LIMIT:
            description = description[:DESCRIPTION_LIMIT] + "..."
        simple["description"] = description

    widgets = [w for w in map(simplify_widget, item.get("widgets") or []) if w]
    if widgets:
        simple["widgets"] = widgets
    return simple


def _check_mutation(payload: dict[str, Any] | None) -> dict[str, Any]:
    payload = payload or {}
    errors = payload.get("errors") or []
    if errors:
        raise GitLabGraphQLError(errors)
    return payload


class WorkItemRegistry(EntityRegistry):
    name = "workitems"
    gate = EnvGate("USE_WORKITEMS", True)
    read_only_tools = ("browse_work_items",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_work_items",
                "WORK ITEMS: 'list' shows work items of a namespace (groups return epics, "
                "projects return issues and tasks), 'get' retrieves one work item with all "
                "widget details.",
                m.BrowseWorkItems,
                self.browse_work_items,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                ],
            ),
            self.define(
                "manage_work_item",
                "WORK ITEM CHANGES: 'create' a work item (epics need a group namespace, "
                "issues and tasks a project), 'update' its properties or widgets, 'delete' "
                "it permanently.",
                m.ManageWorkItem,
                self.manage_work_item,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                ],
            ),
        ]

    async def browse_work_items(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseWorkItems.validate_python(args)

        if isinstance(inp, m.GetWorkItem):
            data = await self.client.graphql(WORK_ITEM, {"id": to_gid(inp.id, "WorkItem")})
            if not data.get("workItem"):
                raise GitLabNotFoundError(f'Work item with ID "{inp.id}" not found')
            return clean_gids(data["workItem"])

        data = await self.client.graphql(
            NAMESPACE_WORK_ITEMS,
            {
                "namespacePath": inp.namespace,
                "types": inp.types,
                "first": inp.first,
                "after": inp.after,
            },
        )
        namespace = data.get("namespace") or {}
        connection = namespace.get("workItems") or {}
        page_info = connection.get("pageInfo") or {}
        nodes = connection.get("nodes") or []

        # The API has no reliable state argument, so filter here
        kept = [node for node in nodes if node.get("state") in inp.state]
        logger.debug(
            "work items in %s (%s): %d fetched, %d kept",
            inp.namespace,
            namespace.get("__typename", "Unknown"),
            len(nodes),
            len(kept),
        )
        items = [clean_gids(node) for node in kept]
        if inp.simple:
            items = [simplify_work_item(item) for item in items]
        return {
            "items": items,
            "hasMore": bool(page_info.get("hasNextPage")),
            "endCursor": page_info.get("endCursor"),
        }

    async def work_item_types(self, namespace: str) -> list[dict[str, Any]]:
        data = await self.client.graphql(WORK_ITEM_TYPES, {"namespacePath": namespace})
        return _nodes((data.get("namespace") or {}).get("workItemTypes"))

    async def manage_work_item(self, args: dict[str, Any]) -> Any:
        inp = m.ManageWorkItem.validate_python(args)
        self.ensure_allowed("manage_work_item", inp.action)
        client = self.client

        if isinstance(inp, m.CreateWorkItem):
            types = await self.work_item_types(inp.namespace)
            wanted = _type_key(inp.workItemType)
            match = next((t for t in types if _type_key(t.get("name", "")) == wanted), None)
            if match is None:
                available = ", ".join(t.get("name", "") for t in types)
                raise GitLabNotFoundError(
                    f'Work item type "{inp.workItemType}" not found in namespace '
                    f'"{inp.namespace}". Available types: {available}'
                )
            create: dict[str, Any] = {
                "namespacePath": inp.namespace,
                "title": inp.title,
                "workItemTypeId": match["id"],
            }
            if inp.description is not None:
                create["description"] = inp.description
            if inp.assigneeIds:
                create["assigneesWidget"] = {"assigneeIds": to_gids(inp.assigneeIds, "User")}
            if inp.labelIds:
                create["labelsWidget"] = {"labelIds": to_gids(inp.labelIds, "Label")}
            if inp.milestoneId is not None:
                create["milestoneWidget"] = {"milestoneId": to_gid(inp.milestoneId, "Milestone")}

            data = await client.graphql(CREATE_WORK_ITEM, {"input": create})
            payload = _check_mutation(data.get("workItemCreate"))
            if not payload.get("workItem"):
                raise GitLabGraphQLError(["Work item creation failed - no work item returned"])
            return clean_gids(payload["workItem"])

        gid = to_gid(inp.id, "WorkItem")
        if isinstance(inp, m.DeleteWorkItem):
            data = await client.graphql(DELETE_WORK_ITEM, {"id": gid})
            _check_mutation(data.get("workItemDelete"))
            return {"deleted": True}

        update: dict[str, Any] = {"id": gid}
        if inp.title is not None:
            update["title"] = inp.title
        if inp.state is not None:
            update["stateEvent"] = inp.state
        if inp.description is not None:
            update["descriptionWidget"] = {"description": inp.description}
        # An empty list clears assignees
        if inp.assigneeIds is not None:
            update["assigneesWidget"] = {"assigneeIds": to_gids(inp.assigneeIds, "User")}
        if inp.labelIds is not None:
            update["labelsWidget"] = {"addLabelIds": to_gids(inp.labelIds, "Label")}
        if inp.milestoneId is not None:
            update["milestoneWidget"] = {"milestoneId": to_gid(inp.milestoneId, "Milestone")}

        data = await client.graphql(UPDATE_WORK_ITEM, {"input": update})
        payload = _check_mutation(data.get("workItemUpdate"))
        if not payload.get("workItem"):
            raise GitLabGraphQLError(["Work item update failed - no work item returned"])
        return clean_gids(payload["workItem"])
