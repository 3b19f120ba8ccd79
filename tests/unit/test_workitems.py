"""Tests for the GraphQL-backed work item tools."""

from __future__ import annotations

import json

import httpx
import pytest

from gitlab_mcp_registry.exceptions import GitLabGraphQLError, GitLabNotFoundError
from gitlab_mcp_registry.tools.workitems import simplify_work_item

GRAPHQL = "https://gitlab.example.com/api/graphql"


def _variables(call) -> dict:
    return json.loads(call.request.content)["variables"]


def _item(iid: int, state: str = "OPEN", **extra) -> dict:
    return {
        "id": f"gid://gitlab/WorkItem/{iid}",
        "iid": str(iid),
        "title": f"Item {iid}",
        "state": state,
        "workItemType": {"id": "gid://gitlab/WorkItems::Type/1", "name": "Issue"},
        "widgets": [],
        **extra,
    }


class TestBrowse:
    async def test_list_filters_state_and_simplifies(self, manager, mock_graphql):
        route = mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": {
                        "namespace": {
                            "__typename": "Project",
                            "workItems": {
                                "nodes": [_item(1), _item(2, state="CLOSED")],
                                "pageInfo": {"hasNextPage": True, "endCursor": "abc"},
                            },
                        }
                    }
                },
            )
        )
        result = await manager.dispatch(
            "browse_work_items", {"action": "list", "namespace": "group/project", "types": ["ISSUE"]}
        )
        assert [item["id"] for item in result["items"]] == ["1"]
        assert result["items"][0]["workItemType"] == "Issue"
        assert result["hasMore"] is True
        assert result["endCursor"] == "abc"
        variables = _variables(route.calls.last)
        assert variables["namespacePath"] == "group/project"
        assert variables["types"] == ["ISSUE"]
        assert variables["first"] == 20

    async def test_get_uses_global_id(self, manager, mock_graphql):
        route = mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(200, json={"data": {"workItem": _item(5)}})
        )
        result = await manager.dispatch("browse_work_items", {"action": "get", "id": "5"})
        assert result["id"] == "5"
        assert _variables(route.calls.last) == {"id": "gid://gitlab/WorkItem/5"}

    async def test_get_missing(self, manager, mock_graphql):
        mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(200, json={"data": {"workItem": None}})
        )
        with pytest.raises(GitLabNotFoundError, match='Work item with ID "404" not found'):
            await manager.dispatch("browse_work_items", {"action": "get", "id": "404"})


class TestManage:
    async def test_create_resolves_type(self, manager, mock_graphql):
        types = httpx.Response(
            200,
            json={
                "data": {
                    "namespace": {
                        "workItemTypes": {
                            "nodes": [
                                {"id": "gid://gitlab/WorkItems::Type/1", "name": "Issue"},
                                {"id": "gid://gitlab/WorkItems::Type/5", "name": "Task"},
                            ]
                        }
                    }
                }
            },
        )
        created = httpx.Response(
            200, json={"data": {"workItemCreate": {"workItem": _item(9), "errors": []}}}
        )
        route = mock_graphql.post(GRAPHQL).mock(side_effect=[types, created])

        result = await manager.dispatch(
            "manage_work_item",
            {
                "action": "create",
                "namespace": "group/project",
                "title": "Write docs",
                "workItemType": "TASK",
                "labelIds": ["3"],
            },
        )
        assert result["id"] == "9"
        create_input = _variables(route.calls.last)["input"]
        assert create_input["workItemTypeId"] == "gid://gitlab/WorkItems::Type/5"
        assert create_input["labelsWidget"] == {"labelIds": ["gid://gitlab/ProjectLabel/3"]}

    async def test_create_unknown_type(self, manager, mock_graphql):
        mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(
                200,
                json={"data": {"namespace": {"workItemTypes": {"nodes": [{"id": "1", "name": "Issue"}]}}}},
            )
        )
        with pytest.raises(GitLabNotFoundError, match="Available types: Issue"):
            await manager.dispatch(
                "manage_work_item",
                {"action": "create", "namespace": "g", "title": "x", "workItemType": "EPIC"},
            )

    async def test_update_builds_widgets(self, manager, mock_graphql):
        route = mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(
                200, json={"data": {"workItemUpdate": {"workItem": _item(4), "errors": []}}}
            )
        )
        await manager.dispatch(
            "manage_work_item",
            {"action": "update", "id": "4", "state": "CLOSE", "description": "done", "assigneeIds": []},
        )
        update = _variables(route.calls.last)["input"]
        assert update == {
            "id": "gid://gitlab/WorkItem/4",
            "stateEvent": "CLOSE",
            "descriptionWidget": {"description": "done"},
            "assigneesWidget": {"assigneeIds": []},
        }

    async def test_mutation_errors(self, manager, mock_graphql):
        mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(
                200, json={"data": {"workItemDelete": {"errors": ["not allowed"]}}}
            )
        )
        with pytest.raises(GitLabGraphQLError, match="not allowed"):
            await manager.dispatch("manage_work_item", {"action": "delete", "id": "4"})

    async def test_delete(self, manager, mock_graphql):
        mock_graphql.post(GRAPHQL).mock(
            return_value=httpx.Response(200, json={"data": {"workItemDelete": {"errors": []}}})
        )
        assert await manager.dispatch("manage_work_item", {"action": "delete", "id": "4"}) == {
            "deleted": True
        }


def test_simplify_truncates_description():
    item = _item(1, description="x" * 250)
    item["widgets"] = [
        {"type": "ASSIGNEES", "assignees": {"nodes": [{"id": "2", "username": "ann", "name": "Ann"}]}},
        {"type": "LABELS", "labels": {"nodes": []}},
    ]
    simple = simplify_work_item(item)
    assert simple["description"] == "x" * 200 + "..."
    assert simple["widgets"] == [
        {"type": "ASSIGNEES", "assignees": [{"id": "2", "username": "ann", "name": "Ann"}]}
    ]
