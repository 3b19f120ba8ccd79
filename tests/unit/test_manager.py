"""Tests for the registry manager: catalog filtering and dispatch."""

from __future__ import annotations

import logging

import httpx
import pytest

from gitlab_mcp_registry import manager as manager_module
from gitlab_mcp_registry.config import GitLabConfig
from gitlab_mcp_registry.exceptions import (
    ActionNotAllowedError,
    ReadOnlyModeError,
    ScopeViolationError,
    TierNotSufficientError,
    ToolNotFoundError,
)
from gitlab_mcp_registry.manager import FilterContext, RegistryManager
from gitlab_mcp_registry.tiers import Tier
from gitlab_mcp_registry.tools.base import FEATURE_GATES, schema_actions

TEST_URL = "https://gitlab.example.com"


def _names(tools) -> set[str]:
    return {t.name for t in tools}


def _manager(**config_kwargs) -> RegistryManager:
    return RegistryManager(config=GitLabConfig(url=TEST_URL, token="t", **config_kwargs))


class TestCatalog:
    def test_unfiltered_contains_every_registry(self, manager):
        names = _names(manager.get_all_tool_definitions_unfiltered())
        assert {
            "browse_projects",
            "browse_milestones",
            "browse_work_items",
            "browse_releases",
            "browse_variables",
            "list_webhooks",
            "browse_refs",
            "list_integrations",
            "get_repository_tree",
        } <= names

    def test_filtered_is_subset_of_unfiltered(self, manager):
        unfiltered = _names(manager.get_all_tool_definitions_unfiltered())
        context = FilterContext(read_only=True, denied_tools_regex="^browse_")
        assert _names(manager.get_filtered_tool_definitions(context)) <= unfiltered

    def test_filtering_is_idempotent(self, manager):
        context = FilterContext(read_only=True)
        first = [t.name for t in manager.get_filtered_tool_definitions(context)]
        second = [t.name for t in manager.get_filtered_tool_definitions(context)]
        assert first == second

    def test_catalog_needs_no_token(self):
        manager = RegistryManager(config=GitLabConfig(url=TEST_URL, token=""))
        assert "browse_projects" in manager.tool_names

    def test_env_gate_disables_variables(self, monkeypatch):
        monkeypatch.setenv("USE_VARIABLES", "false")
        names = _names(_manager().tools)
        assert "browse_variables" not in names
        assert "manage_variable" not in names
        assert "browse_projects" in names

    def test_env_gate_disables_workitems(self, monkeypatch):
        monkeypatch.setenv("USE_WORKITEMS", "0")
        names = _names(_manager().tools)
        assert "browse_work_items" not in names
        assert "manage_work_item" not in names

    def test_gates_are_independent(self, monkeypatch, manager):
        assert "browse_variables" in _names(manager.get_all_tool_definitions_tierless(FilterContext()))
        monkeypatch.setenv("USE_VARIABLES", "false")
        names = _names(manager.get_all_tool_definitions_tierless(FilterContext()))
        assert "browse_variables" not in names
        assert "browse_work_items" in names
        monkeypatch.setenv("USE_WORKITEMS", "false")
        monkeypatch.delenv("USE_VARIABLES")
        names = _names(manager.get_all_tool_definitions_tierless(FilterContext()))
        assert "browse_variables" in names
        assert "browse_work_items" not in names

    def test_every_feature_flag_gates_tools(self, manager):
        gated = {
            tool.gate.feature
            for tool in manager.get_all_tool_definitions_unfiltered()
            if tool.gate is not None
        }
        assert gated == set(FEATURE_GATES)

    def test_features_override_env_gate(self, monkeypatch, manager):
        monkeypatch.setenv("USE_RELEASES", "false")
        context = FilterContext(features={"releases": True})
        assert "browse_releases" in _names(manager.get_filtered_tool_definitions(context))

    def test_read_only(self, manager):
        names = _names(manager.get_filtered_tool_definitions(FilterContext(read_only=True)))
        assert "browse_projects" in names
        assert "manage_integration" in names
        assert "manage_variable" not in names
        assert "push_files" not in names

    def test_allowed_tools(self, manager):
        context = FilterContext(allowed_tools=frozenset({"browse_refs", "manage_ref"}))
        assert _names(manager.get_filtered_tool_definitions(context)) == {"browse_refs", "manage_ref"}

    def test_allowed_tools_cannot_bypass_read_only(self, manager):
        context = FilterContext(read_only=True, allowed_tools=frozenset({"browse_refs", "manage_ref"}))
        assert _names(manager.get_filtered_tool_definitions(context)) == {"browse_refs"}

    def test_denied_regex(self, manager):
        context = FilterContext(denied_tools_regex="^manage_")
        names = _names(manager.get_filtered_tool_definitions(context))
        assert not any(name.startswith("manage_") for name in names)
        assert "browse_refs" in names

    def test_invalid_regex_fails_open(self, manager, caplog):
        context = FilterContext(denied_tools_regex="[invalid")
        with caplog.at_level(logging.WARNING, logger="gitlab_mcp_registry.manager"):
            tools = manager.get_filtered_tool_definitions(context)
        assert _names(tools) == _names(manager.get_filtered_tool_definitions(FilterContext()))
        assert "Invalid GITLAB_DENIED_TOOLS_REGEX" in caplog.text

    def test_denied_action_pruned_from_schema(self, manager):
        context = FilterContext(denied_actions=frozenset({("manage_ref", "delete_tag")}))
        tool = next(
            t for t in manager.get_filtered_tool_definitions(context) if t.name == "manage_ref"
        )
        assert "delete_tag" not in schema_actions(tool.input_schema)
        assert "create_tag" in schema_actions(tool.input_schema)

    def test_all_actions_denied_removes_tool(self, manager):
        denied = frozenset({("browse_variables", "list"), ("browse_variables", "get")})
        context = FilterContext(denied_actions=denied)
        assert "browse_variables" not in _names(manager.get_filtered_tool_definitions(context))

    def test_description_override(self, monkeypatch, manager):
        monkeypatch.setenv("GITLAB_TOOL_BROWSE_REFS", "Custom refs description")
        tool = next(
            t for t in manager.get_filtered_tool_definitions(FilterContext()) if t.name == "browse_refs"
        )
        assert tool.description == "Custom refs description"


class TestTiers:
    def test_unknown_tier_filters_nothing(self, manager):
        tools = manager.get_filtered_tool_definitions(FilterContext())
        assert "list_group_iterations" in _names(tools)

    def test_free_tier_hides_premium_tools(self, manager):
        context = FilterContext(tier=Tier.FREE)
        tools = {t.name: t for t in manager.get_filtered_tool_definitions(context)}
        assert "list_group_iterations" not in tools
        assert "list_protected_tags" not in schema_actions(tools["browse_refs"].input_schema)
        assert "burndown" not in schema_actions(tools["browse_milestones"].input_schema)

    def test_tierless_keeps_premium_tools(self, manager):
        context = FilterContext(tier=Tier.FREE)
        assert "list_group_iterations" in _names(manager.get_all_tool_definitions_tierless(context))

    def test_unmet_tier_actions(self, manager):
        context = FilterContext(tier=Tier.FREE)
        assert manager.get_unmet_tier_actions("manage_ref", context) == ["protect_tag", "unprotect_tag"]
        assert manager.get_unmet_tier_actions("manage_ref", FilterContext()) == []

    async def test_dispatch_rejects_unmet_tier(self, mock_api):
        manager = _manager(tier="free")
        with pytest.raises(TierNotSufficientError):
            await manager.dispatch(
                "browse_refs", {"action": "list_protected_tags", "project_id": "1"}
            )
        assert len(mock_api.calls) == 0


class TestDispatch:
    async def test_round_trip(self, manager, mock_api):
        mock_api.get("/projects/1/repository/tags").mock(
            return_value=httpx.Response(200, json=[{"name": "v1"}])
        )
        result = await manager.dispatch("browse_refs", {"action": "list_tags", "project_id": "1"})
        assert result == [{"name": "v1"}]
        assert len(mock_api.calls) == 1

    async def test_unknown_tool(self, manager, mock_api):
        with pytest.raises(ToolNotFoundError, match="nope"):
            await manager.dispatch("nope", {})
        assert len(mock_api.calls) == 0

    async def test_filtered_tool_is_not_found(self, mock_api, monkeypatch):
        monkeypatch.setenv("USE_VARIABLES", "false")
        manager = _manager()
        with pytest.raises(ToolNotFoundError):
            await manager.dispatch("browse_variables", {"action": "list", "namespace": "g"})
        assert len(mock_api.calls) == 0

    async def test_denied_action(self, mock_api):
        manager = _manager(denied_actions=frozenset({("manage_ref", "delete_tag")}))
        with pytest.raises(ActionNotAllowedError, match="delete_tag"):
            await manager.dispatch(
                "manage_ref", {"action": "delete_tag", "project_id": "1", "tag_name": "v1"}
            )
        assert len(mock_api.calls) == 0

    async def test_read_only_denies_mutation(self, mock_api):
        manager = _manager(read_only=True)
        with pytest.raises(ReadOnlyModeError) as exc_info:
            await manager.dispatch(
                "manage_integration",
                {"action": "disable", "project_id": "1", "integration": "slack"},
            )
        assert "read-only" in str(exc_info.value)
        assert len(mock_api.calls) == 0

    async def test_context_read_only_reaches_handlers(self, mock_api):
        manager = RegistryManager(
            config=GitLabConfig(url=TEST_URL, token="t"), context=FilterContext(read_only=True)
        )
        assert manager.config.read_only is True
        with pytest.raises(ReadOnlyModeError):
            await manager.dispatch(
                "manage_webhook",
                {"action": "delete", "scope": "project", "projectId": "1", "hookId": 2},
            )


def test_get_instance_is_shared(monkeypatch):
    monkeypatch.setenv("GITLAB_TOKEN", "t")
    first = manager_module.get_instance()
    assert manager_module.get_instance() is first
    manager_module.reset_instance()
    assert manager_module.get_instance() is not first


class TestFilterContext:
    def test_from_config(self):
        config = GitLabConfig(
            token="t",
            read_only=True,
            tier="premium",
            allowed_tools=["browse_refs"],
            denied_actions=frozenset({("manage_ref", "delete_tag")}),
        )
        context = FilterContext.from_config(config)
        assert context.read_only is True
        assert context.tier is Tier.PREMIUM
        assert context.allowed_tools == frozenset({"browse_refs"})
        assert context.is_action_denied("Manage_Ref", "DELETE_TAG")
        assert context.denied_for("manage_ref") == {"delete_tag"}


class TestScope:
    def _scoped(self, projects=(), groups=(), **config_kwargs) -> RegistryManager:
        return _manager(allowed_projects=list(projects), allowed_groups=list(groups), **config_kwargs)

    async def test_out_of_scope_project_rejected(self, mock_api):
        manager = self._scoped(projects=["team/app"])
        with pytest.raises(ScopeViolationError, match="'999' is outside the allowed scope"):
            await manager.dispatch("browse_projects", {"action": "get", "project_id": "999"})
        assert len(mock_api.calls) == 0

    async def test_allowed_project_passes(self, mock_api):
        mock_api.get("/projects/team%2Fapp").mock(return_value=httpx.Response(200, json={"id": 7}))
        manager = self._scoped(projects=["Team/App"])
        result = await manager.dispatch(
            "browse_projects", {"action": "get", "project_id": "team/app"}
        )
        assert result == {"id": 7}

    async def test_group_covers_subprojects(self, mock_api):
        mock_api.get("/projects/platform%2Finfra%2Fci").mock(
            return_value=httpx.Response(200, json={"id": 8})
        )
        manager = self._scoped(groups=["platform"])
        await manager.dispatch(
            "browse_projects", {"action": "get", "project_id": "platform/infra/ci"}
        )
        with pytest.raises(ScopeViolationError):
            await manager.dispatch(
                "browse_variables", {"action": "list", "namespace": "platformer/app"}
            )
        assert len(mock_api.calls) == 1

    async def test_numeric_id_needs_explicit_entry(self, mock_api):
        mock_api.get("/projects/42").mock(return_value=httpx.Response(200, json={"id": 42}))
        manager = self._scoped(projects=["42"], groups=["platform"])
        assert await manager.dispatch("browse_projects", {"action": "get", "project_id": "42"}) == {
            "id": 42
        }
        with pytest.raises(ScopeViolationError):
            await manager.dispatch("browse_projects", {"action": "get", "project_id": "43"})

    async def test_camel_case_arguments_checked(self, mock_api):
        manager = self._scoped(projects=["team/app"])
        with pytest.raises(ScopeViolationError):
            await manager.dispatch("list_webhooks", {"scope": "group", "groupId": "other"})
        assert len(mock_api.calls) == 0

    async def test_default_project_filled_and_checked(self, mock_api):
        route = mock_api.get("/projects/team%2Fapp/repository/tags").mock(
            return_value=httpx.Response(200, json=[])
        )
        manager = self._scoped(projects=["team/app"], default_project="team/app")
        await manager.dispatch("browse_refs", {"action": "list_tags"})
        assert route.called

    async def test_unrestricted_by_default(self, manager, mock_api):
        mock_api.get("/projects/999").mock(return_value=httpx.Response(200, json={"id": 999}))
        assert await manager.dispatch(
            "browse_projects", {"action": "get", "project_id": "999"}
        ) == {"id": 999}
