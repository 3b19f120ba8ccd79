"""Structural tests for the entity registries."""

from __future__ import annotations

import pytest

from gitlab_mcp_registry.config import GitLabConfig
from gitlab_mcp_registry.tools import REGISTRY_CLASSES
from gitlab_mcp_registry.tools.base import prune_actions, schema_actions

CONFIG = GitLabConfig(url="https://gitlab.example.com", token="test-token")


def _unused_client():
    raise AssertionError("listing tools must not create a client")


@pytest.fixture(params=REGISTRY_CLASSES, ids=lambda cls: cls.name)
def registry(request):
    return request.param(_unused_client, CONFIG)


def test_tool_names_are_unique_across_registries():
    names = [
        tool.name
        for cls in REGISTRY_CLASSES
        for tool in cls(_unused_client, CONFIG).get_tool_definitions()
    ]
    assert len(names) == len(set(names))


def test_registry_names_are_unique():
    names = [cls.name for cls in REGISTRY_CLASSES]
    assert len(names) == len(set(names))


def test_definitions_are_complete(registry):
    tools = registry.get_tool_definitions()
    assert tools
    assert len(tools) == len(registry.registry)
    for tool in tools:
        assert tool.name
        assert tool.description.strip()
        assert tool.input_schema["type"] == "object"
        assert tool.entity == registry.name
        assert callable(tool.handler)


def test_read_only_names_exist(registry):
    names = set(registry.registry)
    for name in registry.get_read_only_tool_names():
        assert name in names


def test_read_only_matches_actions(registry):
    read_only = set(registry.get_read_only_tool_names())
    for tool in registry.get_tool_definitions():
        if tool.actions:
            has_query = any(not spec.mutates for spec in tool.actions)
            assert (tool.name in read_only) == has_query, tool.name


def test_schema_declares_every_action(registry):
    for tool in registry.get_tool_definitions():
        if tool.actions:
            declared = schema_actions(tool.input_schema, tool.discriminator)
            assert sorted(declared) == sorted(tool.action_names), tool.name


def test_listing_is_idempotent(registry):
    first = [t.name for t in registry.get_tool_definitions()]
    second = [t.name for t in registry.get_tool_definitions()]
    assert first == second


def test_read_only_filter_is_subset(registry):
    everything = {t.name for t in registry.get_filtered_tools(read_only=False)}
    read_only = {t.name for t in registry.get_filtered_tools(read_only=True)}
    assert read_only <= everything
    assert read_only == set(registry.get_read_only_tool_names())


def test_prune_actions_removes_branches():
    registry = next(cls for cls in REGISTRY_CLASSES if cls.name == "refs")(_unused_client, CONFIG)
    tool = registry.registry["manage_ref"]
    pruned = prune_actions(tool.input_schema, {"delete_tag"})
    assert "delete_tag" not in schema_actions(pruned)
    assert "delete_tag" in schema_actions(tool.input_schema)
    assert len(schema_actions(pruned)) == len(tool.actions) - 1
