"""CI/CD variable tools for projects and groups."""

from __future__ import annotations

from typing import Any

from ..models import variables as m
from ..utils import encode_segment, to_query
from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition


def _scope_params(scope: m.ScopeFilter | None) -> dict[str, Any] | None:
    if scope is None or scope.environment_scope is None:
        return None
    return {"filter[environment_scope]": scope.environment_scope}


class VariableRegistry(EntityRegistry):
    name = "variables"
    gate = EnvGate("USE_VARIABLES", True)
    read_only_tools = ("browse_variables",)

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "browse_variables",
                "CI/CD VARIABLES: 'list' shows the variables of a project or group, 'get' "
                "reads one by key (use filter.environment_scope when keys are scoped).",
                m.BrowseVariables,
                self.browse_variables,
                actions=[
                    ActionSpec("list", mutates=False),
                    ActionSpec("get", mutates=False),
                ],
            ),
            self.define(
                "manage_variable",
                "CI/CD VARIABLE CHANGES: 'create', 'update' or 'delete' a project or group "
                "variable. Supports protected, masked, raw and file variables.",
                m.ManageVariable,
                self.manage_variable,
                actions=[
                    ActionSpec("create", mutates=True),
                    ActionSpec("update", mutates=True),
                    ActionSpec("delete", mutates=True),
                ],
            ),
        ]

    async def browse_variables(self, args: dict[str, Any]) -> Any:
        inp = m.BrowseVariables.validate_python(args)
        client = self.client

        if isinstance(inp, m.ListVariables):
            params = to_query(inp.to_params("namespace")) or None
            return await client.namespace_request("GET", inp.namespace, "/variables", params=params)
        return await client.namespace_request(
            "GET",
            inp.namespace,
            f"/variables/{encode_segment(inp.key)}",
            params=_scope_params(inp.filter),
        )

    async def manage_variable(self, args: dict[str, Any]) -> Any:
        inp = m.ManageVariable.validate_python(args)
        self.ensure_allowed("manage_variable", inp.action)
        client = self.client

        if isinstance(inp, m.CreateVariable):
            body = inp.to_params("namespace")
            return await client.namespace_request("POST", inp.namespace, "/variables", json_data=body)

        suffix = f"/variables/{encode_segment(inp.key)}"
        if isinstance(inp, m.UpdateVariable):
            body = inp.to_params("namespace", "key", "filter")
            return await client.namespace_request(
                "PUT", inp.namespace, suffix, json_data=body, params=_scope_params(inp.filter)
            )

        await client.namespace_request(
            "DELETE", inp.namespace, suffix, params=_scope_params(inp.filter)
        )
        return {"deleted": True}
