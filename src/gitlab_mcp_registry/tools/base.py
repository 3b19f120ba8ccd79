"""Tool definitions and the per-entity registry contract."""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from pydantic import BaseModel, TypeAdapter

from ..client import GitLabClient
from ..config import GitLabConfig, env_flag
from ..exceptions import ReadOnlyModeError
from ..tiers import Tier

Handler = Callable[[dict[str, Any]], Awaitable[Any]]

# Profile feature flag -> env gate variable
FEATURE_GATES = {
    "wiki": "USE_GITLAB_WIKI",
    "milestones": "USE_MILESTONE",
    "labels": "USE_LABELS",
    "files": "USE_FILES",
    "variables": "USE_VARIABLES",
    "workitems": "USE_WORKITEMS",
    "webhooks": "USE_WEBHOOKS",
    "snippets": "USE_SNIPPETS",
    "integrations": "USE_INTEGRATIONS",
    "releases": "USE_RELEASES",
    "refs": "USE_REFS",
}
_GATE_FEATURES = {env: feature for feature, env in FEATURE_GATES.items()}


@dataclass(frozen=True)
class ActionSpec:
    """One branch of a CQRS tool."""

    name: str
    mutates: bool
    tier: Tier = Tier.FREE


@dataclass(frozen=True)
class EnvGate:
    """Environment switch controlling whether a tool is exposed at all."""

    env_var: str
    default_value: bool = True

    @property
    def feature(self) -> str | None:
        return _GATE_FEATURES.get(self.env_var)

    def is_enabled(self, features: Mapping[str, bool] | None = None) -> bool:
        if features and self.feature in features:
            return bool(features[self.feature])
        return env_flag(self.env_var, default=self.default_value)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: dict[str, Any]
    handler: Handler
    actions: tuple[ActionSpec, ...] = ()
    tier: Tier = Tier.FREE
    gate: EnvGate | None = None
    discriminator: str | None = "action"
    entity: str = ""

    def action(self, name: str) -> ActionSpec | None:
        for spec in self.actions:
            if spec.name == name:
                return spec
        return None

    @property
    def action_names(self) -> list[str]:
        return [spec.name for spec in self.actions]

    @property
    def mutates(self) -> bool:
        return any(spec.mutates for spec in self.actions)

    def replace(self, **changes: Any) -> ToolDefinition:
        return dataclasses.replace(self, **changes)


# ── JSON schema helpers ───────────────────────────────────────


def input_schema(source: TypeAdapter | type[BaseModel]) -> dict[str, Any]:
    """JSON schema for a model or discriminated union, always rooted at an object."""
    if isinstance(source, TypeAdapter):
        schema = source.json_schema()
    else:
        schema = source.model_json_schema()
    if "oneOf" in schema and "type" not in schema:
        schema = {"type": "object", **schema}
    return schema


def _resolve(branch: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    ref = branch.get("$ref")
    return defs.get(ref.rsplit("/", 1)[-1], {}) if ref else branch


def _branch_action(branch: dict[str, Any], defs: dict[str, Any], key: str) -> str | None:
    branch = _resolve(branch, defs)
    prop = branch.get("properties", {}).get(key, {})
    if "const" in prop:
        return prop["const"]
    enum = prop.get("enum")
    if enum and len(enum) == 1:
        return enum[0]
    return None


def schema_actions(schema: dict[str, Any], key: str = "action") -> list[str]:
    """Action names declared by the ``oneOf`` branches of ``schema``."""
    defs = schema.get("$defs", {})
    actions = []
    for branch in schema.get("oneOf", []):
        name = _branch_action(branch, defs, key)
        if name is not None:
            actions.append(name)
    return actions


def schema_arguments(
    schema: dict[str, Any], action: str | None = None, key: str = "action"
) -> set[str]:
    """Argument names accepted by ``schema``, or by its ``action`` branch."""
    if "oneOf" not in schema:
        return set(schema.get("properties", {}))
    defs = schema.get("$defs", {})
    for branch in schema["oneOf"]:
        if _branch_action(branch, defs, key) == action:
            return set(_resolve(branch, defs).get("properties", {}))
    return set()


def prune_actions(
    schema: dict[str, Any], removed: Iterable[str], key: str = "action"
) -> dict[str, Any]:
    """Copy of ``schema`` without the ``oneOf`` branches for ``removed`` actions."""
    removed = set(removed)
    if not removed or "oneOf" not in schema:
        return schema
    pruned = copy.deepcopy(schema)
    defs = pruned.get("$defs", {})
    pruned["oneOf"] = [
        b for b in pruned["oneOf"] if _branch_action(b, defs, key) not in removed
    ]
    mapping = pruned.get("discriminator", {}).get("mapping")
    if mapping:
        pruned["discriminator"]["mapping"] = {
            k: v for k, v in mapping.items() if k not in removed
        }
    return pruned


# ── Entity registry ───────────────────────────────────────────


class EntityRegistry:
    """Canonical set of tools for one GitLab subdomain.

    Subclasses implement ``build()`` returning their tool definitions and list
    the names that are safe in read-only mode in ``read_only_tools``. The
    registry is populated once in the constructor and never mutated.
    """

    name: ClassVar[str]
    gate: ClassVar[EnvGate | None] = None
    read_only_tools: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        client: GitLabClient | Callable[[], GitLabClient],
        config: GitLabConfig | None = None,
    ) -> None:
        self._client = client
        self.config = config or (client.config if isinstance(client, GitLabClient) else None)
        self.registry: dict[str, ToolDefinition] = {d.name: d for d in self.build()}

    @property
    def client(self) -> GitLabClient:
        if isinstance(self._client, GitLabClient):
            return self._client
        return self._client()

    @property
    def read_only(self) -> bool:
        return bool(self.config and self.config.read_only)

    def build(self) -> list[ToolDefinition]:
        raise NotImplementedError

    def define(
        self,
        name: str,
        description: str,
        schema: TypeAdapter | type[BaseModel],
        handler: Handler,
        *,
        actions: Iterable[ActionSpec] = (),
        tier: Tier = Tier.FREE,
        discriminator: str | None = "action",
    ) -> ToolDefinition:
        actions = tuple(actions)
        return ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema(schema),
            handler=handler,
            actions=actions,
            tier=tier,
            gate=self.gate,
            discriminator=discriminator if actions else None,
            entity=self.name,
        )

    def get_read_only_tool_names(self) -> list[str]:
        return list(self.read_only_tools)

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return list(self.registry.values())

    def get_filtered_tools(self, read_only: bool = False) -> list[ToolDefinition]:
        if not read_only:
            return self.get_tool_definitions()
        names = set(self.get_read_only_tool_names())
        return [tool for tool in self.registry.values() if tool.name in names]

    def ensure_allowed(self, tool: str, action: str) -> None:
        """Reject a mutating action of ``tool`` while read-only mode is active."""
        if not self.read_only:
            return
        definition = self.registry[tool]
        spec = definition.action(action)
        if spec is not None and spec.mutates:
            permitted = [s.name for s in definition.actions if not s.mutates]
            raise ReadOnlyModeError(tool, action, permitted)
