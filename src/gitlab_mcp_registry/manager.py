"""Registry manager: merges the entity registries and applies every filter."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from .client import GitLabClient
from .config import GitLabConfig, parse_denied_actions
from .exceptions import ActionNotAllowedError, TierNotSufficientError, ToolNotFoundError
from .scope import ProjectScope
from .tiers import Tier, action_tier, is_tier_sufficient, parse_tier, unmet_actions
from .tools import REGISTRY_CLASSES
from .tools.base import EntityRegistry, ToolDefinition, prune_actions, schema_arguments

if TYPE_CHECKING:
    from .profiles import Preset, Profile

logger = logging.getLogger(__name__)

DESCRIPTION_ENV_PREFIX = "GITLAB_TOOL_"


def compile_denied_regex(pattern: str | None) -> re.Pattern[str] | None:
    """Compile the denied-tools pattern. An invalid pattern is logged and ignored."""
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Invalid GITLAB_DENIED_TOOLS_REGEX %r (%s), no tools denied", pattern, e)
        return None


def description_override(tool_name: str) -> str | None:
    value = os.getenv(f"{DESCRIPTION_ENV_PREFIX}{tool_name.upper()}")
    return value.strip() if value and value.strip() else None


@dataclass(frozen=True)
class FilterContext:
    """Everything that decides which tools and actions are exposed."""

    read_only: bool = False
    tier: Tier | None = None
    allowed_tools: frozenset[str] = frozenset()
    denied_tools_regex: str | None = None
    denied_actions: frozenset[tuple[str, str]] = frozenset()
    features: Mapping[str, bool] = field(default_factory=dict)
    allowed_projects: frozenset[str] = frozenset()
    allowed_groups: frozenset[str] = frozenset()

    @classmethod
    def from_config(cls, config: GitLabConfig) -> FilterContext:
        return cls(
            read_only=config.read_only,
            tier=parse_tier(config.tier),
            allowed_tools=frozenset(config.allowed_tools),
            denied_tools_regex=config.denied_tools_regex,
            denied_actions=frozenset(config.denied_actions),
            allowed_projects=frozenset(config.allowed_projects),
            allowed_groups=frozenset(config.allowed_groups),
        )

    @classmethod
    def from_env(cls) -> FilterContext:
        return cls.from_config(GitLabConfig.from_env())

    @classmethod
    def from_preset(cls, preset: Preset, base: FilterContext | None = None) -> FilterContext:
        """Layer a preset over ``base`` (the environment when omitted)."""
        base = base or cls.from_env()
        features = dict(base.features)
        features.update(preset.feature_overrides())
        return replace(
            base,
            read_only=base.read_only or bool(preset.read_only),
            allowed_tools=(
                frozenset(preset.allowed_tools) if preset.allowed_tools else base.allowed_tools
            ),
            denied_tools_regex=preset.denied_tools_regex or base.denied_tools_regex,
            denied_actions=base.denied_actions | parse_denied_actions(preset.denied_actions or []),
            features=features,
        )

    @classmethod
    def from_profile(cls, profile: Profile, base: FilterContext | None = None) -> FilterContext:
        context = cls.from_preset(profile, base)
        changes: dict[str, Any] = {}
        if profile.tier is not None:
            changes["tier"] = parse_tier(profile.tier)
        if profile.allowed_projects:
            changes["allowed_projects"] = frozenset(profile.allowed_projects)
        if profile.allowed_groups:
            changes["allowed_groups"] = frozenset(profile.allowed_groups)
        return replace(context, **changes) if changes else context

    @property
    def scope(self) -> ProjectScope:
        return ProjectScope.of(self.allowed_projects, self.allowed_groups)

    def denied_for(self, tool: str) -> set[str]:
        name = tool.lower()
        return {action for t, action in self.denied_actions if t == name}

    def is_action_denied(self, tool: str, action: str) -> bool:
        return (tool.lower(), action.lower()) in self.denied_actions


class RegistryManager:
    """Aggregates the entity registries into one filtered catalog.

    The GitLab client is created on first dispatch, so listing and inspecting
    tools never needs a token.
    """

    def __init__(
        self,
        config: GitLabConfig | None = None,
        client: GitLabClient | None = None,
        registries: Iterable[EntityRegistry] | None = None,
        context: FilterContext | None = None,
    ) -> None:
        config = config or (client.config if client else GitLabConfig.from_env())
        if context is not None:
            config = replace(
                config,
                read_only=config.read_only or context.read_only,
                tier=context.tier.value if context.tier else config.tier,
            )
        self.config = config
        self._client = client
        if registries is None:
            registries = [cls(self._get_client, self.config) for cls in REGISTRY_CLASSES]
        self.registries: list[EntityRegistry] = list(registries)
        self.context = context or FilterContext.from_config(self.config)
        self._catalog = {d.name: d for d in self.get_filtered_tool_definitions(self.context)}
        logger.debug("Registry manager built catalog with %d tools", len(self._catalog))

    def _get_client(self) -> GitLabClient:
        if self._client is None:
            self._client = GitLabClient(self.config)
        return self._client

    @property
    def client(self) -> GitLabClient:
        return self._get_client()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    # ── Catalog views ─────────────────────────────────────────────

    def registry_by_name(self, name: str) -> EntityRegistry | None:
        for registry in self.registries:
            if registry.name == name:
                return registry
        return None

    def get_all_tool_definitions_unfiltered(self) -> list[ToolDefinition]:
        tools: list[ToolDefinition] = []
        seen: dict[str, str] = {}
        for registry in self.registries:
            for tool in registry.get_tool_definitions():
                if tool.name in seen:
                    logger.error(
                        "Tool name collision: '%s' defined by %s and %s, keeping the first",
                        tool.name,
                        seen[tool.name],
                        registry.name,
                    )
                    continue
                seen[tool.name] = registry.name
                tools.append(tool)
        return tools

    def get_all_tool_definitions_tierless(
        self, context: FilterContext | None = None
    ) -> list[ToolDefinition]:
        """Definitions after gates, read-only, allow/deny and action filters but before tiers."""
        return self._select(context or FilterContext.from_env(), apply_tier=False)

    def get_filtered_tool_definitions(
        self, context: FilterContext | None = None
    ) -> list[ToolDefinition]:
        return self._select(context or FilterContext.from_env(), apply_tier=True)

    def get_unmet_tier_actions(self, name: str, context: FilterContext | None = None) -> list[str]:
        context = context or FilterContext.from_env()
        for tool in self.get_all_tool_definitions_unfiltered():
            if tool.name == name:
                return unmet_actions(tool, context.tier)
        return []

    def get_tool(self, name: str) -> ToolDefinition | None:
        return self._catalog.get(name)

    @property
    def tool_names(self) -> list[str]:
        return list(self._catalog)

    @property
    def tools(self) -> list[ToolDefinition]:
        return list(self._catalog.values())

    # ── Filtering pipeline ────────────────────────────────────────

    def _select(self, context: FilterContext, *, apply_tier: bool) -> list[ToolDefinition]:
        owners = {
            tool.name: registry
            for registry in reversed(self.registries)
            for tool in registry.get_tool_definitions()
        }
        denied_regex = compile_denied_regex(context.denied_tools_regex)
        selected: list[ToolDefinition] = []

        for tool in self.get_all_tool_definitions_unfiltered():
            registry = owners[tool.name]

            if tool.gate is not None and not tool.gate.is_enabled(context.features):
                logger.debug("Tool '%s' filtered out: %s disabled", tool.name, tool.gate.env_var)
                continue

            removed: set[str] = set()
            if apply_tier and context.tier is not None:
                if not is_tier_sufficient(context.tier, tool.tier):
                    logger.debug(
                        "Tool '%s' filtered out: requires %s tier", tool.name, tool.tier.value
                    )
                    continue
                removed.update(unmet_actions(tool, context.tier))

            if context.read_only and tool.name not in registry.get_read_only_tool_names():
                logger.debug("Tool '%s' filtered out: read-only mode", tool.name)
                continue

            if context.allowed_tools and tool.name not in context.allowed_tools:
                logger.debug("Tool '%s' filtered out: not in allowed tools", tool.name)
                continue

            if denied_regex is not None and denied_regex.search(tool.name):
                logger.debug("Tool '%s' filtered out: matches denied regex", tool.name)
                continue

            if tool.actions:
                removed.update(a for a in tool.action_names if a in context.denied_for(tool.name))
                if removed.issuperset(tool.action_names):
                    logger.debug("Tool '%s' filtered out: all actions denied", tool.name)
                    continue

            changes: dict[str, Any] = {}
            if removed:
                changes["input_schema"] = prune_actions(
                    tool.input_schema, removed, tool.discriminator or "action"
                )
            override = description_override(tool.name)
            if override:
                changes["description"] = override
            selected.append(tool.replace(**changes) if changes else tool)

        return selected

    # ── Dispatch ──────────────────────────────────────────────────

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        tool = self.get_tool(name)
        if tool is None:
            raise ToolNotFoundError(name)

        arguments = dict(arguments or {})
        action = arguments.get(tool.discriminator) if tool.discriminator else None
        if isinstance(action, str):
            if self.context.is_action_denied(name, action):
                raise ActionNotAllowedError(name, action)
            required = action_tier(tool, action)
            if not is_tier_sufficient(self.context.tier, required):
                raise TierNotSufficientError(
                    name, action, required.value, self.context.tier.value
                )

        self._apply_defaults(tool, arguments, action)
        self.context.scope.enforce(arguments)

        logger.debug("Dispatching %s", name)
        return await tool.handler(arguments)

    def _apply_defaults(
        self, tool: ToolDefinition, arguments: dict[str, Any], action: Any
    ) -> None:
        """Fill a missing ``project_id``/``namespace`` from the configured defaults."""
        defaults = {
            "project_id": self.config.default_project,
            "namespace": self.config.default_namespace or self.config.default_project,
        }
        if not any(defaults.values()):
            return
        accepted = schema_arguments(
            tool.input_schema,
            action if isinstance(action, str) else None,
            tool.discriminator or "action",
        )
        for argument, value in defaults.items():
            if value and argument in accepted and not arguments.get(argument):
                arguments[argument] = value


async def detect_instance_tier(config: GitLabConfig) -> Tier | None:
    """Ask the instance for its tier with a short-lived client."""
    client = GitLabClient(config)
    try:
        tier = await client.detect_tier()
    finally:
        await client.close()
    if tier is None:
        logger.info("GitLab tier not detected, tier filtering disabled")
    else:
        logger.info("Detected GitLab tier: %s", tier.badge)
    return tier


_instance: RegistryManager | None = None


def get_instance() -> RegistryManager:
    """Process-wide manager built from the environment on first use."""
    global _instance
    if _instance is None:
        _instance = RegistryManager()
    return _instance


def reset_instance() -> None:
    global _instance
    _instance = None
