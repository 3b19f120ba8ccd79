"""``gitlab-mcp-list-tools``: inspect the tool catalog without a GitLab connection."""

from __future__ import annotations

import json
import os
from typing import Any, NoReturn

import click
from dotenv import load_dotenv

from .config import DEFAULT_API_URL, GitLabConfig
from .exceptions import ProfileError
from .manager import FilterContext, RegistryManager
from .profiles import ProfileLoader, ValidationResult
from .tiers import Tier, highest_tier
from .tools.base import ToolDefinition, schema_actions

CATEGORY_TITLES = {
    "core": "Core",
    "milestones": "Milestones",
    "workitems": "Work Items",
    "releases": "Releases",
    "variables": "Variables",
    "webhooks": "Webhooks",
    "refs": "Refs",
    "integrations": "Integrations",
    "files": "Files",
    "labels": "Labels",
    "wiki": "Wiki",
    "snippets": "Snippets",
}


def _echo(text: str = "") -> None:
    click.echo(text)


def _fail(message: str) -> NoReturn:
    raise click.ClickException(message)


def _category(tool: ToolDefinition) -> str:
    return CATEGORY_TITLES.get(tool.entity, "Other")


def group_by_category(tools: list[ToolDefinition]) -> dict[str, list[ToolDefinition]]:
    order = [*CATEGORY_TITLES.values(), "Other"]
    grouped: dict[str, list[ToolDefinition]] = {}
    for tool in tools:
        grouped.setdefault(_category(tool), []).append(tool)
    return {name: grouped[name] for name in order if name in grouped}


def tier_badge(tool: ToolDefinition) -> str:
    tier = highest_tier(tool)
    return "" if tier is Tier.FREE else f" [tier: {tier.badge}]"


def _schema_type(prop: dict[str, Any]) -> str:
    if "type" in prop:
        if prop["type"] == "array" and "items" in prop:
            return f"{_schema_type(prop['items'])}[]"
        return str(prop["type"])
    if "const" in prop or "enum" in prop:
        return "enum"
    if "$ref" in prop:
        return "object"
    options = prop.get("anyOf") or prop.get("oneOf")
    if options:
        return " | ".join(_schema_type(o) for o in options if o.get("type") != "null")
    return "unknown"


def describe_parameters(schema: dict[str, Any]) -> list[str]:
    """One line per parameter; action-based schemas list each branch separately."""
    defs = schema.get("$defs", {})
    branches: list[tuple[str | None, dict[str, Any]]] = []
    if "oneOf" in schema:
        key = (schema.get("discriminator") or {}).get("propertyName", "action")
        for action, branch in zip(schema_actions(schema, key), schema["oneOf"]):
            ref = branch.get("$ref")
            branches.append((action, defs.get(ref.rsplit("/", 1)[-1], {}) if ref else branch))
    else:
        branches.append((None, schema))

    lines: list[str] = []
    for action, branch in branches:
        indent = "  "
        if action is not None:
            lines.append(f"  - action `{action}`:")
            indent = "    "
        required = set(branch.get("required", []))
        for name, prop in branch.get("properties", {}).items():
            if action is not None and name in ("action", "scope"):
                continue
            flag = "required" if name in required else "optional"
            line = f"{indent}- `{name}` ({_schema_type(prop)}, {flag})"
            if prop.get("description"):
                line += f": {prop['description']}"
            lines.append(line)
    return lines


def build_context(
    loader: ProfileLoader, profile: str | None, preset: str | None
) -> FilterContext:
    context = FilterContext.from_env()
    if profile:
        context = FilterContext.from_profile(loader.load_profile(profile), context)
    if preset:
        context = FilterContext.from_preset(loader.load_preset(preset), context)
    return context


def print_environment() -> None:
    _echo("=== Environment Configuration ===")
    _echo()
    for name, default in (
        ("GITLAB_READ_ONLY_MODE", "false"),
        ("GITLAB_DENIED_TOOLS_REGEX", "(not set)"),
        ("GITLAB_ALLOWED_TOOLS", "(not set)"),
        ("GITLAB_DENIED_ACTIONS", "(not set)"),
        ("GITLAB_TIER", "(not detected)"),
        ("GITLAB_PROFILE", "(not set)"),
        ("GITLAB_API_URL", DEFAULT_API_URL),
    ):
        _echo(f"{name}: {os.getenv(name) or default}")
    _echo()


def print_env_gates(manager: RegistryManager, as_json: bool) -> None:
    gates: dict[str, dict[str, Any]] = {}
    ungated: list[str] = []
    for tool in manager.get_all_tool_definitions_unfiltered():
        if tool.gate is None:
            ungated.append(tool.name)
            continue
        entry = gates.setdefault(
            tool.gate.env_var,
            {"envVar": tool.gate.env_var, "defaultValue": tool.gate.default_value, "tools": []},
        )
        entry["tools"].append(tool.name)
    ordered = [gates[k] for k in sorted(gates)]

    if as_json:
        _echo(
            json.dumps(
                {
                    "gates": ordered,
                    "ungated": {"description": "Core tools (always enabled)", "tools": ungated},
                },
                indent=2,
            )
        )
        return

    _echo("# Environment Variable Gates")
    _echo()
    _echo("This table shows which `USE_*` environment variables control which tools.")
    _echo()
    _echo("| Variable | Default | Tools Controlled |")
    _echo("|----------|---------|------------------|")
    for gate in ordered:
        default = "`true`" if gate["defaultValue"] else "`false`"
        tools = ", ".join(f"`{t}`" for t in gate["tools"])
        _echo(f"| `{gate['envVar']}` | {default} | {tools} |")
    if ungated:
        tools = ", ".join(f"`{t}`" for t in ungated)
        _echo(f"| *(none - always on)* | - | {tools} |")


def print_validation(label: str, result: ValidationResult) -> None:
    _echo(f"{label}: {'valid' if result.valid else 'invalid'}")
    for error in result.errors:
        _echo(f"  error: {error}")
    for warning in result.warnings:
        _echo(f"  warning: {warning}")


def print_markdown(
    tools: list[ToolDefinition],
    manager: RegistryManager,
    context: FilterContext,
    *,
    verbose: bool,
    detailed: bool,
) -> None:
    if detailed:
        for tool in tools:
            _echo(f"## {tool.name}{tier_badge(tool)}")
            _echo()
            _echo(f"**Description**: {tool.description}")
            _echo()
            _echo("**Parameters**:")
            _echo()
            for line in describe_parameters(tool.input_schema) or ["(no parameters)"]:
                _echo(line)
            _echo()
        return

    _echo("# GitLab MCP Tools")
    _echo()
    _echo(f"Total tools available: {len(tools)}")
    _echo()
    grouped = group_by_category(tools)
    _echo("## Categories")
    _echo()
    for category, members in grouped.items():
        _echo(f"- **{category}**: {len(members)} tools")
    _echo()
    for category, members in grouped.items():
        _echo(f"## {category}")
        _echo()
        for tool in members:
            _echo(f"### {tool.name}{tier_badge(tool)}")
            _echo(f"**Description**: {tool.description}")
            _echo()
            unmet = manager.get_unmet_tier_actions(tool.name, context)
            if unmet:
                _echo(f"**Unavailable on this tier**: {', '.join(unmet)}")
                _echo()
            if verbose:
                _echo("**Parameters**:")
                for line in describe_parameters(tool.input_schema) or ["  (no parameters)"]:
                    _echo(line)
                _echo()


def print_export(tools: list[ToolDefinition]) -> None:
    _echo("# GitLab MCP Tools Reference")
    _echo()
    _echo(f"Total: {len(tools)} tools.")
    _echo()
    for category, members in group_by_category(tools).items():
        _echo(f"## {category}")
        _echo()
        for tool in members:
            _echo(f"### {tool.name}{tier_badge(tool)}")
            _echo()
            _echo(tool.description)
            _echo()
            if tool.actions:
                _echo("#### Actions")
                _echo()
                _echo("| Action | Mutates | Tier |")
                _echo("|--------|---------|------|")
                for spec in tool.actions:
                    _echo(f"| `{spec.name}` | {'yes' if spec.mutates else 'no'} | {spec.tier.badge} |")
                _echo()
            lines = describe_parameters(tool.input_schema)
            if lines:
                _echo("#### Parameters")
                _echo()
                for line in lines:
                    _echo(line)
                _echo()
            _echo("---")
            _echo()


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format")
@click.option("--simple", is_flag=True, help="Tool names only")
@click.option("--export", "export", is_flag=True, help="Full reference of every tool (unfiltered)")
@click.option("--env-gates", is_flag=True, help="Show USE_* environment variable gates")
@click.option("--entity", help="Only tools of this entity (e.g. workitems, refs)")
@click.option("--tool", "tool_name", help="Details for one tool")
@click.option("--env", "show_env", is_flag=True, help="Show environment configuration")
@click.option("--verbose", "-v", is_flag=True, help="Include parameters")
@click.option("--profile", help="Apply a user profile before filtering")
@click.option("--preset", help="Apply a built-in preset before filtering")
@click.option("--profiles", "list_profiles", is_flag=True, help="List profiles and presets")
@click.option("--validate", is_flag=True, help="Validate the given --profile/--preset")
@click.option("--compare", is_flag=True, help="Compare --profile/--preset against the environment")
def list_tools(
    as_json: bool,
    simple: bool,
    export: bool,
    env_gates: bool,
    entity: str | None,
    tool_name: str | None,
    show_env: bool,
    verbose: bool,
    profile: str | None,
    preset: str | None,
    list_profiles: bool,
    validate: bool,
    compare: bool,
) -> None:
    """List the GitLab MCP tools exposed by the current configuration."""
    load_dotenv()
    loader = ProfileLoader()

    if show_env:
        print_environment()

    if list_profiles:
        try:
            default = loader.default_profile_name()
            infos = loader.list_profiles()
        except ProfileError as e:
            _fail(str(e))
        for info in infos:
            kind = "preset" if info.is_preset else f"profile ({info.host}, {info.auth_type})"
            flags = " [read-only]" if info.read_only else ""
            if not info.is_preset and info.name == default:
                flags += " [default]"
            _echo(f"{info.name}: {kind}{flags}")
            if info.description:
                _echo(f"  {info.description}")
        return

    if validate:
        if not profile and not preset:
            _fail("--validate requires --profile or --preset")
        valid = True
        try:
            if profile:
                result = loader.validate_profile(loader.load_profile(profile))
                print_validation(f"Profile '{profile}'", result)
                valid = valid and result.valid
            if preset:
                result = loader.validate_preset(loader.load_preset(preset))
                print_validation(f"Preset '{preset}'", result)
                valid = valid and result.valid
        except ProfileError as e:
            _fail(str(e))
        if not valid:
            _fail("Validation failed")
        return

    manager = RegistryManager(config=GitLabConfig.from_env())

    if env_gates:
        print_env_gates(manager, as_json)
        return

    try:
        context = build_context(loader, profile, preset)
    except ProfileError as e:
        _fail(str(e))

    if compare:
        if not profile and not preset:
            _fail("--compare requires --profile or --preset")
        base = {t.name for t in manager.get_all_tool_definitions_tierless()}
        applied = {t.name for t in manager.get_all_tool_definitions_tierless(context)}
        _echo(f"Environment: {len(base)} tools, with {profile or preset}: {len(applied)} tools")
        for name in sorted(base - applied):
            _echo(f"- {name}")
        for name in sorted(applied - base):
            _echo(f"+ {name}")
        return

    if export:
        tools = manager.get_all_tool_definitions_unfiltered()
    else:
        tools = manager.get_all_tool_definitions_tierless(context)

    if entity:
        wanted = entity.lower().replace(" ", "")
        tools = [
            t
            for t in tools
            if t.entity == wanted or _category(t).lower().replace(" ", "") == wanted
        ]
        if not tools:
            _fail(f"No tools found for entity: {entity}")

    if tool_name:
        tools = [t for t in tools if t.name == tool_name]
        if not tools:
            _fail(f"Tool not found: {tool_name}")

    if as_json:
        _echo(
            json.dumps(
                [
                    {
                        "name": t.name,
                        "description": t.description,
                        "tier": highest_tier(t).value,
                        "parameters": t.input_schema,
                    }
                    for t in tools
                ],
                indent=2,
            )
        )
    elif simple:
        for t in tools:
            _echo(t.name)
    elif export:
        print_export(tools)
    else:
        print_markdown(
            tools, manager, context, verbose=verbose, detailed=bool(entity or tool_name)
        )
