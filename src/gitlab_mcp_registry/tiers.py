"""GitLab subscription tiers and per-tool/action requirements."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tools.base import ToolDefinition


class Tier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    ULTIMATE = "ultimate"

    @property
    def rank(self) -> int:
        return TIER_ORDER[self]

    @property
    def badge(self) -> str:
        return self.value.title()


TIER_ORDER = {Tier.FREE: 0, Tier.PREMIUM: 1, Tier.ULTIMATE: 2}


def parse_tier(value: str | Tier | None) -> Tier | None:
    """Parse a tier name. Empty or unknown values mean "not detected"."""
    if value is None or isinstance(value, Tier):
        return value
    try:
        return Tier(value.strip().lower())
    except ValueError:
        return None


def is_tier_sufficient(available: Tier | None, required: Tier) -> bool:
    if available is None:
        return True
    return available.rank >= required.rank


def action_tier(tool: ToolDefinition, action: str | None = None) -> Tier:
    """Tier required for ``action`` of ``tool``; the tool default when unknown."""
    if action is not None:
        spec = tool.action(action)
        if spec is not None:
            return spec.tier
    return tool.tier


def highest_tier(tool: ToolDefinition) -> Tier:
    highest = tool.tier
    for spec in tool.actions:
        if spec.tier.rank > highest.rank:
            highest = spec.tier
    return highest


def tier_from_plan(plan: str | None) -> Tier | None:
    """Map a license plan name (including legacy names) to a tier."""
    plan = (plan or "").strip().lower()
    if "ultimate" in plan or "gold" in plan:
        return Tier.ULTIMATE
    if "premium" in plan or "silver" in plan:
        return Tier.PREMIUM
    if plan in ("free", "core"):
        return Tier.FREE
    return None


def unmet_actions(tool: ToolDefinition, available: Tier | None) -> list[str]:
    """Actions the ``available`` tier cannot run."""
    if available is None:
        return []
    return [spec.name for spec in tool.actions if not is_tier_sufficient(available, spec.tier)]
