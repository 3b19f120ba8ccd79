"""Project and group scope restrictions applied to tool arguments at call time."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import ScopeViolationError

logger = logging.getLogger(__name__)

# Argument names that identify the project or group a call operates on
TARGET_ARGUMENTS = (
    "project_id",
    "projectId",
    "project",
    "namespace",
    "namespacePath",
    "fullPath",
    "group_id",
    "groupId",
)


def normalize_path(value: str) -> str:
    """Trim slashes and lowercase paths; numeric IDs are kept as they are."""
    value = value.strip().strip("/")
    return value if value.isdigit() else value.lower()


def extract_targets(arguments: Mapping[str, Any]) -> list[str]:
    targets = []
    for name in TARGET_ARGUMENTS:
        value = arguments.get(name)
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip():
            targets.append(value.strip())
    return targets


@dataclass(frozen=True)
class ProjectScope:
    """Allowed projects (exact paths or IDs) and groups (the group and everything under it)."""

    projects: frozenset[str] = frozenset()
    groups: frozenset[str] = frozenset()

    @classmethod
    def of(cls, projects: Iterable[str] = (), groups: Iterable[str] = ()) -> ProjectScope:
        return cls(
            projects=frozenset(normalize_path(p) for p in projects if p.strip()),
            groups=frozenset(normalize_path(g) for g in groups if g.strip()),
        )

    @property
    def restricted(self) -> bool:
        return bool(self.projects or self.groups)

    def describe(self) -> str:
        parts = []
        if self.projects:
            parts.append("projects: " + ", ".join(sorted(self.projects)))
        if self.groups:
            parts.append("groups: " + ", ".join(f"{g}/*" for g in sorted(self.groups)))
        return "; ".join(parts) or "unrestricted"

    def is_allowed(self, target: str) -> bool:
        if not self.restricted:
            return True
        path = normalize_path(target)
        if path in self.projects:
            return True
        # Numeric IDs cannot be matched against group paths without an API call
        if path.isdigit():
            return path in self.groups
        return any(path == group or path.startswith(f"{group}/") for group in self.groups)

    def enforce(self, arguments: Mapping[str, Any]) -> None:
        """Raise ``ScopeViolationError`` for the first out-of-scope target in ``arguments``."""
        if not self.restricted:
            return
        for target in extract_targets(arguments):
            if not self.is_allowed(target):
                logger.warning("Scope violation: '%s' outside %s", target, self.describe())
                raise ScopeViolationError(target, self.describe())
