"""Helpers shared by the tool handlers: path encoding, query building, GraphQL IDs."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

GID_PREFIX = "gid://gitlab/"

GID_TYPES = {
    "WorkItem": "WorkItem",
    "User": "User",
    "Project": "Project",
    "Group": "Group",
    "Label": "ProjectLabel",
    "Milestone": "Milestone",
    "MergeRequest": "MergeRequest",
    "Pipeline": "Ci::Pipeline",
    "Job": "Ci::Build",
    "Variable": "Ci::Variable",
    "Wiki": "Wiki",
    "Note": "Note",
    "Discussion": "Discussion",
}


def encode_id(value: str | int) -> str:
    """Encode a project/group ID. Numeric IDs pass through; paths are URL-encoded."""
    if isinstance(value, int):
        return str(value)
    try:
        return str(int(value))
    except ValueError:
        return quote(value, safe="")


def encode_segment(value: str | int) -> str:
    return quote(str(value), safe="")


def to_query(options: dict[str, Any], exclude: Iterable[str] = ()) -> dict[str, Any]:
    """Drop ``None`` values and excluded keys; lists become comma separated."""
    skip = set(exclude)
    query: dict[str, Any] = {}
    for key, value in options.items():
        if key in skip or value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        query[key] = value
    return query


def compact(data: dict[str, Any], exclude: Iterable[str] = ()) -> dict[str, Any]:
    """Copy ``data`` without ``None`` values and excluded keys (request bodies)."""
    skip = set(exclude)
    return {k: v for k, v in data.items() if v is not None and k not in skip}


# ── Global IDs ────────────────────────────────────────────────


def extract_simple_id(gid: Any) -> Any:
    """``gid://gitlab/Type/42`` -> ``"42"``. Other values are returned unchanged."""
    if isinstance(gid, str) and gid.startswith(GID_PREFIX):
        return gid.rsplit("/", 1)[-1]
    return gid


def to_gid(value: str | int, entity_type: str) -> str:
    value = str(value)
    if value.startswith(GID_PREFIX):
        return value
    return f"{GID_PREFIX}{GID_TYPES[entity_type]}/{value}"


def to_gids(values: Iterable[str | int], entity_type: str) -> list[str]:
    return [to_gid(v, entity_type) for v in values]


def clean_gids(obj: Any) -> Any:
    """Recursively replace global ID strings with their short numeric form."""
    if isinstance(obj, list):
        return [clean_gids(item) for item in obj]
    if isinstance(obj, dict):
        return {key: clean_gids(value) for key, value in obj.items()}
    return extract_simple_id(obj)
