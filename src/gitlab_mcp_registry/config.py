"""GitLab MCP registry configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_API_URL = "https://gitlab.com/api/v4"

_FALSE_VALUES = ("false", "0", "no")
_TRUE_VALUES = ("true", "1", "yes")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable. Unset falls back to ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if default:
        return value not in _FALSE_VALUES
    return value in _TRUE_VALUES


def normalize_api_url(url: str | None) -> str:
    """Return ``url`` with a trailing ``/api/v4``, defaulting to gitlab.com."""
    if not url:
        return DEFAULT_API_URL
    url = url.strip().rstrip("/")
    if not url.endswith("/api/v4"):
        url = f"{url}/api/v4"
    return url


def parse_list(raw: str | None) -> list[str]:
    """Split a comma separated value, dropping blanks."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_denied_actions(raw: str | list[str] | None) -> frozenset[tuple[str, str]]:
    """Parse ``tool:action`` pairs (case-insensitive). Malformed entries are skipped."""
    items = parse_list(raw) if isinstance(raw, str) or raw is None else raw
    pairs = set()
    for item in items:
        tool, sep, action = item.partition(":")
        tool, action = tool.strip().lower(), action.strip().lower()
        if sep and tool and action:
            pairs.add((tool, action))
    return frozenset(pairs)


@dataclass
class GitLabConfig:
    """Configuration for the GitLab MCP server, loaded from environment variables."""

    url: str = DEFAULT_API_URL
    token: str = ""
    read_only: bool = False
    timeout_ms: int = 20000
    ssl_verify: bool = True
    ca_cert_path: str | None = None
    ssl_cert_path: str | None = None
    ssl_key_path: str | None = None
    proxy: str | None = None
    tier: str | None = None
    detect_tier: bool = True
    allowed_tools: list[str] = field(default_factory=list)
    denied_tools_regex: str | None = None
    denied_actions: frozenset[tuple[str, str]] = frozenset()
    allowed_projects: list[str] = field(default_factory=list)
    allowed_groups: list[str] = field(default_factory=list)
    default_project: str | None = None
    default_namespace: str | None = None

    @classmethod
    def from_env(cls) -> GitLabConfig:
        url = normalize_api_url(os.getenv("GITLAB_API_URL") or os.getenv("GITLAB_URL"))
        token = (
            os.getenv("GITLAB_TOKEN")
            or os.getenv("GITLAB_PAT")
            or os.getenv("GITLAB_PERSONAL_ACCESS_TOKEN")
            or os.getenv("GITLAB_API_TOKEN", "")
        )
        read_only = (
            env_flag("GITLAB_READ_ONLY_MODE")
            or env_flag("GITLAB_READONLY")
            or env_flag("GITLAB_READ_ONLY")
        )
        timeout_ms = int(os.getenv("GITLAB_API_TIMEOUT_MS", "20000"))
        ssl_verify = env_flag("GITLAB_SSL_VERIFY", default=True)
        tier = os.getenv("GITLAB_TIER", "").strip().lower() or None

        return cls(
            url=url,
            token=token,
            read_only=read_only,
            timeout_ms=timeout_ms,
            ssl_verify=ssl_verify,
            ca_cert_path=os.getenv("GITLAB_CA_CERT_PATH") or None,
            ssl_cert_path=os.getenv("SSL_CERT_PATH") or None,
            ssl_key_path=os.getenv("SSL_KEY_PATH") or None,
            proxy=os.getenv("HTTPS_PROXY") or os.getenv("HTTP_PROXY") or None,
            tier=tier,
            detect_tier=env_flag("GITLAB_DETECT_TIER", default=True),
            allowed_tools=parse_list(os.getenv("GITLAB_ALLOWED_TOOLS")),
            denied_tools_regex=os.getenv("GITLAB_DENIED_TOOLS_REGEX") or None,
            denied_actions=parse_denied_actions(os.getenv("GITLAB_DENIED_ACTIONS")),
            allowed_projects=parse_list(os.getenv("GITLAB_ALLOWED_PROJECT_IDS")),
            allowed_groups=parse_list(os.getenv("GITLAB_ALLOWED_GROUP_IDS")),
            default_project=os.getenv("GITLAB_PROJECT_ID") or None,
            default_namespace=os.getenv("GITLAB_DEFAULT_NAMESPACE") or None,
        )

    @property
    def api_url(self) -> str:
        return normalize_api_url(self.url)

    @property
    def graphql_url(self) -> str:
        return self.api_url[: -len("/api/v4")] + "/api/graphql"

    @property
    def timeout(self) -> float:
        return self.timeout_ms / 1000

    def validate(self) -> None:
        if not self.url:
            msg = "GITLAB_API_URL environment variable is required"
            raise ValueError(msg)
        if not self.token:
            msg = (
                "GitLab token is required. Set one of: GITLAB_TOKEN, GITLAB_PAT, "
                "GITLAB_PERSONAL_ACCESS_TOKEN, or GITLAB_API_TOKEN"
            )
            raise ValueError(msg)
        for label, path in (
            ("CA certificate", self.ca_cert_path),
            ("SSL certificate", self.ssl_cert_path),
            ("SSL key", self.ssl_key_path),
        ):
            if path and not os.path.isfile(path):
                msg = f"{label} not found: {path}"
                raise ValueError(msg)
        if self.ssl_key_path and not self.ssl_cert_path:
            msg = "SSL_KEY_PATH requires SSL_CERT_PATH"
            raise ValueError(msg)
