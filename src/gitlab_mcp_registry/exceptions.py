"""GitLab MCP registry exceptions."""

from __future__ import annotations


class GitLabError(Exception):
    """Base exception for GitLab operations."""


class GitLabApiError(GitLabError):
    """Raised when the GitLab API returns a non-success response."""

    def __init__(self, status_code: int, status_text: str, details: str = "") -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = details
        message = f"GitLab API error: {status_code} {status_text}"
        if details:
            message = f"{message} - {details}"
        super().__init__(message)


class GitLabAuthError(GitLabApiError):
    """Raised on 401/403 authentication failures."""

    def __init__(self, status_code: int, details: str = "") -> None:
        status_text = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, status_text, details)


class GitLabNotFoundError(GitLabApiError):
    """Raised on 404 responses."""

    def __init__(self, details: str = "") -> None:
        super().__init__(404, "Not Found", details)


class NamespaceNotFoundError(GitLabNotFoundError):
    """Raised when a path matches neither a project nor a group."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        super().__init__(f"Namespace '{namespace}' not found as project or group")


class GitLabTimeoutError(GitLabError):
    """Raised when a request exceeds the configured deadline."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"GitLab API timeout after {timeout_ms}ms")


class GitLabGraphQLError(GitLabError):
    """Raised when a GraphQL response carries errors."""

    def __init__(self, errors: list) -> None:
        self.errors = errors
        messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors]
        super().__init__(f"GitLab GraphQL errors: {', '.join(messages)}")


class ToolNotFoundError(GitLabError):
    """Raised when dispatch is asked for an unregistered tool."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found in any registry")


class ActionNotAllowedError(GitLabError):
    """Raised when an action is rejected by a deny rule before any request is sent."""

    def __init__(self, tool: str, action: str, message: str | None = None) -> None:
        self.tool = tool
        self.action = action
        super().__init__(message or f"Action '{action}' is not allowed for {tool} tool")


class ReadOnlyModeError(ActionNotAllowedError):
    """Raised when a mutating action is attempted in read-only mode."""

    def __init__(self, tool: str, action: str, permitted: list[str]) -> None:
        allowed = ", ".join(f"'{a}'" for a in permitted) or "no"
        noun = "action is" if len(permitted) == 1 else "actions are"
        super().__init__(
            tool,
            action,
            f"Action '{action}' is not allowed in read-only mode. Only {allowed} {noun} permitted.",
        )


class TierNotSufficientError(ActionNotAllowedError):
    """Raised when an action needs a higher GitLab tier than the instance has."""

    def __init__(self, tool: str, action: str, required: str, available: str) -> None:
        self.required = required
        self.available = available
        super().__init__(
            tool,
            action,
            f"Action '{action}' of {tool} requires GitLab {required.title()} "
            f"(instance tier: {available.title()})",
        )


class ProfileError(GitLabError):
    """Raised when a profile or preset cannot be found or parsed."""


class ScopeViolationError(GitLabError):
    """Raised when a call targets a project or group outside the allowed scope."""

    def __init__(self, target: str, scope: str) -> None:
        self.target = target
        self.scope = scope
        super().__init__(f"Operation on '{target}' is outside the allowed scope ({scope})")
