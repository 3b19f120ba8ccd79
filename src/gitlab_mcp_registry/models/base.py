"""Base models for tool inputs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ToolInput(BaseModel):
    """Base model with common behavior for all tool input schemas."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    def to_params(self, *exclude: str) -> dict[str, Any]:
        """Dump set fields for a query string or request body, minus ``exclude``."""
        return self.model_dump(
            mode="json", exclude_none=True, exclude={"action", "scope", *exclude}
        )


class Paginated(ToolInput):
    per_page: int | None = Field(None, ge=1, le=100, description="Items per page (max 100)")
    page: int | None = Field(None, ge=1, description="Page number")
