"""Input schemas for CI/CD variable tools."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .base import Paginated, ToolInput

Namespace = Annotated[str, Field(min_length=1, description="Project or group path")]
Key = Annotated[str, Field(min_length=1, max_length=255, description="Variable key")]


class ScopeFilter(BaseModel):
    environment_scope: str | None = Field(None, description="Environment scope, e.g. 'production'")


class ListVariables(Paginated):
    action: Literal["list"]
    namespace: Namespace


class GetVariable(ToolInput):
    action: Literal["get"]
    namespace: Namespace
    key: Key
    filter: ScopeFilter | None = None


BrowseVariables = TypeAdapter(
    Annotated[Union[ListVariables, GetVariable], Field(discriminator="action")]
)


class _VariableSettings(ToolInput):
    variable_type: Literal["env_var", "file"] | None = None
    environment_scope: str | None = None
    protected: bool | None = None
    masked: bool | None = None
    raw: bool | None = None
    description: str | None = None


class CreateVariable(_VariableSettings):
    action: Literal["create"]
    namespace: Namespace
    key: Key
    value: str


class UpdateVariable(_VariableSettings):
    action: Literal["update"]
    namespace: Namespace
    key: Key
    value: str | None = None
    filter: ScopeFilter | None = None


class DeleteVariable(ToolInput):
    action: Literal["delete"]
    namespace: Namespace
    key: Key
    filter: ScopeFilter | None = None


ManageVariable = TypeAdapter(
    Annotated[Union[CreateVariable, UpdateVariable, DeleteVariable], Field(discriminator="action")]
)
