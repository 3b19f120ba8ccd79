"""Input schemas for repository file tools."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .base import Paginated, ToolInput
from .core import ProjectId


class GetRepositoryTree(Paginated):
    project_id: ProjectId
    path: str | None = Field(None, description="Directory inside the repository")
    ref: str | None = Field(None, description="Branch, tag or commit (default branch if omitted)")
    recursive: bool | None = None


class GetFileContents(ToolInput):
    project_id: ProjectId
    file_path: str = Field(min_length=1, description="Path of the file in the repository")
    ref: str | None = None


class CreateOrUpdateFile(ToolInput):
    project_id: ProjectId
    file_path: str = Field(min_length=1)
    branch: str = Field(min_length=1)
    content: str
    commit_message: str = Field(min_length=1)
    encoding: Literal["text", "base64"] | None = None
    start_branch: str | None = None
    author_email: str | None = None
    author_name: str | None = None
    last_commit_id: str | None = None
    execute_filemode: bool | None = None


class FileChange(BaseModel):
    file_path: str = Field(min_length=1)
    content: str
    encoding: Literal["text", "base64"] | None = None
    execute_filemode: bool | None = None


class PushFiles(ToolInput):
    project_id: ProjectId
    branch: str = Field(min_length=1)
    commit_message: str = Field(min_length=1)
    files: list[FileChange] = Field(min_length=1)
    start_branch: str | None = None
    author_email: str | None = None
    author_name: str | None = None


class UploadMarkdown(ToolInput):
    project_id: ProjectId
    file: str = Field(min_length=1, description="Base64-encoded file content")
    filename: str = Field(min_length=1)
