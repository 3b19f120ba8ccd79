"""Repository file tools: tree, contents, commits and uploads."""

from __future__ import annotations

import base64
from typing import Any

from ..models import files as m
from ..utils import compact, encode_id, encode_segment, to_query
from .base import EntityRegistry, EnvGate, ToolDefinition


class FileRegistry(EntityRegistry):
    name = "files"
    gate = EnvGate("USE_FILES", True)
    read_only_tools = ("get_repository_tree", "get_file_contents")

    def build(self) -> list[ToolDefinition]:
        return [
            self.define(
                "get_repository_tree",
                "BROWSE FILES: list files and folders without their content (blob=file, "
                "tree=folder). Set recursive=true for the full tree.",
                m.GetRepositoryTree,
                self.get_repository_tree,
            ),
            self.define(
                "get_file_contents",
                "READ FILE: return the raw content of a file at a branch, tag or commit.",
                m.GetFileContents,
                self.get_file_contents,
            ),
            self.define(
                "create_or_update_file",
                "SINGLE FILE COMMIT: create or update one file in a single commit.",
                m.CreateOrUpdateFile,
                self.create_or_update_file,
            ),
            self.define(
                "push_files",
                "BATCH COMMIT: create several files atomically in one commit.",
                m.PushFiles,
                self.push_files,
            ),
            self.define(
                "upload_markdown",
                "UPLOAD ASSET: upload a base64 file to project uploads and get a markdown "
                "link for issues, merge requests or wikis.",
                m.UploadMarkdown,
                self.upload_markdown,
            ),
        ]

    async def get_repository_tree(self, args: dict[str, Any]) -> Any:
        inp = m.GetRepositoryTree.model_validate(args)
        path = f"projects/{encode_id(inp.project_id)}/repository/tree"
        return await self.client.get(path, to_query(inp.to_params("project_id")) or None)

    async def get_file_contents(self, args: dict[str, Any]) -> Any:
        inp = m.GetFileContents.model_validate(args)
        path = (
            f"projects/{encode_id(inp.project_id)}/repository/files/"
            f"{encode_segment(inp.file_path)}/raw"
        )
        params = {"ref": inp.ref} if inp.ref else None
        raw, content_type = await self.client.download(path, params)
        content = raw.decode("utf-8", errors="replace")
        return {
            "file_path": inp.file_path,
            "ref": inp.ref or "HEAD",
            "size": len(content),
            "content": content,
            "content_type": content_type or "text/plain",
        }

    async def create_or_update_file(self, args: dict[str, Any]) -> Any:
        inp = m.CreateOrUpdateFile.model_validate(args)
        path = (
            f"projects/{encode_id(inp.project_id)}/repository/files/"
            f"{encode_segment(inp.file_path)}"
        )
        return await self.client.post(path, inp.to_params("project_id", "file_path"))

    async def push_files(self, args: dict[str, Any]) -> Any:
        inp = m.PushFiles.model_validate(args)
        body = compact(
            {
                "branch": inp.branch,
                "commit_message": inp.commit_message,
                "start_branch": inp.start_branch,
                "author_email": inp.author_email,
                "author_name": inp.author_name,
            }
        )
        body["actions"] = [
            {
                "action": "create",
                "file_path": f.file_path,
                "content": f.content,
                "encoding": f.encoding or "text",
                "execute_filemode": bool(f.execute_filemode),
            }
            for f in inp.files
        ]
        path = f"projects/{encode_id(inp.project_id)}/repository/commits"
        return await self.client.post(path, body)

    async def upload_markdown(self, args: dict[str, Any]) -> Any:
        inp = m.UploadMarkdown.model_validate(args)
        content = base64.b64decode(inp.file)
        files = {"file": (inp.filename, content, "application/octet-stream")}
        return await self.client.post(f"projects/{encode_id(inp.project_id)}/uploads", files=files)
