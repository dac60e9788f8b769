"""File operation tools: read_file, write_file, list_directory.

Paths are relative to the workspace root. The router has already
checked the target against the sandbox roots by the time a handler
runs, so handlers only deal with existence and I/O.
"""

from __future__ import annotations

import asyncio
import codecs
from pathlib import Path
from typing import Any

from loongclaw.exceptions import NotFoundError, ParameterValidationError
from loongclaw.tools.context import ToolContext
from loongclaw.tools.models import ToolCategory, ToolDefinition
from loongclaw.tools.registry import RegisteredTool

DEFAULT_ENCODING = "utf-8"


def _encoding(args: dict[str, Any]) -> str:
    encoding = args.get("encoding") or DEFAULT_ENCODING
    try:
        codecs.lookup(encoding)
    except (LookupError, TypeError) as e:
        raise ParameterValidationError(f"unknown encoding: {encoding}", parameter="encoding") from e
    return encoding


async def _read_file(args: dict[str, Any], context: ToolContext) -> str:
    path = context.resolve_path(args["path"])
    encoding = _encoding(args)

    if not path.exists():
        raise NotFoundError("file not found", target=args["path"])
    if not path.is_file():
        raise ParameterValidationError(f"not a file: {args['path']}", parameter="path")

    return await asyncio.to_thread(path.read_text, encoding=encoding)


def _write(path: Path, content: str, encoding: str) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode(encoding)
    path.write_bytes(data)
    return len(data)


async def _write_file(args: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    path = context.resolve_path(args["path"])
    content = args["content"]
    encoding = _encoding(args)

    if not isinstance(content, str):
        raise ParameterValidationError("malformed parameter: content must be a string", parameter="content")
    if path.is_dir():
        raise ParameterValidationError(f"is a directory: {args['path']}", parameter="path")

    written = await asyncio.to_thread(_write, path, content, encoding)
    return {
        "success": True,
        "path": context.sandbox.relative_to_workspace(path),
        "bytes": written,
    }


def _scan(path: Path) -> list[dict[str, str]]:
    return [
        {"name": entry.name, "type": "directory" if entry.is_dir() else "file"}
        for entry in sorted(path.iterdir(), key=lambda p: p.name)
    ]


async def _list_directory(args: dict[str, Any], context: ToolContext) -> list[dict[str, str]]:
    raw = args.get("path") or "."
    path = context.resolve_path(raw)

    if not path.exists():
        raise NotFoundError("directory not found", target=raw)
    if not path.is_dir():
        raise ParameterValidationError(f"not a directory: {raw}", parameter="path")

    return await asyncio.to_thread(_scan, path)


READ_FILE_TOOL = RegisteredTool(
    definition=ToolDefinition(
        name="read_file",
        description="Read the text content of a file in the workspace.",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "File path, relative to the workspace",
                },
                "encoding": {
                    "type": "string",
                    "description": "File encoding (default: utf-8)",
                    "default": DEFAULT_ENCODING,
                },
            },
            "required": ["path"],
        },
    ),
    handler=_read_file,
    category=ToolCategory.FILE_SYSTEM,
    path_argument="path",
)


WRITE_FILE_TOOL = RegisteredTool(
    definition=ToolDefinition(
        name="write_file",
        description="Write content to a file in the workspace, creating it and its parent directories if needed.",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "File path, relative to the workspace",
                },
                "content": {
                    "type": "string",
                    "description": "Content to write",
                },
                "encoding": {
                    "type": "string",
                    "description": "File encoding (default: utf-8)",
                    "default": DEFAULT_ENCODING,
                },
            },
            "required": ["path", "content"],
        },
    ),
    handler=_write_file,
    category=ToolCategory.FILE_SYSTEM,
    path_argument="path",
)


LIST_DIRECTORY_TOOL = RegisteredTool(
    definition=ToolDefinition(
        name="list_directory",
        description="List the entries of a directory in the workspace.",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Directory path, relative to the workspace",
                    "default": ".",
                },
            },
            "required": [],
        },
    ),
    handler=_list_directory,
    category=ToolCategory.FILE_SYSTEM,
    path_argument="path",
)
