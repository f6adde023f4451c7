"""
File tool dispatch — runs the assistant's tool calls against a project tree.

The tree is always passed in. Callers build one per session (or per
request) and serialize it back when they are done.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from backend.models.project import FileNodeModel
from backend.models.tools import FileManagerInput, StrReplaceEditorInput
from backend.services.tool_defs import FILE_MANAGER, STR_REPLACE_EDITOR
from engine.kernel.file_system import VirtualFileSystem

logger = logging.getLogger(__name__)

UNDO_NOT_SUPPORTED = "Error: undo_edit command is not supported in this version. Use str_replace to revert changes."


class UnknownTool(Exception):
    """Tool name is not one of TOOLS."""
    pass


def load_project(files: Mapping[str, FileNodeModel | str | Mapping[str, Any]]) -> VirtualFileSystem:
    """
    Build a tree from serialized request data.

    Accepts path → descriptor (as serialize() produces), path → raw content,
    or a mix of both.
    """
    fs = VirtualFileSystem()
    nodes: dict[str, Mapping[str, Any]] = {}
    for path, value in files.items():
        if isinstance(value, str):
            nodes[path] = {"type": "file", "content": value}
        elif isinstance(value, BaseModel):
            nodes[path] = value.model_dump()
        else:
            nodes[path] = value
    fs.deserialize_from_nodes(nodes)
    return fs


def run_str_replace_editor(fs: VirtualFileSystem, args: StrReplaceEditorInput) -> str:
    if args.command == "view":
        return fs.view_file(args.path, args.view_range)
    if args.command == "create":
        return fs.create_file_with_parents(args.path, args.file_text or "")
    if args.command == "str_replace":
        return fs.replace_in_file(args.path, args.old_str or "", args.new_str or "")
    if args.command == "insert":
        return fs.insert_in_file(args.path, args.insert_line or 0, args.new_str or "")
    return UNDO_NOT_SUPPORTED


def run_file_manager(fs: VirtualFileSystem, args: FileManagerInput) -> dict[str, Any]:
    if args.command == "rename":
        if not args.new_path:
            return {"success": False, "error": "new_path is required for rename command"}
        if fs.rename(args.path, args.new_path):
            return {"success": True, "message": f"Successfully renamed {args.path} to {args.new_path}"}
        return {"success": False, "error": f"Failed to rename {args.path} to {args.new_path}"}

    if fs.delete_file(args.path):
        return {"success": True, "message": f"Successfully deleted {args.path}"}
    return {"success": False, "error": f"Failed to delete {args.path}"}


def execute_tool(fs: VirtualFileSystem, tool_name: str, tool_input: dict[str, Any]) -> str | dict[str, Any]:
    """
    Run one tool call. Bad input comes back as an error result, not an exception,
    so the assistant can read it and retry.

    Raises:
        UnknownTool: tool_name is not a defined tool
    """
    try:
        if tool_name == STR_REPLACE_EDITOR:
            return run_str_replace_editor(fs, StrReplaceEditorInput.model_validate(tool_input))
        if tool_name == FILE_MANAGER:
            return run_file_manager(fs, FileManagerInput.model_validate(tool_input))
    except ValidationError as e:
        logger.warning("file_tools: invalid input for %s: %s", tool_name, e.errors())
        message = f"Error: Invalid input for {tool_name}: {e.error_count()} validation error(s)"
        return message if tool_name == STR_REPLACE_EDITOR else {"success": False, "error": message}

    raise UnknownTool(tool_name)
