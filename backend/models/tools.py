"""Input models for the assistant's file tools."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class StrReplaceEditorInput(BaseModel):
    """Arguments of the str_replace_editor tool."""

    command: Literal["view", "create", "str_replace", "insert", "undo_edit"]
    path: str
    file_text: str | None = None
    insert_line: int | None = None
    new_str: str | None = None
    old_str: str | None = None
    view_range: list[int] | None = None


class FileManagerInput(BaseModel):
    """Arguments of the file_manager tool."""

    command: Literal["rename", "delete"]
    path: str
    new_path: str | None = None
