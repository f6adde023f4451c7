"""Project models — the serialized file tree that travels with each request."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class FileNodeModel(BaseModel):
    """One entry of a serialized tree. Directories carry no content."""

    type: Literal["file", "directory"]
    name: str
    path: str
    content: str | None = None


# path → node descriptor, or path → raw file content (ancestors implied)
ProjectFiles = dict[str, FileNodeModel | str]


class PreviewRequest(BaseModel):
    """What the client sends to POST /api/preview."""

    model_config = {"extra": "forbid"}

    files: ProjectFiles = Field(default_factory=dict)
    entry_point: str | None = None


class ToolRequest(BaseModel):
    """What the client sends to POST /api/tools/{tool_name}."""

    model_config = {"extra": "forbid"}

    files: ProjectFiles = Field(default_factory=dict)
    input: dict[str, Any]


class ToolResponse(BaseModel):
    """Tool output plus the tree after the tool ran."""

    result: str | dict[str, Any]
    files: dict[str, FileNodeModel]
