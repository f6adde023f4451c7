"""
Pydantic models for the preview service.

All data shapes defined here. No imports from routes or services.
"""

from backend.models.project import (
    FileNodeModel,
    PreviewRequest,
    ProjectFiles,
    ToolRequest,
    ToolResponse,
)
from backend.models.tools import FileManagerInput, StrReplaceEditorInput

__all__ = [
    "FileNodeModel",
    "ProjectFiles",
    "PreviewRequest",
    "ToolRequest",
    "ToolResponse",
    "StrReplaceEditorInput",
    "FileManagerInput",
]
