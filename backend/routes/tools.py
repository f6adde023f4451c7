"""Tool routes — run one of the assistant's file tools against a project."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from backend.config import settings
from backend.models.project import ToolRequest, ToolResponse
from backend.services.file_tools import execute_tool, load_project
from backend.services.tool_defs import TOOL_NAMES, TOOLS

router = APIRouter(prefix="/api/tools", tags=["tools"])


@router.get("")
async def list_tools() -> list[dict]:
    """Tool definitions, in the shape the model API expects."""
    return TOOLS


@router.post("/{tool_name}")
async def run_tool(tool_name: str, req: ToolRequest) -> ToolResponse:
    """
    Apply one tool call to the files in the request.

    Rebuilds the tree from the request, runs the tool, and returns the
    result with the updated tree. Nothing is kept between requests.
    """
    if tool_name not in TOOL_NAMES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown tool: {tool_name}")
    if len(req.files) > settings.MAX_PROJECT_FILES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Projects are limited to {settings.MAX_PROJECT_FILES} files.",
        )

    fs = load_project(req.files)
    result = execute_tool(fs, tool_name, req.input)
    return ToolResponse(result=result, files=fs.serialize())
