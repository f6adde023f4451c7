"""Preview routes — render the live preview document for a project snapshot."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from backend.config import settings
from backend.models.project import PreviewRequest
from backend.services.file_tools import load_project
from backend.services.preview_service import render_preview
from engine.kernel.types import PREVIEW_SANDBOX

router = APIRouter(prefix="/api", tags=["preview"])


@router.post("/preview", response_class=HTMLResponse)
async def preview(req: PreviewRequest) -> HTMLResponse:
    """
    Render the preview document for the files in the request.

    The response carries a sandbox CSP so the page runs isolated even when
    opened directly. X-Preview-Status says which page came back.
    """
    if len(req.files) > settings.MAX_PROJECT_FILES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Projects are limited to {settings.MAX_PROJECT_FILES} files.",
        )

    snapshot = load_project(req.files).get_all_files()
    result = render_preview(snapshot, req.entry_point)
    return HTMLResponse(
        content=result.html,
        headers={
            "Content-Security-Policy": f"sandbox {PREVIEW_SANDBOX}",
            "X-Preview-Status": result.status,
        },
    )
