"""
Preview service — one refresh of the live preview.

Picks the entry file, runs the kernel pipeline over a snapshot and returns
the finished document. This is the only place that catches unexpected
kernel faults: they are logged and rendered as the "No Preview Available"
page.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from backend.config import settings
from engine.kernel.import_map import create_import_map
from engine.kernel.preview_html import create_preview_html, render_no_preview
from engine.kernel.types import CompileFailure

logger = logging.getLogger(__name__)

PreviewStatus = Literal["ok", "empty", "no_entry", "failed"]

ENTRY_CANDIDATES: tuple[str, ...] = (
    "/App.jsx",
    "/App.tsx",
    "/index.jsx",
    "/index.tsx",
    "/src/App.jsx",
    "/src/App.tsx",
)

NO_FILES_MESSAGE = "No files to preview"
NO_ENTRY_MESSAGE = "No React component found. Create an App.jsx or index.jsx file to get started."


@dataclass
class PreviewResult:
    """A rendered preview and how it came out."""

    status: PreviewStatus
    html: str
    entry_point: str | None = None
    errors: list[CompileFailure] = field(default_factory=list)


def find_entry_point(files: Mapping[str, str], preferred: str | None = None) -> str | None:
    """
    Entry file for a snapshot: the preferred one if present, else the first
    conventional entry, else the first .jsx/.tsx file.
    """
    if preferred and preferred in files:
        return preferred
    for candidate in ENTRY_CANDIDATES:
        if candidate in files:
            return candidate
    return next((path for path in files if path.endswith((".jsx", ".tsx"))), None)


def render_preview(files: Mapping[str, str], entry_point: str | None = None) -> PreviewResult:
    """
    Render one refresh of the preview. Never raises.

    Args:
        files: path → content snapshot
        entry_point: entry the caller would like; falls back to discovery

    Returns:
        PreviewResult; html is always a complete document
    """
    if not files:
        return PreviewResult(status="empty", html=render_no_preview(NO_FILES_MESSAGE))

    entry = find_entry_point(files, entry_point or settings.DEFAULT_ENTRY_POINT)
    if entry is None:
        return PreviewResult(status="no_entry", html=render_no_preview(NO_ENTRY_MESSAGE))

    try:
        built = create_import_map(files, cdn_url=settings.ESM_CDN_URL)
        html = create_preview_html(
            entry,
            built.import_map,
            built.styles,
            built.errors,
            tailwind_url=settings.TAILWIND_CDN_URL,
        )
    except Exception as e:
        logger.exception("preview: refresh failed for entry %s", entry)
        return PreviewResult(status="failed", html=render_no_preview(str(e) or type(e).__name__), entry_point=entry)

    if built.errors:
        logger.info("preview: %d file(s) failed to compile", len(built.errors))
    return PreviewResult(status="ok", html=html, entry_point=entry, errors=built.errors)
