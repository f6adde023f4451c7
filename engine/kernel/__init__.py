"""
Preview Kernel — the pure engine.

Four components:
  file_system   — in-memory project tree + the assistant's edit commands
  transform     — snapshot → compiled modules (jsx_compiler) + style blob
  import_map    — compiled modules → specifier → module URL map
  preview_html  — import map + styles + errors → preview document

Nothing here does IO. A refresh is one synchronous pass over one snapshot.
"""

from engine.kernel.file_system import VirtualFileSystem, normalize_path
from engine.kernel.import_map import create_import_map, data_url
from engine.kernel.jsx_compiler import CompileError, compile_module
from engine.kernel.preview_html import create_preview_html, render_no_preview
from engine.kernel.transform import transform_files, transform_jsx
from engine.kernel.types import PREVIEW_SANDBOX, CompileFailure, FileNode, ImportMapResult, TransformResult

__all__ = [
    "VirtualFileSystem",
    "normalize_path",
    "compile_module",
    "CompileError",
    "transform_jsx",
    "transform_files",
    "create_import_map",
    "data_url",
    "create_preview_html",
    "render_no_preview",
    "FileNode",
    "TransformResult",
    "ImportMapResult",
    "CompileFailure",
    "PREVIEW_SANDBOX",
]
