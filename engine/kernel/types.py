"""
Preview Kernel — Shared Types

Data classes and constants used across the file system, the transform
pipeline, the import map builder and the preview document.
These are the contracts that bind the kernel together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Extension classification
# ---------------------------------------------------------------------------

SCRIPT_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx")
TYPESCRIPT_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx")
STYLESHEET_EXTENSION = ".css"

# Order matters: placeholder lookup tries these suffixes in this order
RESOLVE_EXTENSIONS: tuple[str, ...] = (".jsx", ".tsx", ".js", ".ts")

SCRIPT_EXTENSION_PATTERN = re.compile(r"\.(jsx?|tsx?)$")

# `@/components/Button` → `/components/Button`
ALIAS_PREFIX = "@/"

DEFAULT_ESM_CDN = "https://esm.sh"

# Modules every preview gets regardless of what the project imports
CORE_MODULES: dict[str, str] = {
    "react": "react@19",
    "react-dom": "react-dom@19",
    "react-dom/client": "react-dom@19/client",
    "react/jsx-runtime": "react@19/jsx-runtime",
    "react/jsx-dev-runtime": "react@19/jsx-dev-runtime",
}

# Isolation the host must apply to the preview frame
PREVIEW_SANDBOX = "allow-scripts allow-same-origin allow-forms"

FileKind = Literal["script", "stylesheet", "ignored"]
NodeType = Literal["file", "directory"]


def classify_path(path: str) -> FileKind:
    """Classify a snapshot path by extension."""
    if path.endswith(SCRIPT_EXTENSIONS):
        return "script"
    if path.endswith(STYLESHEET_EXTENSION):
        return "stylesheet"
    return "ignored"


def strip_script_extension(path: str) -> str:
    return SCRIPT_EXTENSION_PATTERN.sub("", path)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class FileNode:
    """
    A file or directory entry in the virtual tree.

    Directories keep an ordered set of child *names*; the node for a child
    lives in the owning tree's flat index under `path + "/" + name`.
    `children` is a dict used as an insertion-ordered set.
    """

    type: NodeType
    name: str
    path: str
    content: str | None = None
    children: dict[str, None] | None = None

    @property
    def is_directory(self) -> bool:
        return self.type == "directory"

    @property
    def is_file(self) -> bool:
        return self.type == "file"

    def to_dict(self) -> dict[str, Any]:
        # Directories omit content and children to keep the shape flat
        d: dict[str, Any] = {"type": self.type, "name": self.name, "path": self.path}
        if self.type == "file":
            d["content"] = self.content if self.content is not None else ""
        return d


@dataclass
class CompileFailure:
    """One file that failed to compile. Shown in the preview error panel."""

    path: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "error": self.error}


@dataclass
class TransformResult:
    """
    Per-file outcome of the transform pipeline.

    `error` is None on success. On failure `code` is empty and the import
    sets are empty: nothing from a failed file reaches the import map.
    """

    path: str
    code: str = ""
    error: str | None = None
    imports: list[str] = field(default_factory=list)
    css_imports: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ImportMapResult:
    """What the import map builder hands to the preview document."""

    import_map: str
    styles: str
    errors: list[CompileFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "import_map": self.import_map,
            "styles": self.styles,
            "errors": [e.to_dict() for e in self.errors],
        }
