"""
Preview Kernel — Virtual File System

In-memory, path-addressed tree that holds the project the assistant is
authoring. Two indexes are kept in lockstep:

  _files    — flat table: normalized path → FileNode
  children  — each directory's ordered set of child names

Every operation reports failure through its return value (None, False or
a status string). Nothing here raises for structural problems.

One writer per instance. Build a fresh instance per session or request;
there is no module-level tree.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from typing import Any

from engine.kernel.types import FileNode

logger = logging.getLogger(__name__)

ROOT = "/"

_REPEATED_SLASHES = re.compile(r"/+")


def normalize_path(path: str) -> str:
    """
    Normalize a path: leading slash, no trailing slash (except root),
    no repeated slashes.

    >>> normalize_path("//folder//file.txt")
    '/folder/file.txt'
    """
    path = _REPEATED_SLASHES.sub("/", "/" + path)
    if path != ROOT and path.endswith("/"):
        path = path[:-1]
    return path


def parent_path(path: str) -> str:
    normalized = normalize_path(path)
    if normalized == ROOT:
        return ROOT
    head = normalized.rsplit("/", 1)[0]
    return head or ROOT


def base_name(path: str) -> str:
    normalized = normalize_path(path)
    if normalized == ROOT:
        return ROOT
    return normalized.rsplit("/", 1)[1]


def _join(directory: str, name: str) -> str:
    return f"/{name}" if directory == ROOT else f"{directory}/{name}"


class VirtualFileSystem:
    """Hierarchical in-memory file store with agent-facing edit commands."""

    def __init__(self) -> None:
        self._files: dict[str, FileNode] = {}
        self.reset()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def get_node(self, path: str) -> FileNode | None:
        return self._files.get(normalize_path(path))

    def list_directory(self, path: str) -> list[FileNode] | None:
        """Children of a directory in insertion order, or None if not a directory."""
        node = self.get_node(path)
        if node is None or not node.is_directory:
            return None
        return list(self._iter_children(node))

    def read_file(self, path: str) -> str | None:
        node = self.get_node(path)
        if node is None or not node.is_file:
            return None
        return node.content or ""

    def get_all_files(self) -> dict[str, str]:
        """Snapshot of every file: path → content. The dict is a fresh copy."""
        return {path: node.content or "" for path, node in self._files.items() if node.is_file}

    def _iter_children(self, node: FileNode) -> Iterator[FileNode]:
        for name in node.children or {}:
            yield self._files[_join(node.path, name)]

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    def create_file(self, path: str, content: str = "") -> FileNode | None:
        """Create a file, creating missing ancestors. None if the path exists."""
        normalized = normalize_path(path)
        if normalized in self._files:
            return None
        parent = self._ensure_directory(parent_path(normalized))
        if parent is None:
            return None
        return self._attach(parent, FileNode(type="file", name=base_name(normalized), path=normalized, content=content))

    def create_directory(self, path: str) -> FileNode | None:
        """Create a directory, creating missing ancestors. None if the path exists."""
        normalized = normalize_path(path)
        if normalized in self._files:
            return None
        parent = self._ensure_directory(parent_path(normalized))
        if parent is None:
            return None
        return self._attach(
            parent,
            FileNode(type="directory", name=base_name(normalized), path=normalized, children={}),
        )

    def update_file(self, path: str, content: str) -> bool:
        node = self.get_node(path)
        if node is None or not node.is_file:
            return False
        node.content = content
        return True

    def delete_file(self, path: str) -> bool:
        """Remove a file, or a directory and its whole subtree. Root is never deleted."""
        normalized = normalize_path(path)
        node = self._files.get(normalized)
        if node is None or normalized == ROOT:
            return False

        parent = self._files[parent_path(normalized)]
        for descendant in list(self._walk(node)):
            del self._files[descendant.path]
        del parent.children[node.name]
        return True

    def rename(self, old_path: str, new_path: str) -> bool:
        """
        Move a node (and its subtree) to a new path.

        Fails without mutating anything when either path is root, the source
        is missing, the destination exists, the destination sits inside the
        source subtree, or a destination ancestor is a file.
        """
        old = normalize_path(old_path)
        new = normalize_path(new_path)

        if old == ROOT or new == ROOT:
            return False
        source = self._files.get(old)
        if source is None or new in self._files:
            return False
        if new.startswith(old + "/"):
            return False
        if not self._can_hold_directory(parent_path(new)):
            return False

        new_parent = self._ensure_directory(parent_path(new))
        if new_parent is None:
            return False

        # Collect the subtree before any path changes
        moved = list(self._walk(source))

        old_parent = self._files[parent_path(old)]
        del old_parent.children[source.name]

        for node in moved:
            del self._files[node.path]
        for node in moved:
            node.path = new + node.path[len(old):]
            self._files[node.path] = node

        source.name = base_name(new)
        new_parent.children[source.name] = None

        logger.debug("renamed %s -> %s (%d nodes)", old, new, len(moved))
        return True

    def reset(self) -> None:
        """Drop everything and start over with a bare root."""
        self._files.clear()
        self._files[ROOT] = FileNode(type="directory", name=ROOT, path=ROOT, children={})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _attach(self, parent: FileNode, node: FileNode) -> FileNode:
        self._files[node.path] = node
        parent.children[node.name] = None
        return node

    def _can_hold_directory(self, path: str) -> bool:
        """True if `path` and all its ancestors are directories or absent."""
        current = normalize_path(path)
        while True:
            node = self._files.get(current)
            if node is not None and not node.is_directory:
                return False
            if current == ROOT:
                return True
            current = parent_path(current)

    def _ensure_directory(self, path: str) -> FileNode | None:
        """Return the directory at `path`, creating it and its ancestors as needed."""
        node = self._files.get(path)
        if node is not None:
            return node if node.is_directory else None
        parent = self._ensure_directory(parent_path(path))
        if parent is None:
            return None
        return self._attach(parent, FileNode(type="directory", name=base_name(path), path=path, children={}))

    def _walk(self, node: FileNode) -> Iterator[FileNode]:
        """Pre-order walk of a subtree, including `node` itself."""
        yield node
        if node.is_directory:
            for child in self._iter_children(node):
                yield from self._walk(child)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(self) -> dict[str, dict[str, Any]]:
        """Flat path → descriptor mapping. Directories carry no content or children."""
        return {path: node.to_dict() for path, node in self._files.items()}

    def deserialize(self, data: Mapping[str, str]) -> None:
        """Rebuild from path → raw content. Ancestor directories are implied."""
        self.reset()
        for path in sorted(data):
            self.create_file(path, data[path])

    def deserialize_from_nodes(self, data: Mapping[str, Mapping[str, Any]]) -> None:
        """Rebuild from path → node descriptor, as produced by serialize()."""
        self.reset()
        for path in sorted(data):
            if normalize_path(path) == ROOT:
                continue
            node = data[path]
            if node.get("type") == "file":
                self.create_file(path, node.get("content") or "")
            elif node.get("type") == "directory":
                self.create_directory(path)
            else:
                logger.warning("deserialize_from_nodes: skipping %s with unknown type %r", path, node.get("type"))

    # ------------------------------------------------------------------
    # Text editor commands
    #
    # These back the assistant's editing tool. They return status strings;
    # errors start with "Error:" so the model can tell them apart.
    # ------------------------------------------------------------------

    def view_file(self, path: str, view_range: tuple[int, int] | list[int] | None = None) -> str:
        node = self.get_node(path)
        if node is None:
            return f"File not found: {path}"

        if node.is_directory:
            children = self.list_directory(path) or []
            if not children:
                return "(empty directory)"
            return "\n".join(
                f"{'[DIR]' if child.is_directory else '[FILE]'} {child.name}"
                for child in sorted(children, key=lambda c: c.name)
            )

        lines = (node.content or "").split("\n")
        start = 1
        if view_range is not None and len(view_range) == 2:
            first, last = view_range
            start = max(1, first)
            end = len(lines) if last == -1 else min(len(lines), last)
            lines = lines[start - 1:end]

        return "\n".join(f"{start + i}\t{line}" for i, line in enumerate(lines))

    def create_file_with_parents(self, path: str, content: str = "") -> str:
        if self.exists(path):
            return f"Error: File already exists: {path}"
        if self.create_file(path, content) is None:
            return f"Error: Cannot create file under a non-directory: {path}"
        return f"File created: {path}"

    def replace_in_file(self, path: str, old_str: str, new_str: str) -> str:
        """Replace every literal occurrence of `old_str`. No pattern semantics."""
        node = self.get_node(path)
        if node is None:
            return f"Error: File not found: {path}"
        if not node.is_file:
            return f"Error: Cannot edit a directory: {path}"

        content = node.content or ""
        if not old_str or old_str not in content:
            return f'Error: String not found in file: "{old_str}"'

        occurrences = content.count(old_str)
        node.content = content.replace(old_str, new_str or "")
        return f"Replaced {occurrences} occurrence(s) of the string in {path}"

    def insert_in_file(self, path: str, insert_line: int, text: str) -> str:
        """Insert `text` as a new line at index `insert_line` (0 = before the first line)."""
        node = self.get_node(path)
        if node is None:
            return f"Error: File not found: {path}"
        if not node.is_file:
            return f"Error: Cannot edit a directory: {path}"

        lines = (node.content or "").split("\n")
        if insert_line is None or insert_line < 0 or insert_line > len(lines):
            return f"Error: Invalid line number: {insert_line}. File has {len(lines)} lines."

        lines.insert(insert_line, text or "")
        node.content = "\n".join(lines)
        return f"Text inserted at line {insert_line} in {path}"
