"""
Tool definitions for the assistant's file operations.

Both tools act on the project tree carried by the request. cache_control
sits on the LAST tool: the cached prompt prefix ends after every tool
definition.
"""

STR_REPLACE_EDITOR = "str_replace_editor"
FILE_MANAGER = "file_manager"

TOOLS = [
    {
        "name": STR_REPLACE_EDITOR,
        "description": (
            "View, create and edit project files. `view` lists a directory or shows a file with "
            "line numbers. `create` writes a new file, creating folders as needed. `str_replace` "
            "replaces every occurrence of old_str. `insert` adds new_str as a line after line "
            "insert_line (0 inserts at the top)."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "enum": ["view", "create", "str_replace", "insert", "undo_edit"],
                },
                "path": {
                    "type": "string",
                    "description": "Absolute path, e.g. /App.jsx",
                },
                "file_text": {
                    "type": "string",
                    "description": "Content for `create`",
                },
                "insert_line": {
                    "type": "integer",
                    "description": "Line index for `insert`",
                },
                "new_str": {"type": "string"},
                "old_str": {"type": "string"},
                "view_range": {
                    "type": "array",
                    "items": {"type": "integer"},
                    "description": "[start, end] 1-based and inclusive; end -1 reads to the last line",
                },
            },
            "required": ["command", "path"],
        },
    },
    {
        "name": FILE_MANAGER,
        "description": (
            'Rename or delete files or folders in the file system. Rename can be used to "move" a file. '
            "Rename will recursively create folders as required."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "enum": ["rename", "delete"],
                    "description": "The operation to perform",
                },
                "path": {
                    "type": "string",
                    "description": "The path to the file or directory to rename or delete",
                },
                "new_path": {
                    "type": "string",
                    "description": "The new path. Only provide when renaming or moving a file.",
                },
            },
            "required": ["command", "path"],
        },
        "cache_control": {"type": "ephemeral"},
    },
]

TOOL_NAMES: set[str] = {t["name"] for t in TOOLS}
