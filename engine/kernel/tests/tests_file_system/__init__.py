"""
Virtual File System Test Suite

Test Files:
1. test_fs_crud.py - normalize, create, read, update, delete, list
2. test_fs_rename.py - moves of files and whole subtrees
3. test_fs_serialization.py - serialize / deserialize round trips
4. test_fs_editor_commands.py - view, create, str_replace, insert
"""
