"""
Import Map and Preview Document Test Suite

Test Files:
1. test_import_map_keys.py - module key spellings, path resolution helpers
2. test_import_map_build.py - full builds: packages, placeholders, failures, styles
3. test_preview_html.py - app bootstrap vs error panel, escaping, empty states
"""
