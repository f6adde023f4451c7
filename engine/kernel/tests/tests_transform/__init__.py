"""
Transform Pipeline Test Suite

Test Files:
1. test_compile_jsx.py - JSX to automatic runtime calls
2. test_compile_typescript.py - type erasure, enums, import elision
3. test_compile_errors.py - error messages, locations, code frames
4. test_transform_pipeline.py - import scanning, per-file isolation, styles
"""
