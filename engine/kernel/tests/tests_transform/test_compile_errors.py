"""
JSX Compiler -- Error Reporting Tests

Failures raise CompileError whose message reads
"path: reason (line:column)" followed by a blank line and a code frame
pointing at the offending column.
"""

import re

import pytest

from engine.kernel.jsx_compiler import CompileError, compile_module

LOCATION = re.compile(r"\((\d+):(\d+)\)")


def compile_error(code, filename="/App.jsx"):
    with pytest.raises(CompileError) as exc_info:
        compile_module(code, filename)
    return exc_info.value


class TestMessageFormat:
    def test_message_starts_with_path(self):
        err = compile_error("const = ;")
        assert str(err).startswith("/App.jsx: ")

    def test_location_on_second_line(self):
        err = compile_error("const a = 1;\nconst = 2;\n")
        assert err.line == 2
        match = LOCATION.search(str(err))
        assert match is not None
        assert match.group(1) == "2"
        assert int(match.group(2)) == err.column

    def test_code_frame(self):
        err = compile_error("const a = 1;\nconst = 2;\n")
        header, frame = str(err).split("\n\n", 1)
        assert "(2:" in header
        assert frame.startswith("> 2 | const = 2;\n")
        assert frame.rstrip().endswith("^")

    def test_caret_under_column(self):
        err = compile_error("const a = 1;\nconst = 2;\n")
        caret_line = str(err).rsplit("\n", 1)[-1]
        assert caret_line.index("^") == len("    | ") + err.column


class TestJsxErrors:
    def test_mismatched_closing_tag(self):
        err = compile_error("const a = <div></span>;")
        assert str(err).startswith("/App.jsx: ")
        assert err.line == 1

    def test_unclosed_element(self):
        compile_error("export default function App() {\n  return <div>;\n}\n")

    def test_spread_children(self):
        err = compile_error("const a = <div>{...items}</div>;")
        assert "Spread children are not supported in React." in str(err)


class TestUnsupported:
    def test_unknown_extension(self):
        err = compile_error("body {}", "/styles.css")
        assert str(err) == "/styles.css: Unsupported file type"
