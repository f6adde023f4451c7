"""
Preview Kernel — JSX / TypeScript Compiler

Uses tree-sitter to turn a project source file into a module the browser
can execute directly:

  - JSX becomes calls into React's automatic runtime (react/jsx-runtime)
  - in .ts/.tsx files, type-level syntax is erased and imports that are
    only used as types are dropped

Grammar per extension:
  .js / .jsx  → tree-sitter-javascript (type annotations are syntax errors)
  .ts         → tree-sitter-typescript, typescript dialect (no JSX)
  .tsx        → tree-sitter-typescript, tsx dialect

The output is the input text with rewritten regions spliced in; everything
the compiler does not touch (comments, formatting) passes through.
A file that does not parse cleanly raises CompileError with a
"path: reason (line:column)" message followed by a short code frame.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any, Callable

import tree_sitter_javascript as _js_mod
import tree_sitter_typescript as _ts_mod
from tree_sitter import Language, Parser

_JS_LANG = Language(_js_mod.language())
_TS_LANG = Language(_ts_mod.language_typescript())
_TSX_LANG = Language(_ts_mod.language_tsx())

_PARSERS: dict[str, Parser] = {
    ".js": Parser(_JS_LANG),
    ".jsx": Parser(_JS_LANG),
    ".ts": Parser(_TS_LANG),
    ".tsx": Parser(_TSX_LANG),
}

JSX_RUNTIME = "react/jsx-runtime"

# runtime export → local binding, in the order they appear in the header
_RUNTIME_BINDINGS: dict[str, str] = {
    "jsx": "_jsx",
    "jsxs": "_jsxs",
    "Fragment": "_Fragment",
}

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")

# Nodes that only exist at the type level. Erased wholesale in TS files.
_TYPE_ONLY_NODES: frozenset[str] = frozenset({
    "type_annotation",
    "type_arguments",
    "type_parameters",
    "asserts_annotation",
    "type_predicate_annotation",
    "implements_clause",
    "interface_declaration",
    "type_alias_declaration",
    "ambient_declaration",
    "function_signature",
    "method_signature",
    "abstract_method_signature",
    "index_signature",
})

# Modifier tokens dropped from parameters, fields and methods
_TS_MODIFIERS: frozenset[str] = frozenset({
    "accessibility_modifier",
    "override_modifier",
    "readonly",
    "abstract",
    "declare",
    "?",
    "!",
})

_JSX_CHILD_NODES = ("jsx_element", "jsx_self_closing_element", "jsx_expression")
_JSX_ATTRIBUTE_NODES = ("jsx_attribute", "jsx_expression")


class CompileError(Exception):
    """A source file could not be compiled. The message is shown to the user."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compile_module(code: str, filename: str) -> str:
    """
    Compile one source file to browser-executable ES module code.

    Raises CompileError if the file does not parse or has mismatched JSX tags.
    """
    ext = "." + filename.rsplit(".", 1)[-1] if "." in filename else ""
    parser = _PARSERS.get(ext)
    if parser is None:
        raise CompileError(f"{filename}: Unsupported file type")

    source = code.encode("utf-8")
    tree = parser.parse(source)
    bad = _first_syntax_error(tree.root_node)
    if bad is not None:
        reason = f'Unexpected token, expected "{bad.type}"' if bad.is_missing else "Unexpected token"
        raise _located_error(source, filename, bad.start_byte, reason)

    emitter = _Emitter(source, filename, tree.root_node, typescript=ext in (".ts", ".tsx"))
    body = emitter.emit(tree.root_node)
    return emitter.runtime_header() + body


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


def _first_syntax_error(root: Any) -> Any | None:
    """Pre-order search for the first ERROR or MISSING node."""
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def _located_error(source: bytes, filename: str, offset: int, reason: str) -> CompileError:
    line_start = source.rfind(b"\n", 0, offset) + 1
    line_end = source.find(b"\n", offset)
    if line_end == -1:
        line_end = len(source)
    line_no = source.count(b"\n", 0, offset) + 1
    column = len(source[line_start:offset].decode("utf-8", errors="replace"))
    line_text = source[line_start:line_end].decode("utf-8", errors="replace")

    gutter = str(line_no)
    frame = f"> {gutter} | {line_text}\n  {' ' * len(gutter)} | {' ' * column}^"
    return CompileError(f"{filename}: {reason} ({line_no}:{column})\n\n{frame}", line_no, column)


# ---------------------------------------------------------------------------
# JSX text helpers
# ---------------------------------------------------------------------------


def clean_jsx_text(value: str) -> str:
    """
    Collapse JSX text the way React's JSX transform does: lines are trimmed,
    whitespace-only lines vanish, and surviving lines join with one space.
    """
    lines = re.split(r"\r\n|\n|\r", value)
    last_non_empty = 0
    for i, line in enumerate(lines):
        if re.search(r"[^ \t]", line):
            last_non_empty = i

    out = ""
    for i, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if i != 0:
            trimmed = trimmed.lstrip(" ")
        if i != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if i != last_non_empty:
                trimmed += " "
            out += trimmed
    return out


def _js_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _prop_key(name: str) -> str:
    return name if _IDENTIFIER.match(name) else _js_string(name)


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------


class _Emitter:
    """Rewrites a parsed file by splicing transformed nodes into the source."""

    def __init__(self, source: bytes, filename: str, root: Any, typescript: bool) -> None:
        self.source = source
        self.filename = filename
        self.typescript = typescript
        self.runtime: set[str] = set()

        self._handlers: dict[str, Callable[[Any], str]] = {
            "jsx_element": self._jsx_element,
            "jsx_self_closing_element": self._jsx_element,
        }
        if typescript:
            self.value_names, self.type_names = self._collect_names(root)
            for node_type in _TYPE_ONLY_NODES:
                self._handlers[node_type] = self._erase
            self._handlers.update({
                "as_expression": self._first_named,
                "satisfies_expression": self._first_named,
                "non_null_expression": self._first_named,
                "type_assertion": self._last_named,
                "formal_parameters": self._formal_parameters,
                "required_parameter": self._strip_modifiers,
                "optional_parameter": self._strip_modifiers,
                "method_definition": self._method_definition,
                "abstract_class_declaration": self._strip_modifiers,
                "public_field_definition": self._field_definition,
                "enum_declaration": self._enum,
                "internal_module": self._namespace,
                "module": self._namespace,
                "import_statement": self._ts_import,
                "export_statement": self._ts_export,
                "export_clause": self._ts_export_clause,
            })

    # -- plumbing ----------------------------------------------------------

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")

    def text(self, node: Any) -> str:
        return self.slice(node.start_byte, node.end_byte)

    def emit(self, node: Any) -> str:
        handler = self._handlers.get(node.type)
        if handler is not None:
            return handler(node)
        return self.emit_children(node)

    def emit_children(self, node: Any, skip: Callable[[Any], bool] | None = None) -> str:
        if not node.children:
            return self.text(node)
        out: list[str] = []
        cursor = node.start_byte
        skipped = False
        for child in node.children:
            gap = self.slice(cursor, child.start_byte)
            # whitespace after a dropped token goes with it
            out.append(gap.lstrip(" \t") if skipped else gap)
            skipped = skip is not None and skip(child)
            if not skipped:
                out.append(self.emit(child))
            cursor = child.end_byte
        out.append(self.slice(cursor, node.end_byte))
        return "".join(out)

    def runtime_header(self) -> str:
        if not self.runtime:
            return ""
        names = ", ".join(f"{name} as {local}" for name, local in _RUNTIME_BINDINGS.items() if name in self.runtime)
        return f'import {{ {names} }} from "{JSX_RUNTIME}";\n'

    def _use_runtime(self, name: str) -> str:
        self.runtime.add(name)
        return _RUNTIME_BINDINGS[name]

    def _error(self, node: Any, reason: str) -> CompileError:
        return _located_error(self.source, self.filename, node.start_byte, reason)

    @staticmethod
    def _named(node: Any) -> list[Any]:
        return [c for c in node.named_children if c.type != "comment"]

    # -- JSX ---------------------------------------------------------------

    def _jsx_element(self, node: Any) -> str:
        if node.type == "jsx_self_closing_element":
            opening = node
            children: list[str] = []
        else:
            opening = next(c for c in node.children if c.type == "jsx_opening_element")
            closing = next((c for c in node.children if c.type == "jsx_closing_element"), None)
            if closing is None:
                raise self._error(opening, "Unterminated JSX contents")
            self._check_closing_tag(opening, closing)
            children = self._jsx_children(node, opening, closing)

        name = self._jsx_name(opening)
        tag = self._use_runtime("Fragment") if name is None else self._jsx_tag(name)
        props, key = self._jsx_props(opening)

        if len(children) == 1:
            props.append(f"children: {children[0]}")
        elif children:
            props.append(f"children: [{', '.join(children)}]")

        fn = self._use_runtime("jsxs" if len(children) > 1 else "jsx")
        args = [tag, f"{{ {', '.join(props)} }}" if props else "{}"]
        if key is not None:
            args.append(key)
        return f"{fn}({', '.join(args)})"

    def _jsx_name(self, tag_node: Any) -> Any | None:
        for child in self._named(tag_node):
            if child.type in _JSX_ATTRIBUTE_NODES:
                return None
            if child.type != "type_arguments":
                return child
        return None

    def _check_closing_tag(self, opening: Any, closing: Any) -> None:
        open_name = self._jsx_name(opening)
        close_name = self._jsx_name(closing)
        open_text = "".join(self.text(open_name).split()) if open_name is not None else None
        close_text = "".join(self.text(close_name).split()) if close_name is not None else None
        if open_text == close_text:
            return
        if open_text is None:
            raise self._error(closing, "Expected corresponding closing tag for JSX fragment")
        raise self._error(closing, f"Expected corresponding JSX closing tag for <{open_text}>")

    def _jsx_tag(self, name: Any) -> str:
        text = self.text(name)
        if name.type == "jsx_namespace_name":
            return _js_string(text)
        if name.type == "identifier" and (text[:1].islower() or "-" in text):
            return _js_string(text)
        return self.emit(name)

    def _jsx_props(self, opening: Any) -> tuple[list[str], str | None]:
        props: list[str] = []
        key: str | None = None
        for attr in self._named(opening):
            if attr.type == "jsx_expression":
                inner = self._jsx_expression_body(attr)
                if inner is not None:
                    props.append(self.emit(inner))
                continue
            if attr.type != "jsx_attribute":
                continue

            parts = self._named(attr)
            name = self.text(parts[0])
            value = self._jsx_attribute_value(parts[1] if len(parts) > 1 else None)
            if name == "key":
                key = value
            else:
                props.append(f"{_prop_key(name)}: {value}")
        return props, key

    def _jsx_attribute_value(self, value: Any | None) -> str:
        if value is None:
            return "true"
        if value.type == "string":
            return _js_string(html.unescape(self.text(value)[1:-1]))
        if value.type == "jsx_expression":
            inner = self._jsx_expression_body(value)
            if inner is None:
                raise self._error(value, "JSX attributes must only be assigned a non-empty expression")
            return self.emit(inner)
        return self.emit(value)

    def _jsx_expression_body(self, node: Any) -> Any | None:
        named = self._named(node)
        return named[0] if named else None

    def _jsx_children(self, element: Any, opening: Any, closing: Any) -> list[str]:
        out: list[str] = []
        cursor = opening.end_byte
        for child in element.children:
            if child.start_byte < opening.end_byte or child.end_byte > closing.start_byte:
                continue
            if child.type not in _JSX_CHILD_NODES:
                continue
            self._append_jsx_text(out, cursor, child.start_byte)
            if child.type == "jsx_expression":
                inner = self._jsx_expression_body(child)
                if inner is not None:
                    if inner.type == "spread_element":
                        raise self._error(child, "Spread children are not supported in React.")
                    out.append(self.emit(inner))
            else:
                out.append(self.emit(child))
            cursor = child.end_byte
        self._append_jsx_text(out, cursor, closing.start_byte)
        return out

    def _append_jsx_text(self, out: list[str], start: int, end: int) -> None:
        if end <= start:
            return
        cleaned = clean_jsx_text(html.unescape(self.slice(start, end)))
        if cleaned:
            out.append(_js_string(cleaned))

    # -- TypeScript erasure ------------------------------------------------

    def _collect_names(self, root: Any) -> tuple[set[str], set[str]]:
        """
        Names referenced as values (outside imports and type positions), and
        names declared only as types in this file.
        """
        values: set[str] = set()
        types: set[str] = set()
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in ("interface_declaration", "type_alias_declaration"):
                name = node.child_by_field_name("name")
                if name is not None:
                    types.add(self.text(name))
                continue
            if node.type == "import_statement" or node.type in _TYPE_ONLY_NODES:
                continue
            if node.type in ("identifier", "shorthand_property_identifier"):
                values.add(self.text(node))
            stack.extend(node.children)
        return values, types

    def _erase(self, node: Any) -> str:
        return ""

    def _first_named(self, node: Any) -> str:
        return self.emit(self._named(node)[0])

    def _last_named(self, node: Any) -> str:
        return self.emit(self._named(node)[-1])

    def _strip_modifiers(self, node: Any) -> str:
        return self.emit_children(node, skip=lambda c: c.type in _TS_MODIFIERS)

    def _field_definition(self, node: Any) -> str:
        if any(c.type in ("declare", "abstract") for c in node.children):
            return ""
        return self._strip_modifiers(node)

    @staticmethod
    def _is_this_parameter(node: Any) -> bool:
        if node.type != "required_parameter":
            return False
        pattern = node.child_by_field_name("pattern")
        return pattern is not None and pattern.type == "this"

    def _formal_parameters(self, node: Any) -> str:
        """Parameter list without the type-only `this` parameter and its comma."""
        out: list[str] = []
        cursor = node.start_byte
        dropped = False
        for child in node.children:
            if self._is_this_parameter(child):
                out.append(self.slice(cursor, child.start_byte))
                cursor = child.end_byte
                dropped = True
                continue
            gap = self.slice(cursor, child.start_byte)
            if dropped and child.type == ",":
                cursor = child.end_byte
                continue
            out.append(gap.lstrip() if dropped else gap)
            out.append(self.emit(child))
            dropped = False
            cursor = child.end_byte
        out.append(self.slice(cursor, node.end_byte))
        return "".join(out)

    def _method_definition(self, node: Any) -> str:
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        params = node.child_by_field_name("parameters")
        if name is None or self.text(name) != "constructor" or body is None or params is None:
            return self._strip_modifiers(node)

        assignments = [f"this.{prop} = {prop};" for prop in self._parameter_properties(params)]
        if not assignments:
            return self._strip_modifiers(node)

        out: list[str] = []
        cursor = node.start_byte
        skipped = False
        for child in node.children:
            gap = self.slice(cursor, child.start_byte)
            out.append(gap.lstrip(" \t") if skipped else gap)
            skipped = child.type in _TS_MODIFIERS
            if child == body:
                out.append(self._constructor_body(body, assignments))
            elif not skipped:
                out.append(self.emit(child))
            cursor = child.end_byte
        out.append(self.slice(cursor, node.end_byte))
        return "".join(out)

    def _parameter_properties(self, params: Any) -> list[str]:
        """Names of constructor parameters that also declare a class field."""
        names: list[str] = []
        for param in params.named_children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            if not any(c.type in ("accessibility_modifier", "readonly", "override_modifier") for c in param.children):
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is None or pattern.type != "identifier":
                raise self._error(param, "A parameter property may not be a binding pattern")
            names.append(self.text(pattern))
        return names

    def _constructor_body(self, body: Any, assignments: list[str]) -> str:
        """Constructor body with field assignments after super(...), or first if there is none."""
        anchor = next((s for s in body.named_children if self._is_super_call(s)), None)
        prologue = " " + " ".join(assignments)
        out: list[str] = []
        cursor = body.start_byte
        for child in body.children:
            out.append(self.slice(cursor, child.start_byte))
            out.append(self.emit(child))
            if (anchor is None and child.type == "{") or (anchor is not None and child == anchor):
                out.append(prologue)
            cursor = child.end_byte
        out.append(self.slice(cursor, body.end_byte))
        return "".join(out)

    @staticmethod
    def _is_super_call(statement: Any) -> bool:
        if statement.type != "expression_statement" or not statement.named_children:
            return False
        call = statement.named_children[0]
        if call.type != "call_expression":
            return False
        callee = call.child_by_field_name("function")
        return callee is not None and callee.type == "super"

    def _namespace(self, node: Any) -> str:
        """
        Lower `namespace N { ... }` to an IIFE over N. Exported declarations
        are assigned onto N; a namespace holding only types disappears.
        """
        if not node.is_named:
            # the bare `module` keyword token shares the node type
            return self.text(node)
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            raise self._error(node, "Only namespaces with a simple identifier name are supported")
        name = self.text(name_node)
        body = node.child_by_field_name("body")

        lines: list[str] = []
        for statement in self._named(body) if body is not None else []:
            if statement.type == "export_statement":
                lines.extend(self._namespace_export(name, statement))
                continue
            code = self.emit(statement).strip()
            if code:
                lines.append(code)
        if not lines:
            return ""

        inner = "".join(f"\n  {line}" for line in lines)
        return f"var {name};\n(function ({name}) {{{inner}\n}})({name} || ({name} = {{}}));"

    def _namespace_export(self, namespace: str, statement: Any) -> list[str]:
        if self._has_type_keyword(statement):
            return []
        declaration = statement.child_by_field_name("declaration")
        if declaration is None:
            raise self._error(statement, "Only exported declarations are supported inside a namespace")
        code = self.emit(declaration).strip()
        if not code:
            return []
        return [code] + [f"{namespace}.{n} = {n};" for n in self._declared_names(declaration)]

    def _declared_names(self, declaration: Any) -> list[str]:
        if declaration.type in ("lexical_declaration", "variable_declaration"):
            names: list[str] = []
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                target = declarator.child_by_field_name("name")
                if target is None or target.type != "identifier":
                    raise self._error(declarator, "Destructured exports are not supported inside a namespace")
                names.append(self.text(target))
            return names
        name = declaration.child_by_field_name("name")
        return [self.text(name)] if name is not None else []

    def _enum(self, node: Any) -> str:
        name = self.text(node.child_by_field_name("name"))
        body = node.child_by_field_name("body")

        lines: list[str] = []
        next_value: int | None = 0
        previous: str | None = None
        for member in self._named(body) if body is not None else []:
            if member.type == "enum_assignment":
                parts = self._named(member)
                key_node = parts[0]
                value_node = parts[-1] if len(parts) > 1 else None
            else:
                key_node, value_node = member, None

            key_text = self.text(key_node)
            key = json.loads(key_text) if key_node.type == "string" and key_text[:1] == '"' else key_text.strip("'\"")
            quoted = _js_string(key)

            if value_node is not None and value_node.type in ("string", "template_string"):
                lines.append(f"{name}[{quoted}] = {self.emit(value_node)};")
                next_value = None
            else:
                if value_node is not None:
                    value = self.emit(value_node)
                    next_value = _int_or_none(value)
                elif next_value is not None:
                    value = str(next_value)
                elif previous is not None:
                    value = f"{name}[{_js_string(previous)}] + 1"
                else:
                    value = "0"
                next_value = next_value + 1 if next_value is not None else None
                lines.append(f"{name}[{name}[{quoted}] = {value}] = {quoted};")
            previous = key

        inner = "".join(f"\n  {line}" for line in lines)
        return f"var {name};\n(function ({name}) {{{inner}\n}})({name} || ({name} = {{}}));"

    def _has_type_keyword(self, node: Any) -> bool:
        return any(c.type == "type" and not c.is_named for c in node.children)

    def _ts_import(self, node: Any) -> str:
        """Drop type-only imports and bindings never used as values."""
        if self._has_type_keyword(node):
            return ""
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        source = node.child_by_field_name("source")
        if clause is None or source is None:
            return self.text(node)

        kept: list[str] = []
        named: list[str] = []
        for part in clause.named_children:
            if part.type == "identifier":
                if self.text(part) in self.value_names:
                    kept.append(self.text(part))
            elif part.type == "namespace_import":
                local = self._named(part)[-1]
                if self.text(local) in self.value_names:
                    kept.append(f"* as {self.text(local)}")
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier" or self._has_type_keyword(spec):
                        continue
                    imported = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    local = alias if alias is not None else imported
                    if self.text(local) not in self.value_names:
                        continue
                    named.append(self.text(imported) if alias is None else f"{self.text(imported)} as {self.text(alias)}")
        if named:
            kept.append(f"{{ {', '.join(named)} }}")
        if not kept:
            return ""
        return f"import {', '.join(kept)} from {self.text(source)};"

    def _ts_export(self, node: Any) -> str:
        if self._has_type_keyword(node):
            return ""
        declaration = node.child_by_field_name("declaration")
        if declaration is not None and declaration.type in _TYPE_ONLY_NODES:
            return ""
        return self.emit_children(node)

    def _ts_export_clause(self, node: Any) -> str:
        kept: list[str] = []
        for spec in node.named_children:
            if spec.type != "export_specifier" or self._has_type_keyword(spec):
                continue
            local = spec.child_by_field_name("name")
            if local is not None and self.text(local) in self.type_names:
                continue
            kept.append(self.text(spec))
        return f"{{ {', '.join(kept)} }}" if kept else "{}"


def _int_or_none(value: str) -> int | None:
    try:
        return int(value, 0)
    except ValueError:
        return None
