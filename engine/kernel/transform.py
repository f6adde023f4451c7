"""
Preview Kernel — Transform Pipeline

Takes a full path → content snapshot and produces one TransformResult per
script file plus the concatenated stylesheet text.

Import scanning is textual (regex over the raw source), so it still works
on files that fail to parse. Stylesheet imports are collected and removed
before compilation; every other import specifier is collected whether or
not it resolves. A compile failure is recorded on that file only and the
rest of the snapshot is still processed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from engine.kernel.jsx_compiler import CompileError, compile_module
from engine.kernel.types import CompileFailure, TransformResult, classify_path

logger = logging.getLogger(__name__)

# import Foo from 'x' / import { a } from 'x' / import Foo, { a } from 'x'
_IMPORT_FROM = re.compile(
    r"""import\s+(?:\{[^}]+\}|[^,\s]+)?\s*(?:,\s*\{[^}]+\})?\s+from\s+['"]([^'"]+)['"]"""
)
# import * as Foo from 'x' / import Foo, * as Bar from 'x'
_IMPORT_NAMESPACE = re.compile(
    r"""import\s+(?:[\w$]+\s*,\s*)?\*\s*as\s+[\w$]+\s+from\s+['"]([^'"]+)['"]"""
)
# export * from 'x' / export { a } from 'x'
_EXPORT_FROM = re.compile(
    r"""export\s+(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s+['"]([^'"]+)['"]"""
)
_SPECIFIER_PATTERNS = (_IMPORT_FROM, _IMPORT_NAMESPACE, _EXPORT_FROM)

# import './styles.css'
_CSS_IMPORT = re.compile(r"""import\s+['"]([^'"]+\.css)['"]""")


@dataclass
class TransformBatch:
    """Everything the pipeline learned from one snapshot."""

    results: list[TransformResult] = field(default_factory=list)
    styles: str = ""
    stylesheets: set[str] = field(default_factory=set)

    @property
    def compiled(self) -> list[TransformResult]:
        return [r for r in self.results if r.ok]

    @property
    def errors(self) -> list[CompileFailure]:
        return [CompileFailure(path=r.path, error=r.error) for r in self.results if not r.ok]


def scan_imports(code: str) -> tuple[str, list[str], list[str]]:
    """
    Scan raw source for import specifiers.

    Returns (code with stylesheet imports removed, module specifiers,
    stylesheet specifiers). Specifiers keep first-seen order, no duplicates.
    """
    css_imports = list(dict.fromkeys(m.group(1) for m in _CSS_IMPORT.finditer(code)))
    stripped = _CSS_IMPORT.sub("", code)

    found: list[tuple[int, str]] = []
    for pattern in _SPECIFIER_PATTERNS:
        found.extend((m.start(), m.group(1)) for m in pattern.finditer(code))
    imports = list(dict.fromkeys(spec for _, spec in sorted(found) if not spec.endswith(".css")))
    return stripped, imports, css_imports


def transform_jsx(code: str, filename: str) -> TransformResult:
    """Scan and compile one script file. Never raises for bad source."""
    stripped, imports, css_imports = scan_imports(code)
    try:
        compiled = compile_module(stripped, filename)
    except CompileError as e:
        return TransformResult(path=filename, error=str(e))
    except RecursionError:
        return TransformResult(path=filename, error=f"{filename}: File is nested too deeply to compile")
    return TransformResult(path=filename, code=compiled, imports=imports, css_imports=css_imports)


def transform_files(files: Mapping[str, str]) -> TransformBatch:
    """
    Run the pipeline over a whole snapshot.

    Script files are compiled in snapshot order. Stylesheets are appended to
    the style blob, each behind a comment naming its path. Anything else is
    ignored.
    """
    batch = TransformBatch()
    style_parts: list[str] = []

    for path, content in files.items():
        kind = classify_path(path)
        if kind == "script":
            result = transform_jsx(content, path)
            if not result.ok:
                logger.warning("transform: %s failed to compile", path)
            batch.results.append(result)
        elif kind == "stylesheet":
            batch.stylesheets.add(path)
            style_parts.append(f"/* {path} */\n{content}\n\n")

    batch.styles = "".join(style_parts)
    logger.debug(
        "transform: %d script(s), %d failed, %d stylesheet(s)",
        len(batch.results),
        len(batch.results) - len(batch.compiled),
        len(batch.stylesheets),
    )
    return batch
