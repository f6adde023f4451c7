"""
Preview Kernel — Import Map Builder

Turns a snapshot into the data the preview document needs to load the
project as native ES modules:

  import_map  — {"imports": {...}, "scopes": {...}} JSON text
  styles      — every stylesheet, concatenated
  errors      — files that failed to compile

Every compiled file gets one module URL, registered under all the spellings
a project is allowed to import it by (absolute, no leading slash, "@/"
alias, each with or without extension). Relative specifiers are resolved
per importing file and registered in that file's scope. Bare specifiers go
to the ESM CDN. Local imports that match no compiled file get a placeholder
component, so a project that is still being written keeps rendering.

The map is rebuilt from scratch on every call. Module URLs are data: URLs
derived from the compiled code, so the same snapshot always produces the
same map.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from collections.abc import Callable, Iterator, Mapping

from engine.kernel.transform import transform_files
from engine.kernel.types import (
    ALIAS_PREFIX,
    CORE_MODULES,
    DEFAULT_ESM_CDN,
    RESOLVE_EXTENSIONS,
    ImportMapResult,
    strip_script_extension,
)

logger = logging.getLogger(__name__)

ModuleReference = Callable[[str], str]


def data_url(code: str) -> str:
    """Module URL carrying its own source. Same code, same URL."""
    encoded = base64.b64encode(code.encode("utf-8")).decode("ascii")
    return f"data:text/javascript;base64,{encoded}"


def create_placeholder_module(component_name: str) -> str:
    """Stand-in module for an import that points at a file that does not exist yet."""
    return f"""
import React from 'react';
const {component_name} = function() {{
  return React.createElement('div', {{}}, null);
}}
export default {component_name};
export {{ {component_name} }};
"""


def placeholder_name(specifier: str) -> str:
    """Component name for a placeholder: the last path segment as an identifier."""
    stem = strip_script_extension(specifier.rstrip("/").rsplit("/", 1)[-1])
    name = re.sub(r"[^A-Za-z0-9_$]", "", stem)
    if not name:
        return "Placeholder"
    return f"_{name}" if name[0].isdigit() else name


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def is_package_specifier(specifier: str) -> bool:
    """Bare specifiers (no ./, ../, / or @/ prefix) are npm packages."""
    return not specifier.startswith((".", "/", ALIAS_PREFIX))


def resolve_relative_path(from_dir: str, relative_path: str) -> str:
    parts = [p for p in from_dir.split("/") if p]
    for part in relative_path.split("/"):
        if part == "..":
            if parts:
                parts.pop()
        elif part not in (".", ""):
            parts.append(part)
    return "/" + "/".join(parts)


def _directory_of(path: str) -> str:
    return path[: path.rfind("/")] or "/"


def module_keys(path: str) -> list[str]:
    """Every specifier a project file may be imported by."""
    keys = [path]
    without_ext = strip_script_extension(path)
    if path.startswith("/"):
        keys += [path[1:], "@" + path]
    keys.append(without_ext)
    if path.startswith("/"):
        keys += [without_ext[1:], "@" + without_ext]
    return list(dict.fromkeys(keys))


def _local_candidates(specifier: str, importer: str) -> Iterator[str]:
    """Spellings to try, in order, when looking for the file behind a local import."""
    bases = [specifier]
    if specifier.startswith(ALIAS_PREFIX):
        bases.append("/" + specifier[len(ALIAS_PREFIX):])
    elif specifier.startswith(("./", "../")):
        bases.append(resolve_relative_path(_directory_of(importer), specifier))

    for base in bases:
        yield base
        for ext in RESOLVE_EXTENSIONS:
            yield base + ext
    for base in bases[1:]:
        for ext in RESOLVE_EXTENSIONS:
            yield f"{base}/index{ext}"


def resolve_stylesheet(specifier: str, importer: str) -> str:
    if specifier.startswith(ALIAS_PREFIX):
        return "/" + specifier[len(ALIAS_PREFIX):]
    if specifier.startswith(("./", "../")):
        return resolve_relative_path(_directory_of(importer), specifier)
    return specifier


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def create_import_map(
    files: Mapping[str, str],
    *,
    reference: ModuleReference = data_url,
    cdn_url: str = DEFAULT_ESM_CDN,
) -> ImportMapResult:
    """
    Compile a snapshot and build its import map.

    Absolute, "@/" and bare specifiers mean the same thing from every file
    and live in the top-level "imports". Relative specifiers depend on the
    importing file, so each file gets a scope keyed by its own module URL.

    Args:
        files: path → content snapshot
        reference: turns compiled code into a loadable module URL
        cdn_url: base URL for bare package specifiers

    Returns:
        ImportMapResult with the map as JSON text, the style blob and
        any per-file compile errors
    """
    cdn_url = cdn_url.rstrip("/")
    batch = transform_files(files)
    imports: dict[str, str] = {name: f"{cdn_url}/{target}" for name, target in CORE_MODULES.items()}
    scopes: dict[str, dict[str, str]] = {}
    failed = {failure.path for failure in batch.errors}

    # First pass: every compiled file under all its spellings
    module_urls: dict[str, str] = {}
    for result in batch.compiled:
        url = reference(module_source(result.path, result.code))
        module_urls[result.path] = url
        for key in module_keys(result.path):
            imports[key] = url

    # Second pass: what those files import
    placeholders = 0
    for result in batch.compiled:
        for specifier in result.imports:
            if is_package_specifier(specifier):
                imports.setdefault(specifier, f"{cdn_url}/{specifier}")
                continue

            relative = specifier.startswith(("./", "../"))
            if not relative and specifier in imports:
                continue

            match = _find_local(imports, failed, specifier, result.path)
            if match is not None and match in failed:
                # The file exists but did not compile; the error panel covers it
                continue

            if match is not None:
                url = imports[match]
            else:
                url = reference(create_placeholder_module(placeholder_name(specifier)))
                placeholders += 1
                logger.debug("import_map: placeholder for %s (imported by %s)", specifier, result.path)

            if relative:
                scopes.setdefault(module_urls[result.path], {})[specifier] = url
                continue
            imports[specifier] = url
            if match is None and specifier.startswith(ALIAS_PREFIX):
                rest = specifier[len(ALIAS_PREFIX):]
                imports.setdefault("/" + rest, url)
                imports.setdefault(rest, url)

    styles = batch.styles
    for result in batch.compiled:
        for css in result.css_imports:
            if resolve_stylesheet(css, result.path) not in batch.stylesheets:
                styles += f"/* {css} not found */\n"

    import_map: dict[str, dict] = {"imports": imports}
    if scopes:
        import_map["scopes"] = scopes

    logger.debug("import_map: %d entries, %d scope(s), %d placeholder(s)", len(imports), len(scopes), placeholders)
    return ImportMapResult(
        import_map=json.dumps(import_map, indent=2),
        styles=styles,
        errors=batch.errors,
    )


def module_source(path: str, code: str) -> str:
    """Compiled code tagged with its project path, so no two files share a module URL."""
    return f"{code}\n//# sourceURL={path}\n"


def _find_local(imports: Mapping[str, str], failed: set[str], specifier: str, importer: str) -> str | None:
    """
    Find the project file behind a local import.

    Returns the matching module key, the path of a script that failed to
    compile, or None. Files that are neither (images, JSON, ...) do not
    match, so the import falls through to a placeholder.
    """
    for candidate in _local_candidates(specifier, importer):
        if candidate in imports or candidate in failed:
            return candidate
    return None
