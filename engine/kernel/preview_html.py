"""
Preview Kernel — Preview Document

Generates the HTML page the preview frame loads. Two shapes:

- errors present: a panel listing each file that failed to compile, with
  its line:column when the message carries one. No module script at all,
  so nothing is loaded.
- no errors: the import map, the project's styles, and a module script
  that imports the entry file, mounts its default (or same-named) export
  inside an error boundary, and shows the failure inline if anything
  throws.

The page expects to run in a frame sandboxed with PREVIEW_SANDBOX.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from engine.kernel.types import CompileFailure, strip_script_extension

logger = logging.getLogger(__name__)

DEFAULT_TAILWIND_URL = "https://cdn.tailwindcss.com"

_LOCATION = re.compile(r"\((\d+:\d+)\)")
_STYLE_CLOSE = re.compile(r"</(style)", re.IGNORECASE)


def create_preview_html(
    entry_point: str,
    import_map: str,
    styles: str = "",
    errors: Sequence[CompileFailure | Mapping[str, Any]] = (),
    *,
    tailwind_url: str = DEFAULT_TAILWIND_URL,
) -> str:
    """
    Render the preview document.

    Args:
        entry_point: specifier of the module to mount, e.g. "/App.jsx"
        import_map: {"imports": {...}, "scopes": {...}} JSON text from create_import_map
        styles: stylesheet blob, inlined as-is
        errors: compile failures; any at all replaces the app with the error panel
        tailwind_url: Tailwind play CDN script

    Returns:
        Complete HTML string
    """
    entry_url = _entry_url(entry_point, import_map)
    failures = [_as_failure(e) for e in errors]

    style_block = f"<style>\n{_escape_style(styles)}</style>" if styles else ""
    body = _error_panel(failures) if failures else ""
    loader = "" if failures else _bootstrap_script(entry_point, entry_url)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Preview</title>
<script src="{_escape_html(tailwind_url)}"></script>
<style>
{PREVIEW_CSS}
</style>
{style_block}
<script type="importmap">
{_escape_script(import_map)}
</script>
</head>
<body>
{body}
<div id="root"></div>
{loader}
</body>
</html>"""


def render_no_preview(message: str, title: str = "No Preview Available") -> str:
    """Static page for when there is nothing to render (no files, no entry, driver fault)."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Preview</title>
<style>
{PREVIEW_CSS}
</style>
</head>
<body>
<div class="no-preview">
  <h3>{_escape_html(title)}</h3>
  <p>{_escape_html(message)}</p>
</div>
</body>
</html>"""


def _escape_html(text: str) -> str:
    """HTML-escape text for safe embedding."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _escape_script(text: str) -> str:
    """Keep embedded JSON from closing its <script> element."""
    return text.replace("</", "<\\/")


def _escape_style(text: str) -> str:
    """Keep project CSS from closing its <style> element."""
    return _STYLE_CLOSE.sub(r"<\\/\1", text)


def _as_failure(error: CompileFailure | Mapping[str, Any]) -> CompileFailure:
    if isinstance(error, CompileFailure):
        return error
    return CompileFailure(path=str(error.get("path", "")), error=str(error.get("error") or error.get("message") or ""))


def _entry_url(entry_point: str, import_map: str) -> str:
    """Module URL for the entry, or the entry specifier itself if the map lacks it."""
    try:
        parsed = json.loads(import_map)
    except json.JSONDecodeError:
        logger.warning("preview_html: import map is not valid JSON, loading %s directly", entry_point)
        return entry_point
    imports = parsed.get("imports") if isinstance(parsed, dict) else None
    if isinstance(imports, dict) and isinstance(imports.get(entry_point), str):
        return imports[entry_point]
    return entry_point


def _error_panel(failures: list[CompileFailure]) -> str:
    plural = "s" if len(failures) > 1 else ""
    items = []
    for failure in failures:
        match = _LOCATION.search(failure.error)
        location = f'<span class="error-location">{match.group(1)}</span>' if match else ""
        message = _LOCATION.sub("", failure.error, count=1).strip()
        items.append(
            f"""  <div class="error-item">
    <div class="error-path">{_escape_html(failure.path)} {location}</div>
    <div class="error-message">{_escape_html(message)}</div>
  </div>"""
        )
    newline = "\n"
    return f"""<div class="syntax-errors">
  <h3>
    <svg width="20" height="20" viewBox="0 0 20 20" fill="none" style="flex-shrink: 0;">
      <path d="M10 0C4.48 0 0 4.48 0 10s4.48 10 10 10 10-4.48 10-10S15.52 0 10 0zm1 15h-2v-2h2v2zm0-4h-2V5h2v6z" fill="#dc2626"/>
    </svg>
    Syntax Error{plural} ({len(failures)})
  </h3>
{newline.join(items)}
</div>"""


def _bootstrap_script(entry_point: str, entry_url: str) -> str:
    export_name = strip_script_extension(entry_point.rsplit("/", 1)[-1])
    missing = f"No default export or {export_name} export found in {entry_point}"
    return f"""<script type="module">
import React from 'react';
import ReactDOM from 'react-dom/client';

class ErrorBoundary extends React.Component {{
  constructor(props) {{
    super(props);
    this.state = {{ hasError: false, error: null }};
  }}

  static getDerivedStateFromError(error) {{
    return {{ hasError: true, error }};
  }}

  componentDidCatch(error, errorInfo) {{
    console.error('Error caught by boundary:', error, errorInfo);
  }}

  render() {{
    if (this.state.hasError) {{
      return React.createElement('div', {{ className: 'error-boundary' }},
        React.createElement('h2', null, 'Something went wrong'),
        React.createElement('pre', null, String(this.state.error))
      );
    }}
    return this.props.children;
  }}
}}

function showLoadError(error) {{
  const root = document.getElementById('root');
  root.innerHTML = '';
  const box = document.createElement('div');
  box.className = 'error-boundary';
  const heading = document.createElement('h2');
  heading.textContent = 'Failed to load app';
  const detail = document.createElement('pre');
  detail.textContent = String(error);
  box.append(heading, detail);
  root.append(box);
}}

async function loadApp() {{
  try {{
    const module = await import({_escape_script(json.dumps(entry_url))});
    const App = module.default || module[{json.dumps(export_name)}];
    if (!App) {{
      throw new Error({_escape_script(json.dumps(missing))});
    }}
    const root = ReactDOM.createRoot(document.getElementById('root'));
    root.render(React.createElement(ErrorBoundary, null, React.createElement(App)));
  }} catch (error) {{
    console.error('Failed to load app:', error);
    showLoadError(error);
  }}
}}

loadApp();
</script>"""


# ─────────────────────────────────────────────────────────────────────────────
# CSS — frame chrome only; project styles are appended after this block
# ─────────────────────────────────────────────────────────────────────────────

PREVIEW_CSS = """
body {
  margin: 0;
  padding: 0;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
}

#root {
  width: 100vw;
  height: 100vh;
}

.error-boundary {
  color: red;
  padding: 1rem;
  border: 2px solid red;
  margin: 1rem;
  border-radius: 4px;
  background: #fee;
}

/* ── Compile errors ── */
.syntax-errors {
  background: #fef5f5;
  border: 2px solid #ff6b6b;
  border-radius: 12px;
  padding: 32px;
  margin: 24px;
  font-family: 'SF Mono', Monaco, Consolas, 'Courier New', monospace;
  font-size: 14px;
  box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);
}

.syntax-errors h3 {
  color: #dc2626;
  margin: 0 0 20px 0;
  font-size: 18px;
  font-weight: 600;
  display: flex;
  align-items: center;
  gap: 8px;
}

.syntax-errors .error-item {
  margin: 16px 0;
  padding: 16px;
  background: #fff;
  border-radius: 8px;
  border-left: 4px solid #ff6b6b;
  box-shadow: 0 2px 4px rgba(0, 0, 0, 0.05);
}

.syntax-errors .error-path {
  font-weight: 600;
  color: #991b1b;
  font-size: 15px;
  margin-bottom: 8px;
}

.syntax-errors .error-message {
  color: #7c2d12;
  margin-top: 8px;
  white-space: pre-wrap;
  line-height: 1.5;
  font-size: 13px;
}

.syntax-errors .error-location {
  display: inline-block;
  background: #fee0e0;
  padding: 2px 6px;
  border-radius: 4px;
  font-size: 12px;
  margin-left: 8px;
  color: #991b1b;
}

/* ── Empty states ── */
.no-preview {
  display: flex;
  flex-direction: column;
  align-items: center;
  justify-content: center;
  min-height: 100vh;
  padding: 32px;
  text-align: center;
  background: #f9fafb;
  color: #6b7280;
}

.no-preview h3 {
  color: #111827;
  font-size: 18px;
  font-weight: 600;
  margin: 0 0 8px 0;
}

.no-preview p {
  font-size: 14px;
  margin: 0;
}
"""
