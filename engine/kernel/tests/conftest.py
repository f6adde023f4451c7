"""
Engine kernel test configuration.

Shared snapshots for the transform, import map and preview tests. Each
fixture returns a fresh dict so tests can add or drop files freely.
"""

import pytest


@pytest.fixture
def app_snapshot():
    """A small two-component project that compiles cleanly."""
    return {
        "/App.jsx": (
            "import Button from './components/Button';\n"
            "import './styles.css';\n"
            "\n"
            "export default function App() {\n"
            "  return <Button label=\"Hi\" />;\n"
            "}\n"
        ),
        "/components/Button.jsx": (
            "export default function Button({ label }) {\n"
            "  return <button className=\"btn\">{label}</button>;\n"
            "}\n"
        ),
        "/styles.css": "body { margin: 0; }",
    }
