"""
Pytest configuration and fixtures for preview service tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.main import app  # noqa: E402


@pytest_asyncio.fixture
async def async_client():
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def project_nodes():
    """A serialized tree, as the client sends it back after a tool call."""
    return {
        "/": {"type": "directory", "name": "/", "path": "/"},
        "/App.jsx": {
            "type": "file",
            "name": "App.jsx",
            "path": "/App.jsx",
            "content": "import Counter from './components/Counter';\nexport default function App() { return <Counter />; }\n",
        },
        "/components": {"type": "directory", "name": "components", "path": "/components"},
        "/components/Counter.jsx": {
            "type": "file",
            "name": "Counter.jsx",
            "path": "/components/Counter.jsx",
            "content": (
                "import { useState } from 'react';\n"
                "export default function Counter() {\n"
                "  const [n, setN] = useState(0);\n"
                "  return <button onClick={() => setN(n + 1)}>{n}</button>;\n"
                "}\n"
            ),
        },
    }
