"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from devserver.app import create_app
from devserver.config import Settings

INDEX_HTML = "<html><body>Hi</body></html>"


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    """Create a web root containing index.html."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    return root


@pytest.fixture
def settings(web_root: Path) -> Settings:
    """Create test settings pointing at the temporary web root."""
    return Settings(
        host="127.0.0.1",
        port=8080,
        root=str(web_root),
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create test client with configured app.

    The lifespan is not entered, so no watcher runs.
    """
    app = create_app(settings)
    return TestClient(app)
