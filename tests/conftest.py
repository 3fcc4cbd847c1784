"""Pytest configuration and shared fixtures."""

import sys
import pytest
from pathlib import Path
from unittest.mock import Mock

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import config
from core.scraping.urls import SiteOrigin
from database.connection import configure, init_db, remove_session


ORIGIN = "http://example.test/"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database with default options, one per test."""
    exports_dir = tmp_path / "exports"
    temp_files_dir = tmp_path / "tmp"
    exports_dir.mkdir()
    temp_files_dir.mkdir()
    monkeypatch.setattr(config, "EXPORTS_DIR", exports_dir)
    monkeypatch.setattr(config, "TEMP_FILES_DIR", temp_files_dir)

    configure(f"sqlite:///{tmp_path / 'test.db'}")
    init_db()

    from database.repositories.options_repository import OptionsRepository
    OptionsRepository().set("origin_url", ORIGIN).set(
        "temp_files_dir", str(temp_files_dir)
    ).save()

    yield tmp_path

    remove_session()


@pytest.fixture
def site():
    """The origin site used throughout the tests."""
    return SiteOrigin.from_url(ORIGIN)


# ============================================================================
# HTML Fixtures
# ============================================================================

@pytest.fixture
def home_html():
    """Origin home page linking to local and remote resources."""
    return b"""<!DOCTYPE html>
<html>
<head>
    <title>Example</title>
    <link rel="stylesheet" href="/style.css">
    <meta property="og:image" content="http://example.test/images/og.png">
</head>
<body>
    <nav>
        <a href="/">Home</a>
        <a href="/about">About</a>
        <a href="http://example.test/blog/#latest">Blog</a>
        <a href="https://elsewhere.test/">Elsewhere</a>
        <a href="mailto:hello@example.test">Mail</a>
    </nav>
    <img src="images/logo.png" srcset="images/logo.png 1x, images/logo@2x.png 2x">
</body>
</html>
"""


@pytest.fixture
def about_html():
    """A second-level page linking back home."""
    return b"""<!DOCTYPE html>
<html>
<head><title>About</title></head>
<body>
    <a href="/">Home</a>
    <a href="../about#team">Team</a>
</body>
</html>
"""


# ============================================================================
# Mock Objects
# ============================================================================

@pytest.fixture
def mock_response():
    """Factory for streamed requests responses."""
    def _create(status_code=200, body=b"", content_type="text/html; charset=utf-8"):
        response = Mock()
        response.status_code = status_code
        response.headers = {"Content-Type": content_type} if content_type else {}
        response.iter_content = Mock(return_value=[body])
        response.close = Mock()
        return response
    return _create


@pytest.fixture
def fake_origin(mock_response):
    """
    Factory for a session.get replacement serving a fixed set of URLs.

    Takes a mapping of URL to (status_code, content_type, body); any
    other URL gets a 404.
    """
    def _create(routes):
        requested = []

        def get(url, **kwargs):
            requested.append(url)
            status_code, content_type, body = routes.get(url, (404, "text/html", b"Not Found"))
            return mock_response(status_code, body, content_type)

        get.requested = requested
        return get
    return _create
