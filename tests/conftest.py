"""Shared fixtures for SimpleBox tests."""

import pytest

import file_server
from file_registry import FileRegistry


@pytest.fixture
def upload_dir(tmp_path):
    """Create an empty storage directory."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def registry(upload_dir):
    return FileRegistry(upload_dir)


@pytest.fixture
def app(registry, monkeypatch):
    """Flask app wired to the temporary registry."""
    monkeypatch.setattr(file_server, "registry", registry)
    monkeypatch.setitem(file_server.app.config, "TESTING", True)
    return file_server.app


@pytest.fixture
def client(app):
    return app.test_client()
