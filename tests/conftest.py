"""Pytest configuration and shared fixtures for the pastedown test suite.

This module provides shared fixtures and marker registration used across
the unit and integration tests.
"""

import base64
from pathlib import Path

import pytest
from bs4 import Tag

from pastedown.dom import parse_fragment, serialize
from pastedown.resources import DirectoryResourceStore

# Smallest valid PNG: 1x1 transparent pixel
PNG_PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - full pipeline tests")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "network: Tests exercising HTTP fetching (always mocked)")


@pytest.fixture
def parse():
    """Return a helper parsing an HTML fragment into a ``<body>`` root."""

    def _parse(html: str) -> Tag:
        return parse_fragment(html)

    return _parse


@pytest.fixture
def render_tree():
    """Return a helper serializing a root back to compact HTML."""

    def _render(root: Tag) -> str:
        return serialize(root).strip()

    return _render


@pytest.fixture
def png_bytes() -> bytes:
    """Provide a tiny valid PNG image."""
    return PNG_PIXEL


@pytest.fixture
def png_data_uri() -> str:
    """Provide a ``data:image/png`` URI holding a tiny PNG."""
    return "data:image/png;base64," + base64.b64encode(PNG_PIXEL).decode("ascii")


@pytest.fixture
def resource_store(tmp_path: Path) -> DirectoryResourceStore:
    """Provide a directory-backed resource store rooted in a temp dir."""
    return DirectoryResourceStore(tmp_path)


@pytest.fixture(autouse=True)
def _network_enabled(monkeypatch):
    """Make sure a developer's environment cannot disable mocked fetches."""
    monkeypatch.delenv("PASTEDOWN_DISABLE_NETWORK", raising=False)
    monkeypatch.delenv("PASTEDOWN_USER_AGENT", raising=False)
