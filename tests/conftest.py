"""
Pytest configuration for codexcfg tests.

This file configures pytest with custom markers, command-line options
and shared fixtures for building settings homes.
"""

from pathlib import Path
from typing import Callable

import pytest


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run end-to-end tests with real API calls",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end (requires real API keys, use --run-e2e to run)"
    )
    config.addinivalue_line("markers", "openai: mark test as requiring OpenAI API key")


def pytest_collection_modifyitems(config, items):
    """Skip e2e tests unless --run-e2e is passed."""
    if config.getoption("--run-e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="Need --run-e2e option to run end-to-end tests")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture
def codex_home(tmp_path: Path) -> Path:
    """An empty settings home."""
    home = tmp_path / "codex-home"
    home.mkdir()
    return home


@pytest.fixture
def write_home(codex_home: Path) -> Callable[..., Path]:
    """Write files into the settings home: write_home(**{"config.toml": "..."})."""

    def _write(**files: str) -> Path:
        for name, content in files.items():
            (codex_home / name).write_text(content, encoding="utf-8")
        return codex_home

    return _write
