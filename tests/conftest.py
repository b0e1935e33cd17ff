"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

FIXTURES_DIR = Path(__file__).parent / "fixtures"

from rom_launcher.command import sanitize_value  # noqa: E402
from rom_launcher.config import reload_config  # noqa: E402


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch):
    """Run every test with the default configuration."""
    for name in ("ROML_LOG_DEBUG", "ROML_NEW_SESSION", "ROML_TERMINATE_AFTER_WAIT"):
        monkeypatch.delenv(name, raising=False)
    reload_config()
    yield
    reload_config()


@pytest.fixture
def fake_game() -> str:
    """Command line prefix running the fake game with this interpreter."""
    script = FIXTURES_DIR / "fake_game.py"
    return f"{sanitize_value(sys.executable)} {sanitize_value(str(script))}"
