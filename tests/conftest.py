"""Pytest configuration and shared fixtures for vibe-builder tests."""

from unittest.mock import MagicMock

import pytest

import vibe_builder.io.logging_setup


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def navigate():
    """Stand-in for the host router's navigate(path)."""
    return MagicMock(name="navigate")


# ---------------------------------------------------------------------------
# Settings / logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    """Redirect settings file to a temp directory."""
    settings_file = tmp_path / "vibe-builder" / "settings.json"
    monkeypatch.setattr(
        "vibe_builder.io.settings.get_config_path",
        lambda: settings_file,
    )
    return settings_file


@pytest.fixture
def isolated_logging(tmp_path, monkeypatch):
    """Point log output at tmp_path and undo handler wiring afterwards."""
    monkeypatch.setenv("VIBE_BUILDER_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("VIBE_BUILDER_LOG_FILE", raising=False)
    monkeypatch.delenv("VIBE_BUILDER_LOG_LEVEL", raising=False)
    vibe_builder.io.logging_setup.reset()
    yield tmp_path / "logs"
    vibe_builder.io.logging_setup.reset()
