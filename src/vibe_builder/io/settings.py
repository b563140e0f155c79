"""Settings file I/O for vibe-builder.

Manages a JSON settings file at XDG_CONFIG_HOME/vibe-builder/settings.json.
View-state tuning is one consumer; other settings can be added as top-level keys.

Import as: import vibe_builder.io.settings
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewStateConfig:
    """Tunables for the view-state machine."""

    # Viewport widths below this use the mobile preview/code toggle
    mobile_breakpoint: int = 768
    # Seconds to wait after an iframe readiness report before auto-navigating
    auto_navigate_delay: float = 0.05


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / vibe-builder / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "vibe-builder" / "settings.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt read; empty dict is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(data: dict) -> None:
    """Atomic write of settings dict to JSON file.

    Creates parent directories if needed. Writes to temp file then renames
    to avoid partial writes on crash.
    """
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_setting(key: str, default=None):
    """Load a single setting by key. Returns default if absent."""
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    """Save a single setting by key (merge into existing settings)."""
    data = load_settings()
    data[key] = value
    save_settings(data)


def _positive_number(value, default, cast):
    if isinstance(value, bool):
        return default
    try:
        number = cast(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 0 else default


def load_view_state_config() -> ViewStateConfig:
    """Build ViewStateConfig from the "view_state" settings section.

    Missing or invalid values fall back to the dataclass defaults.
    """
    section = load_settings().get("view_state", {})
    if not isinstance(section, dict):
        logger.warning("ignoring non-object view_state settings: %r", section)
        section = {}
    defaults = ViewStateConfig()
    return ViewStateConfig(
        mobile_breakpoint=_positive_number(
            section.get("mobile_breakpoint"), defaults.mobile_breakpoint, int
        ),
        auto_navigate_delay=_positive_number(
            section.get("auto_navigate_delay"), defaults.auto_navigate_delay, float
        ),
    )


def save_view_state_config(config: ViewStateConfig) -> None:
    save_setting(
        "view_state",
        {
            "mobile_breakpoint": config.mobile_breakpoint,
            "auto_navigate_delay": config.auto_navigate_delay,
        },
    )
