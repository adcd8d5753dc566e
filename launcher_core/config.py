"""
Launcher Core Configuration
===========================
Centralized configuration for the command registry and its HTTP surface.

Values are read from the environment (prefix ``LAUNCHER_``), e.g.::

    LAUNCHER_CACHE_TTL_SECONDS=30
    LAUNCHER_APPLICATION_DIRS='["/Applications", "/opt/apps"]'

List fields take JSON arrays, as pydantic-settings expects.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

# -----------------------------------------------------------------------------
# Default macOS locations
# -----------------------------------------------------------------------------

HOME_DIR = Path.home()


def _default_application_dirs() -> List[str]:
    return [
        "/Applications",
        "/System/Applications",
        "/System/Applications/Utilities",
        str(HOME_DIR / "Applications"),
    ]


def _default_preference_pane_dirs() -> List[str]:
    return [
        "/System/Library/PreferencePanes",
        "/Library/PreferencePanes",
        str(HOME_DIR / "Library" / "PreferencePanes"),
    ]


def _default_settings_app_paths() -> List[str]:
    return [
        "/System/Applications/System Settings.app",
        "/System/Applications/System Preferences.app",
    ]


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------

class Settings(BaseSettings):  # type: ignore[misc]
    """Launcher settings; every field can be overridden from the environment."""

    # Server
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    # Catalog
    cache_ttl_seconds: float = 120.0
    batch_size: int = 15

    # Icons
    icon_size: int = 64
    min_icon_bytes: int = 100
    icon_temp_dir: Optional[str] = None

    # External tools
    tool_timeout_seconds: float = 10.0
    plutil_path: str = "/usr/bin/plutil"
    sips_path: str = "/usr/bin/sips"
    qlmanage_path: str = "/usr/bin/qlmanage"
    open_path: str = "/usr/bin/open"

    # Discovery locations
    application_dirs: List[str] = Field(default_factory=_default_application_dirs)
    extension_dir: str = "/System/Library/ExtensionKit/Extensions"
    preference_pane_dirs: List[str] = Field(default_factory=_default_preference_pane_dirs)
    settings_app_paths: List[str] = Field(default_factory=_default_settings_app_paths)

    # Dispatch
    settings_url_scheme: str = "x-apple.systempreferences:"

    class Config:
        env_prefix = "LAUNCHER_"
        extra = "ignore"


# Singleton settings instance
settings = Settings()
