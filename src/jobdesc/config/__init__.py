"""Configuration models and the lazily loaded global settings."""

from __future__ import annotations

from .config import (
    Config,
    DomainProfileConfig,
    FetchConfig,
    MonitoringConfig,
    ProfilesConfig,
    ValidationConfig,
    find_config_file,
    settings,
)

__all__ = [
    "Config",
    "DomainProfileConfig",
    "FetchConfig",
    "MonitoringConfig",
    "ProfilesConfig",
    "ValidationConfig",
    "find_config_file",
    "settings",
]
