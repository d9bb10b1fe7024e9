"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONFIG_FILE = "config.toml"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class CycleSettings:
    """Break-cycle switches loaded from `[cycle]`."""
    debug_mode: bool = False
    start_on_launch: bool = True
    allow_break_dismissal: bool = False


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in shell UI server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""


@dataclass(frozen=True)
class LoggingSettings:
    """Root logging settings from `[logging]`."""
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    cycle: CycleSettings
    ui_server: UIServerSettings
    logging: LoggingSettings
    source_file: str
