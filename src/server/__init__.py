"""Shell UI server: static page plus websocket state stream and commands."""

from .config import ServerConfigurationError, UIServerConfig
from .service import CommandHandler, UIServer

__all__ = [
    "CommandHandler",
    "ServerConfigurationError",
    "UIServerConfig",
    "UIServer",
]
