"""Configuration module for procroute."""

from procroute.config.loader import load_config, get_config_path, save_config
from procroute.config.schema import ClientConfig, Config, ServerConfig
from procroute.config.access import (
    clear_config_cache,
    get_client_config,
    get_config,
    get_server_config,
)

__all__ = [
    "ClientConfig",
    "Config",
    "ServerConfig",
    "load_config",
    "save_config",
    "get_config_path",
    "get_config",
    "get_server_config",
    "get_client_config",
    "clear_config_cache",
]
