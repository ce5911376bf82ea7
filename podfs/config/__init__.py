"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config_provider(), BridgeConfig, APIConfig, AuthConfig
Hidden: Environment parsing and defaults
"""

from .provider import (
    APIConfig,
    AuthConfig,
    BridgeConfig,
    ConfigProvider,
    EnvConfigProvider,
    get_config_provider,
)

__all__ = [
    "APIConfig",
    "AuthConfig",
    "BridgeConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "get_config_provider",
]
