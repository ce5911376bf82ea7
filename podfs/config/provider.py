"""Configuration provider following Black Box Design principles."""
import os
import tempfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

DEFAULT_EXEC_TIMEOUT = 10.0
DEFAULT_UPLOAD_TIMEOUT = 30.0
DEFAULT_MAX_READ_SIZE = 1024 * 1024  # 1MB
DEFAULT_MAX_OUTPUT_BYTES = DEFAULT_MAX_READ_SIZE * 2


@dataclass
class BridgeConfig:
    """kubectl bridge configuration."""
    kubectl_path: str = "kubectl"
    exec_timeout: float = DEFAULT_EXEC_TIMEOUT
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    max_read_size: int = DEFAULT_MAX_READ_SIZE
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    kubeconfig_env: str = "KUBECONFIG"


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    cors_origins: List[str]


@dataclass
class AuthConfig:
    """Authentication configuration."""
    api_keys: Dict[str, Optional[str]]


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_bridge_config(self) -> BridgeConfig:
        """Get kubectl bridge configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...


def _positive_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return cast(default)
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {raw!r}")
    return value


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_bridge_config(self) -> BridgeConfig:
        """Get bridge configuration from environment variables."""
        return BridgeConfig(
            kubectl_path=os.getenv("PODFS_KUBECTL", "kubectl"),
            exec_timeout=_positive_number("PODFS_EXEC_TIMEOUT", DEFAULT_EXEC_TIMEOUT),
            upload_timeout=_positive_number("PODFS_UPLOAD_TIMEOUT", DEFAULT_UPLOAD_TIMEOUT),
            max_output_bytes=_positive_number(
                "PODFS_MAX_OUTPUT_BYTES", DEFAULT_MAX_OUTPUT_BYTES, int
            ),
            max_read_size=_positive_number("PODFS_MAX_READ_SIZE", DEFAULT_MAX_READ_SIZE, int),
            temp_dir=os.getenv("PODFS_TEMP_DIR") or tempfile.gettempdir(),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=_positive_number("API_PORT", 8080, int),
            host=os.getenv("API_HOST", "127.0.0.1"),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()],
        )

    def get_auth_config(self) -> AuthConfig:
        """
        Get authentication configuration from environment variables.

        Format: API_KEYS="key1,service1:key2". Each key maps to its optional
        service identity.
        """
        keys: Dict[str, Optional[str]] = {}
        for entry in os.getenv("API_KEYS", "").split(","):
            entry = entry.strip()
            if not entry:
                continue
            if ":" in entry:
                service, key = entry.split(":", 1)
                keys[key.strip()] = service.strip()
            else:
                keys[entry] = None
        return AuthConfig(api_keys=keys)


# Singleton instance
_instance: Optional[ConfigProvider] = None


def get_config_provider() -> ConfigProvider:
    """Get the configuration provider singleton."""
    global _instance
    if _instance is None:
        _instance = EnvConfigProvider()
    return _instance
