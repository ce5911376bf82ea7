"""Tests for environment configuration and the auth module."""

import logging
import logging.config
import tempfile

import pytest

from podfs.config.provider import AuthConfig, EnvConfigProvider
from podfs.logging_config import HealthCheckFilter, get_logging_config, parse_area_levels
from podfs.modules.auth import AuthModule

BRIDGE_VARS = [
    "PODFS_KUBECTL",
    "PODFS_EXEC_TIMEOUT",
    "PODFS_UPLOAD_TIMEOUT",
    "PODFS_MAX_OUTPUT_BYTES",
    "PODFS_MAX_READ_SIZE",
    "PODFS_TEMP_DIR",
    "API_KEYS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in BRIDGE_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestBridgeConfig:

    def test_defaults(self, clean_env):
        config = EnvConfigProvider().get_bridge_config()

        assert config.kubectl_path == "kubectl"
        assert config.exec_timeout == 10
        assert config.upload_timeout == 30
        assert config.max_read_size == 1024 * 1024
        assert config.max_output_bytes == 2 * 1024 * 1024
        assert config.temp_dir == tempfile.gettempdir()
        assert config.kubeconfig_env == "KUBECONFIG"

    def test_overrides(self, clean_env, tmp_path):
        clean_env.setenv("PODFS_KUBECTL", "/usr/local/bin/kubectl")
        clean_env.setenv("PODFS_EXEC_TIMEOUT", "2.5")
        clean_env.setenv("PODFS_MAX_READ_SIZE", "4096")
        clean_env.setenv("PODFS_TEMP_DIR", str(tmp_path))

        config = EnvConfigProvider().get_bridge_config()

        assert config.kubectl_path == "/usr/local/bin/kubectl"
        assert config.exec_timeout == 2.5
        assert config.max_read_size == 4096
        assert config.temp_dir == str(tmp_path)

    @pytest.mark.parametrize("value", ["abc", "0", "-5"])
    def test_invalid_numbers(self, clean_env, value):
        clean_env.setenv("PODFS_UPLOAD_TIMEOUT", value)

        with pytest.raises(ValueError, match="PODFS_UPLOAD_TIMEOUT"):
            EnvConfigProvider().get_bridge_config()


class TestAuthConfig:

    def test_parses_service_keys(self, clean_env):
        clean_env.setenv("API_KEYS", "plainkey, desktop:abc123 ,,")

        config = EnvConfigProvider().get_auth_config()

        assert config.api_keys == {"plainkey": None, "abc123": "desktop"}
        assert AuthModule(config).enabled is True

    def test_no_keys_means_open(self, clean_env):
        config = EnvConfigProvider().get_auth_config()

        assert config.api_keys == {}
        assert AuthModule(config).enabled is False


class TestAuthModule:

    def test_disabled_allows_everything(self):
        auth = AuthModule(AuthConfig(api_keys={}))

        assert auth.verify_api_key(None).ok is True

    def test_identity_from_service_prefix(self):
        auth = AuthModule(AuthConfig(api_keys={"abc123": "desktop", "plain": None}))

        assert auth.verify_api_key("abc123").identity == "desktop"
        assert auth.verify_api_key("plain").identity == "default"

    def test_rejections(self):
        auth = AuthModule(AuthConfig(api_keys={"abc123": "desktop"}))

        assert auth.verify_api_key(None).error == "Missing API key"
        assert auth.verify_api_key("abc12").error == "Invalid API key"


def test_logging_config_levels(monkeypatch):
    monkeypatch.delenv("LOG_LEVELS", raising=False)
    config = get_logging_config("debug")

    assert config["loggers"]["podfs"]["level"] == "DEBUG"
    assert config["loggers"]["uvicorn.access"]["filters"] == ["health_check_filter"]


def test_health_check_filter():
    health_filter = HealthCheckFilter()
    health = logging.LogRecord("uvicorn.access", logging.INFO, "", 0, '"GET /health HTTP/1.1" 200', None, None)
    other = logging.LogRecord("uvicorn.access", logging.INFO, "", 0, '"GET /api/v1/x HTTP/1.1" 200', None, None)

    assert health_filter.filter(health) is False
    assert health_filter.filter(other) is True


class TestAreaLevels:

    def test_parse(self):
        assert parse_area_levels("executor=debug, podfs.auth=WARNING,") == {
            "podfs.executor": "DEBUG",
            "podfs.auth": "WARNING",
        }

    @pytest.mark.parametrize("spec", ["executor", "=DEBUG", "executor=LOUD"])
    def test_rejects_malformed(self, spec):
        with pytest.raises(ValueError, match="LOG_LEVELS"):
            parse_area_levels(spec)

    def test_rejects_unknown_base_level(self):
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            get_logging_config("chatty", area_levels={})

    def test_module_loggers_follow_podfs_and_area_levels(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVELS", "executor=DEBUG")
        podfs_logger = logging.getLogger("podfs")
        executor_logger = logging.getLogger("podfs.executor")
        saved = (podfs_logger.level, podfs_logger.propagate, list(podfs_logger.handlers), executor_logger.level)

        try:
            logging.config.dictConfig(get_logging_config("warning"))

            assert logging.getLogger("podfs.executor.kubectl").getEffectiveLevel() == logging.DEBUG
            assert logging.getLogger("podfs.filesystem").getEffectiveLevel() == logging.WARNING
            assert executor_logger.handlers == []
            assert executor_logger.propagate is True
        finally:
            podfs_logger.setLevel(saved[0])
            podfs_logger.propagate = saved[1]
            podfs_logger.handlers[:] = saved[2]
            executor_logger.setLevel(saved[3])
