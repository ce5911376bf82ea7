"""
Shared pytest fixtures for PodFS tests.

This module provides common fixtures including:
- KubectlMocker: Mock kubectl child processes with canned responses
- FakeProcess: asyncio.subprocess.Process stand-in with real StreamReaders
- Bridge configuration pointing at an isolated temp directory
"""

import asyncio
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Union
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from podfs.config.provider import BridgeConfig
from podfs.modules.executor import KubectlGateway, PodTarget


# =============================================================================
# Kubectl Mocking Infrastructure
# =============================================================================

@dataclass
class KubectlResponse:
    """Represents a mocked kubectl process outcome."""
    stdout: Union[str, bytes] = ""
    stderr: Union[str, bytes] = ""
    returncode: int = 0
    hang: bool = False  # never exits until killed
    linger: bool = False  # pipes stay open after kill, as if a helper still holds them
    spawn_error: Optional[OSError] = None
    stdin_error: Optional[Exception] = None


class FakeStdin:
    """Write side of the child's stdin pipe."""

    def __init__(self, error: Optional[Exception] = None):
        self.buffer = bytearray()
        self.closed = False
        self._error = error

    def write(self, data: bytes) -> None:
        if self._error:
            raise self._error
        self.buffer.extend(data)

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


class FakeProcess:
    """Minimal asyncio.subprocess.Process replacement."""

    def __init__(self, response: KubectlResponse):
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.stdin = FakeStdin(response.stdin_error)
        self.returncode: Optional[int] = None
        self.killed = False
        self._linger = response.linger
        self.wait_calls = 0
        self._exited = asyncio.Event()

        self.stdout.feed_data(_as_bytes(response.stdout))
        self.stderr.feed_data(_as_bytes(response.stderr))
        if not response.hang:
            self._exit(response.returncode)

    def _exit(self, code: int) -> None:
        if not self.stdout.at_eof():
            self.stdout.feed_eof()
        if not self.stderr.at_eof():
            self.stderr.feed_eof()
        self.returncode = code
        self._exited.set()

    async def wait(self) -> int:
        self.wait_calls += 1
        await self._exited.wait()
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        if self.returncode is None:
            if self._linger:
                # Exit status is known but wait() only returns once the pipes close
                self.returncode = -9
            else:
                self._exit(-9)


@dataclass
class KubectlCall:
    """Record of a kubectl invocation made during testing."""
    command: List[str]
    full_command_str: str
    env: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, object] = field(default_factory=dict)
    matched_pattern: Optional[str] = None
    process: Optional[FakeProcess] = None

    @property
    def remote_command(self) -> List[str]:
        """Arguments after the `--` separator."""
        return self.command[self.command.index("--") + 1:]


class KubectlMocker:
    """
    Mock kubectl child processes with pattern-matched responses.

    Patches asyncio.create_subprocess_exec so the gateway talks to
    FakeProcess objects instead of a real cluster.

    Usage:
        async def test_listing(kubectl_mocker, gateway, target):
            kubectl_mocker.register("ls -la", KubectlResponse(stdout="..."))
            await gateway.exec(target, ["ls", "-la", "/"])
            assert kubectl_mocker.was_called_with("ls -la")
    """

    def __init__(self):
        self._responses: List[tuple] = []
        self._call_history: List[KubectlCall] = []
        self._default_response = KubectlResponse(
            stderr="Error: mock not configured for this command",
            returncode=1,
        )

    def register(
        self,
        pattern: Union[str, Pattern],
        response: KubectlResponse,
        priority: int = 0,
    ) -> "KubectlMocker":
        """
        Register a response for commands matching the pattern.

        Args:
            pattern: String (substring match) or regex pattern
            response: KubectlResponse to return when matched
            priority: Higher priority patterns are checked first
        """
        self._responses.append((pattern, response, priority))
        self._responses.sort(key=lambda x: x[2], reverse=True)
        return self

    def set_default_response(self, response: KubectlResponse) -> "KubectlMocker":
        """Set the default response for unmatched commands."""
        self._default_response = response
        return self

    async def mock_create_subprocess_exec(self, *args, **kwargs) -> FakeProcess:
        """Side effect for asyncio.create_subprocess_exec."""
        command = list(args)
        kubectl_args = " ".join(command[1:])
        matched_pattern = None
        response = self._default_response

        for pattern, resp, _ in self._responses:
            if isinstance(pattern, str):
                if pattern in kubectl_args:
                    matched_pattern = pattern
                    response = resp
                    break
            elif pattern.search(kubectl_args):
                matched_pattern = pattern.pattern
                response = resp
                break

        call = KubectlCall(
            command=command,
            full_command_str=" ".join(command),
            env=kwargs.get("env") or {},
            options=kwargs,
            matched_pattern=matched_pattern,
        )
        self._call_history.append(call)

        if response.spawn_error is not None:
            raise response.spawn_error

        call.process = FakeProcess(response)
        return call.process

    @property
    def calls(self) -> List[KubectlCall]:
        """Get all kubectl calls made during the test."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    def was_called_with(self, pattern: str) -> bool:
        """Check if any call contained the given pattern."""
        return any(pattern in call.full_command_str for call in self._call_history)

    def get_calls_matching(self, pattern: str) -> List[KubectlCall]:
        """Get all calls containing the given pattern."""
        return [c for c in self._call_history if pattern in c.full_command_str]

    def reset(self):
        """Clear call history (but keep registered responses)."""
        self._call_history = []


@pytest.fixture
def kubectl_mocker():
    """
    Fixture that provides a KubectlMocker with asyncio.create_subprocess_exec patched.
    """
    mocker = KubectlMocker()
    with patch("asyncio.create_subprocess_exec", side_effect=mocker.mock_create_subprocess_exec):
        yield mocker


# =============================================================================
# Bridge Fixtures
# =============================================================================

@pytest.fixture
def bridge_config(tmp_path):
    """Bridge config with short timeouts and an isolated temp dir."""
    return BridgeConfig(
        kubectl_path="kubectl",
        exec_timeout=5,
        upload_timeout=5,
        temp_dir=str(tmp_path),
    )


@pytest.fixture
def gateway(bridge_config):
    return KubectlGateway(bridge_config)


@pytest.fixture
def target():
    return PodTarget(cluster_id="c0ffee", namespace="default", pod="web-0", container="app")


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "kubectl_mock: Tests using mocked kubectl child processes"
    )
