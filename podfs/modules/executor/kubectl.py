"""
kubectl exec bridge.

Runs commands inside a container through `kubectl exec`. Two modes:

- exec(): one-shot command, stdout captured as text, bounded by a timeout
  and an output ceiling.
- write_file(): interactive `kubectl exec -i` that streams bytes into
  `sh -c 'cat > "$0"'`, closing stdin to mark end of data. A watchdog
  kills the process if the transfer takes too long.

Failures are raised as KubectlError subclasses so callers can tell
"never ran" (spawn), "ran too long" (timeout) and "ran and failed" (exit
code) apart.
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from podfs.config.provider import BridgeConfig

from .credentials import KubectlEnvironment, build_kubectl_env

logger = logging.getLogger("podfs.executor.kubectl")

READ_CHUNK_SIZE = 64 * 1024

# Seconds to wait for a killed kubectl to be reaped. A helper it spawned
# can keep the pipes open long after kubectl itself is gone.
KILL_GRACE_PERIOD = 1.0


class KubectlError(Exception):
    """Base class for kubectl bridge failures."""


class KubectlSpawnError(KubectlError):
    """kubectl could not be started."""


class KubectlTimeoutError(KubectlError):
    """kubectl ran longer than allowed and was killed."""

    def __init__(self, message: str, timeout: float):
        super().__init__(message)
        self.timeout = timeout


class UploadTimeoutError(KubectlTimeoutError):
    """Streaming upload did not finish within the watchdog window."""


class KubectlCommandError(KubectlError):
    """kubectl (or the remote command) exited non-zero."""

    def __init__(self, returncode: int, stderr: str, action: str = "Command failed"):
        message = f"{action} (exit {returncode})"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class KubectlOutputLimitError(KubectlError):
    """Command produced more output than the configured ceiling."""

    def __init__(self, limit: int):
        super().__init__(f"Command output exceeded {limit} bytes")
        self.limit = limit


@dataclass(frozen=True)
class PodTarget:
    """Identifies one container in one pod on one cluster."""

    cluster_id: str
    namespace: str
    pod: str
    container: str


class CompletionLatch:
    """
    Single-fire result slot.

    Several competing sources (watchdog, process exit) race to settle the
    same operation; the first one wins and the rest become no-ops.
    """

    def __init__(self):
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def succeed(self, value=None) -> bool:
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    def fail(self, error: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(error)
        return True

    async def wait(self):
        return await self._future


async def _drain(stream: asyncio.StreamReader, limit: Optional[int]) -> bytes:
    """Read a pipe to EOF, failing as soon as it grows past limit."""
    chunks: List[bytes] = []
    total = 0
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if limit is not None and total > limit:
            raise KubectlOutputLimitError(limit)
        chunks.append(chunk)
    return b"".join(chunks)


def _decode(data: bytes) -> str:
    # errors="replace" keeps NUL bytes intact for binary detection
    return data.decode("utf-8", errors="replace")


class KubectlGateway:
    """Runs commands in pod containers through the kubectl CLI."""

    def __init__(self, config: Optional[BridgeConfig] = None):
        """
        Initialize gateway.

        Args:
            config: Bridge configuration (kubectl path, timeouts, limits)
        """
        self.config = config or BridgeConfig()

    def _environment(self, target: PodTarget) -> KubectlEnvironment:
        return build_kubectl_env(
            target.cluster_id,
            temp_dir=self.config.temp_dir,
            kubeconfig_env=self.config.kubeconfig_env,
        )

    def build_args(
        self,
        kube_env: KubectlEnvironment,
        target: PodTarget,
        command: Sequence[str],
        interactive: bool = False,
    ) -> List[str]:
        """Build the full kubectl argv for a command inside the target container."""
        args = [self.config.kubectl_path, *kube_env.kubeconfig_args(), "exec"]
        if interactive:
            args.append("-i")
        args.extend([
            target.pod,
            "-n", target.namespace,
            "-c", target.container,
            "--",
            *command,
        ])
        return args

    async def _spawn(
        self, args: List[str], env: dict, stdin, stdout=asyncio.subprocess.PIPE
    ) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *args,
                stdin=stdin,
                stdout=stdout,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            logger.warning(f"Failed to start {args[0]}: {e}")
            raise KubectlSpawnError(f"Failed to start {args[0]}: {e}") from e

    @staticmethod
    def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            # Already gone between the check and the signal
            with suppress(ProcessLookupError):
                proc.kill()

    async def _reap(self, proc: asyncio.subprocess.Process) -> None:
        """Kill the process and give it a bounded window to exit."""
        self._kill(proc)
        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(proc.wait(), KILL_GRACE_PERIOD)

    async def _communicate(self, proc: asyncio.subprocess.Process) -> Tuple[int, bytes, bytes]:
        limit = self.config.max_output_bytes
        stdout_task = asyncio.ensure_future(_drain(proc.stdout, limit))
        stderr_task = asyncio.ensure_future(_drain(proc.stderr, limit))
        try:
            stdout, stderr = await asyncio.gather(stdout_task, stderr_task)
        except BaseException:
            stdout_task.cancel()
            stderr_task.cancel()
            raise
        returncode = await proc.wait()
        return returncode, stdout, stderr

    async def exec(
        self,
        target: PodTarget,
        command: Sequence[str],
        timeout: Optional[float] = None,
    ) -> str:
        """
        Run a one-shot command in the container.

        Args:
            target: Pod container to run in
            command: Remote argv, e.g. ["ls", "-la", "/"]
            timeout: Seconds before the process is killed (default from config)

        Returns:
            Captured stdout as text

        Raises:
            KubectlSpawnError: kubectl could not be started
            KubectlTimeoutError: process ran longer than timeout
            KubectlOutputLimitError: stdout exceeded the output ceiling
            KubectlCommandError: non-zero exit
        """
        timeout = timeout or self.config.exec_timeout
        kube_env = self._environment(target)
        args = self.build_args(kube_env, target, command)

        logger.debug(f"Running: {' '.join(args)}")
        proc = await self._spawn(args, kube_env.env, asyncio.subprocess.DEVNULL)

        try:
            returncode, stdout, stderr = await asyncio.wait_for(
                self._communicate(proc), timeout=timeout
            )
        except asyncio.TimeoutError:
            await self._reap(proc)
            logger.warning(f"Command timed out after {timeout:g}s: {' '.join(command)}")
            raise KubectlTimeoutError(
                f"Command timed out after {timeout:g} seconds: {' '.join(command)}", timeout
            ) from None
        except KubectlOutputLimitError:
            await self._reap(proc)
            logger.warning(f"Command output too large: {' '.join(command)}")
            raise

        if returncode != 0:
            error = KubectlCommandError(returncode, _decode(stderr))
            logger.warning(f"{' '.join(command)}: {error}")
            raise error

        return _decode(stdout)

    async def write_file(self, target: PodTarget, remote_path: str, content: bytes) -> None:
        """
        Stream bytes into a file inside the container.

        Uses `kubectl exec -i ... -- sh -c 'cat > "$0"' <path>` and closes
        stdin after the payload so the remote cat sees EOF. The operation is
        settled exactly once, by process exit or by the watchdog, whichever
        comes first.

        Raises:
            KubectlSpawnError: kubectl could not be started
            UploadTimeoutError: transfer did not finish within upload_timeout
            KubectlCommandError: non-zero exit, message carries stderr
        """
        kube_env = self._environment(target)
        args = self.build_args(
            kube_env, target, ["sh", "-c", 'cat > "$0"', remote_path], interactive=True
        )

        logger.debug(f"Uploading {len(content)} bytes to {remote_path}")
        proc = await self._spawn(
            args, kube_env.env, asyncio.subprocess.PIPE, stdout=asyncio.subprocess.DEVNULL
        )

        latch = CompletionLatch()
        timeout = self.config.upload_timeout

        def on_watchdog() -> None:
            if latch.fail(UploadTimeoutError(f"Upload timed out after {timeout:g} seconds", timeout)):
                logger.warning(f"Upload to {remote_path} timed out, killing kubectl")
                self._kill(proc)

        watchdog = asyncio.get_running_loop().call_later(timeout, on_watchdog)
        transfer = asyncio.ensure_future(self._transfer(proc, content, latch))

        try:
            await latch.wait()
        finally:
            watchdog.cancel()
            if not transfer.done():
                transfer.cancel()
                await asyncio.wait({transfer})
            if proc.returncode is None:
                await self._reap(proc)

    async def _transfer(
        self, proc: asyncio.subprocess.Process, content: bytes, latch: CompletionLatch
    ) -> None:
        """Feed the payload, collect stderr and settle the latch on exit."""
        stderr_task = asyncio.ensure_future(proc.stderr.read())
        try:
            try:
                proc.stdin.write(content)
                await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                # Remote side exited early; its exit code and stderr tell why
                logger.debug(f"Upload stream closed early: {e}")
            finally:
                proc.stdin.close()

            stderr = _decode(await stderr_task)
            returncode = await proc.wait()
        except Exception as e:
            latch.fail(KubectlError(f"Upload failed: {e}"))
            return
        finally:
            stderr_task.cancel()

        if returncode == 0:
            latch.succeed()
        else:
            latch.fail(KubectlCommandError(returncode, stderr, action="Upload failed"))
