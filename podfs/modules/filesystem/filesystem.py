"""
Pod filesystem operations.

Six operations (list, read, stat, download, delete, upload) built on the
kubectl gateway. Each call is independent and returns an OperationResult;
no exception escapes to the caller.
"""

import base64
import binascii
import logging
from typing import List, Optional

from podfs.config.provider import BridgeConfig
from podfs.modules.api.models import (
    FileContent,
    FileEntry,
    FileStat,
    FileType,
    OperationResult,
)
from podfs.modules.executor.kubectl import KubectlError, KubectlGateway, PodTarget

from .binary import classify_binary
from .listing import normalize_dir, parse_long_listing, parse_simple_listing, sort_entries

logger = logging.getLogger("podfs.filesystem")

STAT_FORMAT = "%F|%s|%a|%y"


def _error_message(error: Exception) -> str:
    return str(error) or error.__class__.__name__


class PodFilesystem:
    """Filesystem view of a container, one kubectl exec per remote step."""

    def __init__(self, gateway: Optional[KubectlGateway] = None, config: Optional[BridgeConfig] = None):
        """
        Initialize filesystem module.

        Args:
            gateway: kubectl gateway (built from config if omitted)
            config: Bridge configuration
        """
        self.config = config or (gateway.config if gateway else BridgeConfig())
        self.gateway = gateway or KubectlGateway(self.config)

    def _fail(self, operation: str, target: PodTarget, path: str, error: Exception) -> OperationResult:
        message = _error_message(error)
        logger.warning(f"{operation} {target.pod}/{target.container}:{path} failed: {message}")
        return OperationResult.fail(message)

    async def list_dir(self, target: PodTarget, dir_path: str) -> OperationResult[List[FileEntry]]:
        """
        List a directory.

        Tries `ls -la` first; if that command fails (e.g. a BusyBox ls
        without --color) falls back to `ls -1ap`, which only yields names
        and directory flags.
        """
        normalized = normalize_dir(dir_path)
        try:
            try:
                stdout = await self.gateway.exec(
                    target, ["ls", "-la", "--color=never", normalized]
                )
                entries = parse_long_listing(stdout, normalized)
            except KubectlError as e:
                logger.info(f"Detailed listing of {normalized} failed ({e}), using simple listing")
                stdout = await self.gateway.exec(target, ["ls", "-1ap", normalized])
                entries = parse_simple_listing(stdout, normalized)

            return OperationResult.ok(sort_entries(entries))
        except Exception as e:
            return self._fail("list", target, normalized, e)

    async def read_file(
        self, target: PodTarget, file_path: str, max_size: Optional[int] = None
    ) -> OperationResult[FileContent]:
        """
        Read a file as text.

        Binary files (by extension or NUL in the first 512 bytes) come back
        empty with is_binary set. Files larger than max_size are cut to
        their first max_size bytes and flagged truncated; size is always
        the full remote size.
        """
        limit = max_size or self.config.max_read_size
        try:
            size_output = await self.gateway.exec(target, ["stat", "-c", "%s", file_path])
            file_size = int(size_output.strip())

            async def fetch_sample(count: int) -> str:
                return await self.gateway.exec(target, ["head", "-c", str(count), file_path])

            if await classify_binary(file_path, fetch_sample):
                return OperationResult.ok(
                    FileContent(content="", truncated=False, size=file_size, is_binary=True)
                )

            if file_size > limit:
                content = await self.gateway.exec(target, ["head", "-c", str(limit), file_path])
                truncated = True
            else:
                content = await self.gateway.exec(target, ["cat", file_path])
                truncated = False

            return OperationResult.ok(
                FileContent(content=content, truncated=truncated, size=file_size, is_binary=False)
            )
        except Exception as e:
            return self._fail("read", target, file_path, e)

    async def stat_path(self, target: PodTarget, path: str) -> OperationResult[FileStat]:
        """Stat a path: type, size, octal permissions and raw mtime."""
        try:
            stdout = await self.gateway.exec(target, ["stat", "-c", STAT_FORMAT, path])
            fields = stdout.strip().split("|")
            if len(fields) < 4:
                raise ValueError(f"Unexpected stat output: {stdout.strip()!r}")
            type_str, size_str, permissions, modified = fields[:4]

            if "directory" in type_str:
                file_type = FileType.DIRECTORY
            elif "regular" in type_str:
                file_type = FileType.FILE
            elif "symbolic" in type_str:
                file_type = FileType.SYMLINK
            else:
                file_type = FileType.OTHER

            return OperationResult.ok(
                FileStat(type=file_type, size=int(size_str), permissions=permissions, modified=modified)
            )
        except Exception as e:
            return self._fail("stat", target, path, e)

    async def download_file(self, target: PodTarget, file_path: str) -> OperationResult[str]:
        """Full file content with no size cap or binary check."""
        try:
            content = await self.gateway.exec(target, ["cat", file_path])
            return OperationResult.ok(content)
        except Exception as e:
            return self._fail("download", target, file_path, e)

    async def delete_path(
        self, target: PodTarget, path: str, is_directory: bool
    ) -> OperationResult[None]:
        """rm -rf for directories, rm -f for files."""
        command = ["rm", "-rf", path] if is_directory else ["rm", "-f", path]
        try:
            await self.gateway.exec(target, command)
            logger.info(f"Deleted {target.pod}/{target.container}:{path}")
            return OperationResult.ok()
        except Exception as e:
            return self._fail("delete", target, path, e)

    async def upload_file(
        self, target: PodTarget, remote_path: str, content_base64: str
    ) -> OperationResult[None]:
        """Write base64-encoded content to remote_path, replacing any existing file."""
        try:
            try:
                content = base64.b64decode(content_base64, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Invalid base64 content: {e}") from e

            await self.gateway.write_file(target, remote_path, content)
            logger.info(f"Uploaded {len(content)} bytes to {target.pod}/{target.container}:{remote_path}")
            return OperationResult.ok()
        except Exception as e:
            return self._fail("upload", target, remote_path, e)
