"""
Binary file detection.

Known binary extensions are decided locally; anything else is sampled
and treated as binary when the first 512 bytes contain a NUL. Text-like
binary formats without an early NUL slip through as text.
"""

import logging
import posixpath
from typing import Awaitable, Callable, Optional

from podfs.modules.executor.kubectl import KubectlError

logger = logging.getLogger("podfs.filesystem.binary")

SAMPLE_SIZE = 512

KNOWN_BINARY_EXTENSIONS = frozenset({
    # images
    "png", "jpg", "jpeg", "gif", "bmp", "ico", "webp", "svg",
    # archives
    "gz", "tar", "zip", "bz2", "xz", "7z", "rar", "zst",
    # executables and objects
    "bin", "so", "o", "a", "dylib", "dll", "exe", "elf",
    "wasm", "class", "pyc", "pyo",
    # documents
    "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
    # media
    "mp3", "mp4", "wav", "ogg", "flac", "avi", "mkv", "mov",
    # fonts
    "ttf", "otf", "woff", "woff2", "eot",
    # databases
    "sqlite", "db",
})


def file_extension(path: str) -> Optional[str]:
    """Lowercase extension of the last path component, without the dot."""
    name = posixpath.basename(path)
    if "." not in name:
        return None
    return name.rsplit(".", 1)[1].lower() or None


def is_binary_by_extension(path: str) -> bool:
    ext = file_extension(path)
    return ext in KNOWN_BINARY_EXTENSIONS if ext else False


def looks_binary(sample: str) -> bool:
    """A NUL byte in the sample means binary."""
    return "\0" in sample


async def classify_binary(path: str, fetch_sample: Callable[[int], Awaitable[str]]) -> bool:
    """
    Decide whether a remote file is binary.

    Args:
        path: Remote file path
        fetch_sample: Coroutine function returning the first N bytes as text

    Returns:
        True if the file should not be shown as text

    Logic:
    1. Known binary extension -> binary, no remote call
    2. NUL byte in the first SAMPLE_SIZE bytes -> binary
    3. Sample fetch failed -> assume text (might be a short or special file)
    """
    if is_binary_by_extension(path):
        return True

    try:
        sample = await fetch_sample(SAMPLE_SIZE)
    except KubectlError as e:
        logger.debug(f"Could not sample {path}, assuming text: {e}")
        return False

    return looks_binary(sample)
