"""
Parsers for remote `ls` output.

parse_long_listing() handles `ls -la` output (GNU coreutils and BusyBox
both match). parse_simple_listing() handles `ls -1ap`, the fallback for
shells whose ls rejects the long-format flags. Lines that do not look
like listing lines are skipped rather than failing the whole directory.
"""

import re
from typing import List

from podfs.modules.api.models import FileEntry

SYMLINK_ARROW = " -> "

# perms  links  owner  group  size  month  day  time|year  name
LS_LONG_LINE = re.compile(
    r"^(?P<permissions>\S{10,11})\s+"
    r"(?P<links>\d+)\s+"
    r"(?P<owner>\S+)\s+"
    r"(?P<group>\S+)\s+"
    r"(?P<size>\d+)\s+"
    r"(?P<month>\w+)\s+"
    r"(?P<day>\d+)\s+"
    r"(?P<time>[\d:]+)\s+"
    r"(?P<name>.+)$"
)


def normalize_dir(path: str) -> str:
    """Ensure a directory path ends with a single trailing slash."""
    return path if path.endswith("/") else f"{path}/"


def _lines(output: str):
    for raw_line in output.split("\n"):
        # kubectl on Windows emits CRLF
        yield raw_line[:-1] if raw_line.endswith("\r") else raw_line


def parse_long_listing(output: str, dir_path: str) -> List[FileEntry]:
    """
    Parse `ls -la` output into entries.

    Args:
        output: Raw listing text
        dir_path: Directory that was listed, ending with "/"

    Returns:
        Entries in listing order, without "." and ".."
    """
    entries: List[FileEntry] = []

    for line in _lines(output):
        if not line or line.startswith("total "):
            continue

        match = LS_LONG_LINE.match(line)
        if not match:
            continue

        permissions = match.group("permissions")
        raw_name = match.group("name")
        if raw_name in (".", ".."):
            continue

        type_char = permissions[0]
        is_symlink = type_char == "l"
        name = raw_name
        symlink_target = None

        if is_symlink and SYMLINK_ARROW in raw_name:
            name, symlink_target = raw_name.split(SYMLINK_ARROW, 1)

        entries.append(
            FileEntry(
                name=name,
                path=f"{dir_path}{name}",
                is_directory=type_char == "d",
                permissions=permissions,
                size=int(match.group("size")),
                is_symlink=is_symlink,
                symlink_target=symlink_target,
            )
        )

    return entries


def parse_simple_listing(output: str, dir_path: str) -> List[FileEntry]:
    """
    Parse `ls -1ap` output (one name per line, directories end in "/").

    Only name, path and is_directory are known in this mode.
    """
    entries: List[FileEntry] = []

    for line in _lines(output):
        if not line or line in ("./", "../"):
            continue

        is_directory = line.endswith("/")
        name = line[:-1] if is_directory else line

        entries.append(FileEntry(name=name, path=f"{dir_path}{name}", is_directory=is_directory))

    return entries


def sort_entries(entries: List[FileEntry]) -> List[FileEntry]:
    """Directories first, then by name ignoring case."""
    return sorted(entries, key=lambda e: (not e.is_directory, e.name.lower(), e.name))
