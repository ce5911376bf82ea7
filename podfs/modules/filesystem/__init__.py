"""
Filesystem Module - Black Box Interface

Purpose: Filesystem operations on a container over kubectl exec
Interface: list_dir(), read_file(), stat_path(), download_file(), delete_path(), upload_file()
Hidden: Remote shell commands, ls parsing, binary detection

Every operation returns an OperationResult envelope and never raises.
"""

from .filesystem import PodFilesystem

__all__ = ["PodFilesystem"]
