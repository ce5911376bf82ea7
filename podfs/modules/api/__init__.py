"""
API Module - Black Box Interface

Purpose: Data contracts between filesystem operations and their callers
Interface: FileEntry, FileContent, FileStat, OperationResult, request models
Hidden: Wire aliasing and validation
"""

from .models import (
    DeleteRequest,
    FileContent,
    FileEntry,
    FileStat,
    FileType,
    OperationResult,
    UploadRequest,
)

__all__ = [
    "DeleteRequest",
    "FileContent",
    "FileEntry",
    "FileStat",
    "FileType",
    "OperationResult",
    "UploadRequest",
]
