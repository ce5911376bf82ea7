"""
PodFS shared data models.

These models define the structure of all data passed between the
filesystem operations and their callers. Attributes are snake_case in
Python and camelCase on the wire (isDirectory, symlinkTarget, ...).
"""

from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class WireModel(BaseModel):
    """Base model with camelCase aliases for HTTP callers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums


class FileType(str, Enum):
    """Type of a filesystem entry as reported by stat."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


# Response Models (API Output)


class FileEntry(WireModel):
    """One entry of a directory listing."""

    name: str
    path: str
    is_directory: bool
    permissions: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    is_symlink: Optional[bool] = None
    symlink_target: Optional[str] = None


class FileContent(WireModel):
    """Text content of a file, possibly truncated."""

    content: str
    truncated: bool
    size: int = Field(..., description="Full remote size in bytes, not the returned length")
    is_binary: Optional[bool] = None


class FileStat(WireModel):
    """Result of stat on a single path."""

    type: FileType
    size: int
    permissions: str
    modified: str = Field(..., description="Timestamp exactly as printed by the remote stat")


class OperationResult(BaseModel, Generic[T]):
    """
    Envelope returned by every filesystem operation.

    Either {success: true, data} or {success: false, error}.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "OperationResult[T]":
        return cls(success=False, error=error)


# Request Models (API Input)


class DeleteRequest(WireModel):
    """Request to delete a file or directory."""

    path: str = Field(..., min_length=1, description="Absolute path inside the container")
    is_directory: bool = Field(default=False, description="Remove recursively")


class UploadRequest(WireModel):
    """Request to write a file."""

    path: str = Field(..., min_length=1, description="Absolute path inside the container")
    content: str = Field(..., description="File content, base64 encoded")
