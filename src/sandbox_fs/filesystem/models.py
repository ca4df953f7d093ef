"""
Result models returned by the filesystem service.

All models are frozen snapshots; none of them holds an open handle.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FileMetadata(BaseModel):
    """Snapshot of a path's metadata, stale as soon as it is returned."""

    model_config = {"frozen": True}

    path: str = Field(description="Path as supplied by the caller")
    absolute_path: str = Field(description="Resolved absolute path")
    is_file: bool = Field(description="Whether the path is a regular file")
    is_directory: bool = Field(description="Whether the path is a directory")
    is_symbolic_link: bool = Field(description="Whether the path itself is a symlink")
    size: int = Field(description="Size in bytes")
    created: datetime = Field(description="Creation time (birth time where available)")
    modified: datetime = Field(description="Last modification time")
    accessed: datetime = Field(description="Last access time")


class MatchResult(BaseModel):
    """A single line matching a text search."""

    model_config = {"frozen": True}

    file: str = Field(description="File path relative to the root")
    line: int = Field(description="1-based line number")
    match: str = Field(description="The matching line")
    content: Optional[str] = Field(
        default=None, description="Context block around the match, if requested"
    )

    def __str__(self) -> str:
        return f"{self.file}:{self.line}: {self.match}"


class CommandResult(BaseModel):
    """Outcome of a command execution."""

    model_config = {"frozen": True}

    ok: bool = Field(description="True when the command exited with status 0")
    exit_code: int = Field(description="Exit status, 1 when none is available")
    stdout: str = Field(default="", description="Captured stdout, trimmed")
    stderr: str = Field(default="", description="Captured stderr, trimmed")
    error: Optional[str] = Field(
        default=None, description="Short diagnostic, only set when ok is False"
    )


class WatchEventKind(str, Enum):
    """Kinds of notifications emitted by a watch session."""

    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"
    ERROR = "error"
    READY = "ready"


class WatchEvent(BaseModel):
    """A notification delivered to watch session handlers."""

    model_config = {"frozen": True}

    kind: WatchEventKind
    path: Optional[str] = Field(default=None, description="Path relative to the root")
    error: Optional[str] = Field(default=None, description="Error message for error events")

    def __str__(self) -> str:
        if self.kind == WatchEventKind.ERROR:
            return f"error: {self.error}"
        if self.path is None:
            return self.kind.value
        return f"{self.kind.value}: {self.path}"
