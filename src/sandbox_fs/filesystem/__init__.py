"""
Root-confined local filesystem access for agents and tools.

This module provides a sandboxed filesystem service: path containment,
file primitives, ignore-aware tree walking, text search, globbing,
debounced change notifications and subprocess execution, all bound to a
single root directory.
"""

from sandbox_fs.filesystem.commands import clamp_timeout, merge_environment
from sandbox_fs.filesystem.compat import LegacyFileSystemAdapter
from sandbox_fs.filesystem.config import LocalFileSystemConfig
from sandbox_fs.filesystem.exceptions import (
    CommandError,
    FileOperationError,
    FileSystemError,
    GlobError,
    InvalidPathError,
    ParentDirectoryMissingError,
    PathExistsError,
    PathNotADirectoryError,
    PathNotAFileError,
    PathNotFoundError,
    PathOutsideRootError,
    SearchError,
)
from sandbox_fs.filesystem.models import (
    CommandResult,
    FileMetadata,
    MatchResult,
    WatchEvent,
    WatchEventKind,
)
from sandbox_fs.filesystem.paths import PathResolver
from sandbox_fs.filesystem.service import LocalFileSystemService
from sandbox_fs.filesystem.tools import LLMFileSystemTools
from sandbox_fs.filesystem.watcher import WatchSession

__all__ = [
    # Config
    "LocalFileSystemConfig",
    # Service
    "LocalFileSystemService",
    "LegacyFileSystemAdapter",
    "LLMFileSystemTools",
    "PathResolver",
    "WatchSession",
    "clamp_timeout",
    "merge_environment",
    # Models
    "CommandResult",
    "FileMetadata",
    "MatchResult",
    "WatchEvent",
    "WatchEventKind",
    # Exceptions
    "CommandError",
    "FileOperationError",
    "FileSystemError",
    "GlobError",
    "InvalidPathError",
    "ParentDirectoryMissingError",
    "PathExistsError",
    "PathNotADirectoryError",
    "PathNotAFileError",
    "PathNotFoundError",
    "PathOutsideRootError",
    "SearchError",
]
