"""
Sandbox FS - root-confined filesystem access for agent runtimes.

This package lets an automated agent read, write, search, watch and run
commands inside one directory tree without being able to reach outside it.
"""

__version__ = "0.1.0"

from sandbox_fs.filesystem import (
    CommandResult,
    FileMetadata,
    FileSystemError,
    LegacyFileSystemAdapter,
    LLMFileSystemTools,
    LocalFileSystemConfig,
    LocalFileSystemService,
    MatchResult,
    PathOutsideRootError,
    WatchEvent,
    WatchSession,
)

from sandbox_fs.settings import load_config

__all__ = [
    # Version
    "__version__",
    # Config
    "LocalFileSystemConfig",
    "load_config",
    # Service
    "LocalFileSystemService",
    "LegacyFileSystemAdapter",
    "LLMFileSystemTools",
    "WatchSession",
    # Models
    "CommandResult",
    "FileMetadata",
    "MatchResult",
    "WatchEvent",
    # Exceptions
    "FileSystemError",
    "PathOutsideRootError",
]
