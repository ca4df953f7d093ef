"""
Exceptions for sandboxed filesystem operations.
"""

from typing import Optional


class FileSystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class InvalidPathError(FileSystemError):
    """Raised when a path is invalid or malformed."""

    def __init__(self, path: str, reason: str = "Invalid path"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path!r}")


class PathOutsideRootError(FileSystemError):
    """Raised when a path resolves outside the configured root directory."""

    def __init__(self, path: str, root: str):
        self.path = path
        self.root = root
        super().__init__(f"Path {path} is outside the root directory {root}")


class PathNotFoundError(FileSystemError):
    """Raised when the target of an operation does not exist."""

    def __init__(self, path: str, what: str = "Path"):
        self.path = path
        super().__init__(f"{what} {path} does not exist")


class PathNotAFileError(FileSystemError):
    """Raised when a regular file was expected."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path {path} is not a file")


class PathNotADirectoryError(FileSystemError):
    """Raised when a directory was expected."""

    def __init__(self, path: str, reason: str = "is not a directory"):
        self.path = path
        super().__init__(f"Path {path} {reason}")


class PathExistsError(FileSystemError):
    """Raised when a destination already exists and may not be replaced."""

    def __init__(self, path: str, what: str = "Path"):
        self.path = path
        super().__init__(f"{what} {path} already exists")


class ParentDirectoryMissingError(FileSystemError):
    """Raised by non-recursive directory creation when the parent is missing."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Parent directory for {path} does not exist")


class FileOperationError(FileSystemError):
    """Raised when the operating system rejects an operation on a path."""

    def __init__(self, path: str, operation: str, cause: Optional[BaseException] = None):
        self.path = path
        self.operation = operation
        self.cause = cause
        message = f"Failed to {operation} {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SearchError(FileSystemError):
    """Raised when a search operation cannot be started."""

    pass


class GlobError(FileSystemError):
    """Raised when glob pattern expansion fails."""

    def __init__(self, pattern: str, cause: Optional[BaseException] = None):
        self.pattern = pattern
        self.cause = cause
        super().__init__(f"Glob operation failed for {pattern!r}: {cause}")


class CommandError(FileSystemError):
    """Raised when a command cannot be run because the request itself is invalid."""

    pass
