"""
File primitives confined to the root directory.
"""

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from sandbox_fs.filesystem.config import LocalFileSystemConfig
from sandbox_fs.filesystem.exceptions import (
    FileOperationError,
    FileSystemError,
    InvalidPathError,
    ParentDirectoryMissingError,
    PathExistsError,
    PathNotADirectoryError,
    PathNotAFileError,
    PathNotFoundError,
)
from sandbox_fs.filesystem.models import FileMetadata
from sandbox_fs.filesystem.paths import PathLike, PathResolver

logger = logging.getLogger(__name__)

Content = Union[str, bytes]


class FileOperations:
    """
    Create/read/delete/rename/copy/stat/chmod on paths under the root.

    Every method resolves its path(s) through the PathResolver first and
    checks existence and type before touching anything. Structural
    problems (missing target, wrong type, existing destination) raise
    immediately; OS failures are re-raised as FileOperationError with the
    offending path attached.

    Usage:
        ops = FileOperations(PathResolver(config.root_directory), config)
        await ops.write_file("notes/todo.txt", "buy milk\\n")
        text = await ops.read_file("notes/todo.txt")
    """

    def __init__(self, resolver: PathResolver, config: LocalFileSystemConfig):
        self.resolver = resolver
        self.config = config

    async def write_file(self, path: PathLike, content: Content) -> bool:
        """
        Write (or overwrite) a file, creating parent directories as needed.

        Raises:
            PathOutsideRootError: If the path escapes the root
            PathNotAFileError: If the path is an existing directory
            FileOperationError: If the OS rejects the write
        """
        resolved = self.resolver.resolve_absolute(path)
        if resolved.is_dir():
            raise PathNotAFileError(str(path))

        data = self._encode(content)
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
            resolved.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to write file {resolved}: {e}")
            raise FileOperationError(str(path), "write", e) from e

        logger.info(f"Wrote file: {resolved} ({len(data)} bytes)")
        return True

    async def append_file(self, path: PathLike, content: Content) -> bool:
        """Append to a file, creating it and its parents if missing."""
        resolved = self.resolver.resolve_absolute(path)
        if resolved.is_dir():
            raise PathNotAFileError(str(path))

        data = self._encode(content)
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
            with open(resolved, "ab") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to append to file {resolved}: {e}")
            raise FileOperationError(str(path), "append to", e) from e

        logger.info(f"Appended to file: {resolved} ({len(data)} bytes)")
        return True

    async def read_file(self, path: PathLike, encoding: Optional[str] = None) -> str:
        """
        Read a whole file as text.

        Line endings are returned untouched.

        Raises:
            PathNotFoundError: If the file doesn't exist
            PathNotAFileError: If the path is not a regular file
            UnicodeDecodeError: If the content can't be decoded
        """
        resolved = self._existing_file(path, what="File")
        try:
            data = resolved.read_bytes()
        except OSError as e:
            raise FileOperationError(str(path), "read", e) from e
        return data.decode(encoding or self.config.encoding)

    async def get_file(self, path: PathLike) -> str:
        """Read a file with the configured encoding."""
        return await self.read_file(path)

    async def delete_file(self, path: PathLike) -> bool:
        """
        Delete a regular file.

        Raises:
            PathNotFoundError: If the file doesn't exist
            PathNotAFileError: If the path is a directory
        """
        resolved = self._existing_file(path, what="File")
        try:
            resolved.unlink()
        except OSError as e:
            logger.error(f"Failed to delete file {resolved}: {e}")
            raise FileOperationError(str(path), "delete", e) from e

        logger.info(f"Deleted file: {resolved}")
        return True

    async def rename(self, old_path: PathLike, new_path: PathLike) -> bool:
        """
        Move a file or directory. Never overwrites an existing destination.

        Raises:
            PathNotFoundError: If the source doesn't exist
            PathExistsError: If the destination already exists
        """
        source = self.resolver.resolve_absolute(old_path)
        destination = self.resolver.resolve_absolute(new_path)

        if not os.path.lexists(source):
            raise PathNotFoundError(str(old_path))
        if os.path.lexists(destination):
            raise PathExistsError(str(new_path))

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            os.rename(source, destination)
        except OSError as e:
            logger.error(f"Failed to rename {source} to {destination}: {e}")
            raise FileOperationError(str(old_path), f"rename to {new_path}", e) from e

        logger.info(f"Renamed {source} -> {destination}")
        return True

    async def copy(
        self, source: PathLike, destination: PathLike, overwrite: bool = False
    ) -> bool:
        """
        Copy a file or a directory tree.

        Args:
            source: File or directory to copy
            destination: Target path
            overwrite: Replace an existing destination (directories are merged)

        Raises:
            PathNotFoundError: If the source doesn't exist
            PathExistsError: If the destination exists and overwrite is False
        """
        abs_source = self.resolver.resolve_absolute(source)
        abs_destination = self.resolver.resolve_absolute(destination)

        if not abs_source.exists():
            raise PathNotFoundError(str(source), what="Source path")
        if abs_destination.exists() and not overwrite:
            raise PathExistsError(str(destination), what="Destination path")

        try:
            if abs_source.is_dir():
                if abs_destination == abs_source or abs_source in abs_destination.parents:
                    raise InvalidPathError(
                        str(destination), "Cannot copy a directory into itself"
                    )
                if abs_destination.exists() and not abs_destination.is_dir():
                    raise PathNotADirectoryError(str(destination))
                shutil.copytree(
                    abs_source, abs_destination, symlinks=True, dirs_exist_ok=overwrite
                )
            else:
                if abs_destination.is_dir():
                    raise PathNotAFileError(str(destination))
                abs_destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(abs_source, abs_destination)
        except (OSError, shutil.Error) as e:
            logger.error(f"Failed to copy {abs_source} to {abs_destination}: {e}")
            raise FileOperationError(str(source), f"copy to {destination}", e) from e

        logger.info(f"Copied {abs_source} -> {abs_destination}")
        return True

    async def exists(self, path: PathLike) -> bool:
        """Check whether a path exists. Never raises."""
        try:
            resolved = self.resolver.resolve_absolute(path)
            return resolved.exists()
        except (FileSystemError, OSError, ValueError) as e:
            logger.debug(f"exists({path!r}) treated as False: {e}")
            return False

    async def stat(self, path: PathLike) -> FileMetadata:
        """
        Return a metadata snapshot for a path.

        Raises:
            PathNotFoundError: If the path doesn't exist
        """
        resolved = self.resolver.resolve_absolute(path)
        if not resolved.exists():
            raise PathNotFoundError(str(path))

        try:
            st = resolved.stat()
            is_link = resolved.is_symlink()
        except OSError as e:
            raise FileOperationError(str(path), "stat", e) from e

        return FileMetadata(
            path=os.fspath(path),
            absolute_path=str(resolved),
            is_file=resolved.is_file(),
            is_directory=resolved.is_dir(),
            is_symbolic_link=is_link,
            size=st.st_size,
            created=_timestamp(getattr(st, "st_birthtime", st.st_ctime)),
            modified=_timestamp(st.st_mtime),
            accessed=_timestamp(st.st_atime),
        )

    async def create_directory(self, path: PathLike, recursive: bool = False) -> bool:
        """
        Create a directory. Succeeds without change if it already exists.

        Raises:
            PathNotADirectoryError: If a non-directory already occupies the path
            ParentDirectoryMissingError: If recursive is False and the parent is missing
        """
        resolved = self.resolver.resolve_absolute(path)

        if resolved.exists():
            if resolved.is_dir():
                return True
            raise PathNotADirectoryError(str(path), "exists but is not a directory")

        try:
            if recursive:
                resolved.mkdir(parents=True, exist_ok=True)
            else:
                resolved.mkdir()
        except FileNotFoundError as e:
            raise ParentDirectoryMissingError(str(path)) from e
        except FileExistsError:
            # Lost a race with another creator; fine if it is a directory
            if not resolved.is_dir():
                raise PathNotADirectoryError(str(path), "exists but is not a directory")
        except OSError as e:
            logger.error(f"Failed to create directory {resolved}: {e}")
            raise FileOperationError(str(path), "create directory", e) from e

        logger.info(f"Created directory: {resolved}")
        return True

    async def chmod(self, path: PathLike, mode: int) -> bool:
        """
        Change permission bits.

        Raises:
            PathNotFoundError: If the path doesn't exist
            FileOperationError: If the OS refuses the change
        """
        resolved = self.resolver.resolve_absolute(path)
        if not resolved.exists():
            raise PathNotFoundError(str(path))

        try:
            os.chmod(resolved, mode)
        except OSError as e:
            raise FileOperationError(str(path), "change permissions for", e) from e

        logger.info(f"Changed mode of {resolved} to {oct(mode)}")
        return True

    def _existing_file(self, path: PathLike, what: str) -> Path:
        resolved = self.resolver.resolve_absolute(path)
        if not resolved.exists():
            raise PathNotFoundError(str(path), what=what)
        if not resolved.is_file():
            raise PathNotAFileError(str(path))
        return resolved

    def _encode(self, content: Content) -> bytes:
        if isinstance(content, bytes):
            return content
        return content.encode(self.config.encoding)


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)
