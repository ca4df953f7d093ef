"""
Lazy, ignore-aware directory traversal.
"""

import logging
import os
from typing import AsyncIterator, Callable, Optional

from sandbox_fs.filesystem.exceptions import PathNotADirectoryError, PathNotFoundError
from sandbox_fs.filesystem.paths import PathLike, PathResolver

logger = logging.getLogger(__name__)

IgnoreFilter = Callable[[str], bool]


def _never_ignore(path: str) -> bool:
    return False


def is_ignored_path(ignore_filter: IgnoreFilter, path: str) -> bool:
    """Apply an ignore filter to a root-relative path and each of its ancestors."""
    parts = path.strip("/").split("/")
    return any(
        ignore_filter("/".join(parts[:depth])) for depth in range(1, len(parts) + 1)
    )


class TreeWalker:
    """
    Depth-first, pre-order walk of a directory below the root.

    Every call to walk() starts a fresh async generator. Entries are
    root-relative, '/'-separated; directories carry a trailing '/'.
    An ignored directory is pruned, so nothing below it is ever listed.

    Usage:
        walker = TreeWalker(resolver)
        async for entry in walker.walk("src", ignore_filter=is_ignored):
            print(entry)
    """

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    async def walk(
        self,
        directory: PathLike = "",
        ignore_filter: Optional[IgnoreFilter] = None,
        recursive: bool = True,
    ) -> AsyncIterator[str]:
        """
        Yield entries under a directory.

        Args:
            directory: Starting directory ("" or "." for the root)
            ignore_filter: Predicate on root-relative paths; True means skip
            recursive: Descend into subdirectories

        Raises:
            PathNotFoundError: If the starting directory doesn't exist
            PathNotADirectoryError: If the starting path is not a directory
        """
        start = self.resolver.resolve_absolute(directory or ".")
        if not start.exists():
            raise PathNotFoundError(str(directory), what="Directory")
        if not start.is_dir():
            raise PathNotADirectoryError(str(directory))

        is_ignored = ignore_filter or _never_ignore
        async for entry in self._walk(str(start), is_ignored, recursive):
            yield entry

    async def _walk(
        self, absolute_dir: str, is_ignored: IgnoreFilter, recursive: bool
    ) -> AsyncIterator[str]:
        # Read the whole listing before recursing so no handle stays open
        with os.scandir(absolute_dir) as it:
            entries = list(it)

        for entry in entries:
            relative = self.resolver.to_relative(entry.path)
            if is_ignored(relative):
                continue

            if entry.is_dir(follow_symlinks=False):
                yield f"{relative}/"
                if recursive:
                    async for child in self._walk(entry.path, is_ignored, recursive):
                        yield child
            else:
                yield relative
