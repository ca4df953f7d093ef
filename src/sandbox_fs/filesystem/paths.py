"""
Root confinement for caller-supplied paths.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from sandbox_fs.filesystem.exceptions import InvalidPathError, PathOutsideRootError

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class PathResolver:
    """
    Maps caller paths onto a fixed root directory.

    Resolution is pure path arithmetic: nothing is read from disk, so a
    file that is about to be created resolves exactly like one that
    already exists. Symlinks are not followed.

    Usage:
        resolver = PathResolver(Path("/srv/workspace"))
        resolver.resolve_absolute("src/main.py")   # /srv/workspace/src/main.py
        resolver.resolve_relative("/srv/workspace/src")  # "src"
        resolver.resolve_absolute("../etc/passwd")  # PathOutsideRootError
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._root_str = str(self.root)

    def resolve_absolute(self, path: PathLike) -> Path:
        """
        Resolve a relative or absolute path to an absolute path under the root.

        Raises:
            InvalidPathError: If the path is empty or malformed
            PathOutsideRootError: If the path escapes the root
        """
        raw = self._check(path)
        if os.path.isabs(raw):
            candidate = os.path.normpath(raw)
        else:
            candidate = os.path.normpath(os.path.join(self._root_str, raw))

        relative = self._relative_to_root(candidate)
        if relative is None:
            logger.warning(f"Rejected path outside root: {raw}")
            raise PathOutsideRootError(raw, self._root_str)

        return Path(candidate)

    def resolve_relative(self, path: PathLike) -> str:
        """Resolve a path and express it relative to the root ('/'-separated)."""
        absolute = self.resolve_absolute(path)
        return self.to_relative(absolute)

    def to_relative(self, absolute: PathLike) -> str:
        """Express an already-confined absolute path relative to the root."""
        relative = os.path.relpath(os.fspath(absolute), self._root_str)
        return Path(relative).as_posix()

    def is_within_root(self, path: PathLike) -> bool:
        """Check containment without raising."""
        try:
            self.resolve_absolute(path)
            return True
        except (InvalidPathError, PathOutsideRootError):
            return False

    def _relative_to_root(self, candidate: str) -> Optional[str]:
        try:
            relative = os.path.relpath(candidate, self._root_str)
        except ValueError:
            # Different drive on Windows
            return None
        if os.path.isabs(relative):
            return None
        first = relative.split(os.sep, 1)[0]
        if first == os.pardir:
            return None
        return relative

    @staticmethod
    def _check(path: PathLike) -> str:
        try:
            raw = os.fspath(path)
        except TypeError:
            raise InvalidPathError(repr(path), "Path must be a string or path-like")
        if not isinstance(raw, str):
            raise InvalidPathError(repr(raw), "Path must be text")
        if raw == "":
            raise InvalidPathError(raw, "Path must not be empty")
        if "\x00" in raw:
            raise InvalidPathError(raw, "Path contains a NUL byte")
        return raw
