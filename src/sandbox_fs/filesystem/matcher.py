"""
Glob pattern listing over the root directory.
"""

import logging
from typing import Optional

from sandbox_fs.filesystem.exceptions import GlobError
from sandbox_fs.filesystem.paths import PathResolver
from sandbox_fs.filesystem.walker import IgnoreFilter, is_ignored_path

logger = logging.getLogger(__name__)


class GlobMatcher:
    """
    Expands glob patterns relative to the root.

    Expansion is left to pathlib; hidden files match like any other
    file, '**' recurses, directories are dropped. The ignore filter can
    only be applied afterwards because pathlib does the walking, so a
    match is dropped when the filter rejects it or any of its parents.
    """

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    async def glob(
        self, pattern: str, ignore_filter: Optional[IgnoreFilter] = None
    ) -> list[str]:
        """
        List files matching a pattern.

        Args:
            pattern: Glob pattern relative to the root, e.g. "src/**/*.py"
            ignore_filter: Predicate on root-relative paths; True means drop

        Returns:
            Sorted root-relative paths, '/'-separated

        Raises:
            GlobError: If the pattern can't be expanded
        """
        root = self.resolver.root
        try:
            matches = sorted(
                self.resolver.to_relative(p)
                for p in root.glob(pattern)
                if p.is_file() and self.resolver.is_within_root(p)
            )
        except (ValueError, NotImplementedError, OSError) as e:
            logger.error(f"Glob operation failed for {pattern!r}: {e}")
            raise GlobError(pattern, e) from e

        if ignore_filter is None:
            return matches
        return [p for p in matches if not is_ignored_path(ignore_filter, p)]
