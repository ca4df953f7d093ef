"""
Best-effort substring search over the root directory.
"""

import logging
from typing import Optional

from sandbox_fs.filesystem.exceptions import FileSystemError, SearchError
from sandbox_fs.filesystem.models import MatchResult
from sandbox_fs.filesystem.operations import FileOperations
from sandbox_fs.filesystem.paths import PathLike
from sandbox_fs.filesystem.walker import IgnoreFilter, TreeWalker

logger = logging.getLogger(__name__)


class ContentSearch:
    """
    grep-like plain substring search.

    Files come from the TreeWalker, so ignored directories are never
    entered. Files that can't be read or decoded are skipped silently;
    the search covers whatever is reachable.

    Usage:
        search = ContentSearch(walker, operations)
        results = await search.grep("TODO", ignore_filter=is_ignored, lines_after=2)
    """

    def __init__(self, walker: TreeWalker, operations: FileOperations):
        self.walker = walker
        self.operations = operations

    async def grep(
        self,
        text: str,
        ignore_filter: Optional[IgnoreFilter] = None,
        lines_before: int = 0,
        lines_after: int = 0,
        directory: PathLike = "",
    ) -> list[MatchResult]:
        """
        Find every line containing a substring.

        Args:
            text: Substring to look for (not a regular expression)
            ignore_filter: Predicate on root-relative paths; True means skip
            lines_before: Context lines before each match
            lines_after: Context lines after each match
            directory: Directory to search in (default: the root)

        Returns:
            One MatchResult per matching line, in walk order

        Raises:
            SearchError: If the search text is empty or a context count is negative
        """
        if not text:
            raise SearchError("Search string is required")
        if lines_before < 0 or lines_after < 0:
            raise SearchError("Context line counts must not be negative")

        files = []
        async for entry in self.walker.walk(directory, ignore_filter=ignore_filter):
            if not entry.endswith("/"):
                files.append(entry)

        want_context = lines_before > 0 or lines_after > 0
        results: list[MatchResult] = []

        for file in files:
            try:
                content = await self.operations.get_file(file)
            except (FileSystemError, OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping unreadable file {file}: {e}")
                continue

            lines = content.split("\n")
            last = len(lines) - 1
            for index, line in enumerate(lines):
                if text not in line:
                    continue

                context = None
                if want_context:
                    start = max(0, index - lines_before)
                    end = min(last, index + lines_after)
                    context = "\n".join(lines[start : end + 1])

                results.append(
                    MatchResult(file=file, line=index + 1, match=line, content=context)
                )

        logger.info(f"grep found {len(results)} matches in {len(files)} files")
        return results
