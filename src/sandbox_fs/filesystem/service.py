"""
Root-confined local filesystem service.
"""

import logging
from pathlib import Path
from typing import AsyncIterator, Mapping, Optional, Union

from sandbox_fs.filesystem.commands import Command, CommandRunner
from sandbox_fs.filesystem.config import LocalFileSystemConfig
from sandbox_fs.filesystem.matcher import GlobMatcher
from sandbox_fs.filesystem.models import CommandResult, FileMetadata, MatchResult
from sandbox_fs.filesystem.operations import Content, FileOperations
from sandbox_fs.filesystem.paths import PathLike, PathResolver
from sandbox_fs.filesystem.search import ContentSearch
from sandbox_fs.filesystem.walker import IgnoreFilter, TreeWalker
from sandbox_fs.filesystem.watcher import DirectoryWatcher, WatchSession

logger = logging.getLogger(__name__)


class LocalFileSystemService:
    """
    Single entry point for sandboxed filesystem access.

    Wraps the path resolver, file primitives, tree walker, search, glob,
    watcher and command runner behind one object bound to one root
    directory. The ignore filter is never stored: pass it to each call
    that traverses the tree.

    Usage:
        config = LocalFileSystemConfig(root_directory="/srv/workspace")
        fs = LocalFileSystemService(config)

        await fs.write_file("hello.txt", "hi\\n")
        async for entry in fs.get_directory_tree("", ignore_filter=is_ignored):
            print(entry)
        result = await fs.execute_command("ls -la")
    """

    name = "LocalFileSystemService"
    description = "Provides access to the local filesystem"

    def __init__(self, config: Union[LocalFileSystemConfig, PathLike]):
        """
        Initialize the service.

        Args:
            config: Service configuration, or just the root directory

        Raises:
            pydantic.ValidationError: If the root directory doesn't exist
        """
        if not isinstance(config, LocalFileSystemConfig):
            config = LocalFileSystemConfig(root_directory=config)
        self.config = config

        self.resolver = PathResolver(config.root_directory)
        self.operations = FileOperations(self.resolver, config)
        self.walker = TreeWalker(self.resolver)
        self.search = ContentSearch(self.walker, self.operations)
        self.matcher = GlobMatcher(self.resolver)
        self.watcher = DirectoryWatcher(self.resolver, self.walker, config)
        self.runner = CommandRunner(self.resolver, config)

        logger.debug(f"Filesystem service rooted at {config.root_directory}")

    @property
    def root_directory(self) -> Path:
        return self.config.root_directory

    # Paths

    def resolve_absolute(self, path: PathLike) -> Path:
        return self.resolver.resolve_absolute(path)

    def resolve_relative(self, path: PathLike) -> str:
        return self.resolver.resolve_relative(path)

    # File primitives

    async def write_file(self, path: PathLike, content: Content) -> bool:
        return await self.operations.write_file(path, content)

    async def append_file(self, path: PathLike, content: Content) -> bool:
        return await self.operations.append_file(path, content)

    async def read_file(self, path: PathLike, encoding: Optional[str] = None) -> str:
        return await self.operations.read_file(path, encoding=encoding)

    async def get_file(self, path: PathLike) -> str:
        return await self.operations.get_file(path)

    async def delete_file(self, path: PathLike) -> bool:
        return await self.operations.delete_file(path)

    async def rename(self, old_path: PathLike, new_path: PathLike) -> bool:
        return await self.operations.rename(old_path, new_path)

    async def copy(
        self, source: PathLike, destination: PathLike, overwrite: bool = False
    ) -> bool:
        return await self.operations.copy(source, destination, overwrite=overwrite)

    async def exists(self, path: PathLike) -> bool:
        return await self.operations.exists(path)

    async def stat(self, path: PathLike) -> FileMetadata:
        return await self.operations.stat(path)

    async def create_directory(self, path: PathLike, recursive: bool = False) -> bool:
        return await self.operations.create_directory(path, recursive=recursive)

    async def chmod(self, path: PathLike, mode: int) -> bool:
        return await self.operations.chmod(path, mode)

    # Traversal, search, watch

    def get_directory_tree(
        self,
        directory: PathLike = "",
        ignore_filter: Optional[IgnoreFilter] = None,
        recursive: bool = True,
    ) -> AsyncIterator[str]:
        """Lazily list entries below a directory (directories end with '/')."""
        return self.walker.walk(directory, ignore_filter=ignore_filter, recursive=recursive)

    walk = get_directory_tree

    async def grep(
        self,
        text: str,
        ignore_filter: Optional[IgnoreFilter] = None,
        lines_before: int = 0,
        lines_after: int = 0,
        directory: PathLike = "",
    ) -> list[MatchResult]:
        return await self.search.grep(
            text,
            ignore_filter=ignore_filter,
            lines_before=lines_before,
            lines_after=lines_after,
            directory=directory,
        )

    async def glob(
        self, pattern: str, ignore_filter: Optional[IgnoreFilter] = None
    ) -> list[str]:
        return await self.matcher.glob(pattern, ignore_filter=ignore_filter)

    async def watch(
        self,
        directory: PathLike = "",
        ignore_filter: Optional[IgnoreFilter] = None,
        poll_interval: Optional[int] = None,
        stability_threshold: Optional[int] = None,
        ignore_initial: bool = False,
    ) -> WatchSession:
        return await self.watcher.watch(
            directory,
            ignore_filter=ignore_filter,
            poll_interval=poll_interval,
            stability_threshold=stability_threshold,
            ignore_initial=ignore_initial,
        )

    # Commands

    async def execute_command(
        self,
        command: Command,
        timeout_seconds: Optional[float] = None,
        env: Optional[Mapping[str, Optional[str]]] = None,
        working_directory: PathLike = "./",
    ) -> CommandResult:
        return await self.runner.run(
            command,
            timeout_seconds=timeout_seconds,
            env=env,
            working_directory=working_directory,
        )

    run = execute_command

    def __repr__(self) -> str:
        return f"LocalFileSystemService(root_directory={str(self.root_directory)!r})"
