"""
Adapter for callers written against the older camelCase service API.

Translates the legacy option shapes (``ig``/``ignoreFilter``,
``includeContent: {linesBefore, linesAfter}``, ``timeoutSeconds``...) into
calls on LocalFileSystemService and returns plain camelCase dicts. No
behavior lives here.
"""

from typing import Any, AsyncIterator, Callable, Optional

from sandbox_fs.filesystem.models import CommandResult, FileMetadata, WatchEvent
from sandbox_fs.filesystem.service import LocalFileSystemService
from sandbox_fs.filesystem.watcher import WatchSession
from sandbox_fs.filesystem.walker import IgnoreFilter

Options = Optional[dict[str, Any]]


def _ignore_filter(options: dict[str, Any]) -> Optional[IgnoreFilter]:
    return options.get("ignoreFilter") or options.get("ig")


def _stat_dict(metadata: FileMetadata) -> dict[str, Any]:
    return {
        "path": metadata.path,
        "absolutePath": metadata.absolute_path,
        "isFile": metadata.is_file,
        "isDirectory": metadata.is_directory,
        "isSymbolicLink": metadata.is_symbolic_link,
        "size": metadata.size,
        "created": metadata.created,
        "modified": metadata.modified,
        "accessed": metadata.accessed,
    }


def _command_dict(result: CommandResult) -> dict[str, Any]:
    return {
        "ok": result.ok,
        "exitCode": result.exit_code,
        "stdout": result.stdout,
        "stderr": result.stderr,
        "error": result.error,
    }


class LegacyWatchSession:
    """chokidar-style wrapper: handlers receive a path (or error message)."""

    def __init__(self, session: WatchSession):
        self.session = session

    def on(self, event: str, handler: Callable[..., Any]) -> "LegacyWatchSession":
        def forward(watch_event: WatchEvent):
            if watch_event.kind.value == "ready":
                return handler()
            if watch_event.kind.value == "error":
                return handler(watch_event.error)
            return handler(watch_event.path)

        self.session.on(event, forward)
        return self

    async def close(self) -> None:
        await self.session.close()


class LegacyFileSystemAdapter:
    """Exposes the legacy method names on top of LocalFileSystemService."""

    def __init__(self, service: LocalFileSystemService):
        self.service = service

    def getBaseDirectory(self) -> str:
        return str(self.service.root_directory)

    def relativeOrAbsolutePathToAbsolutePath(self, p: str) -> str:
        return str(self.service.resolve_absolute(p))

    def relativeOrAbsolutePathToRelativePath(self, p: str) -> str:
        return self.service.resolve_relative(p)

    async def writeFile(self, filePath: str, content) -> bool:
        return await self.service.write_file(filePath, content)

    async def appendFile(self, filePath: str, content) -> bool:
        return await self.service.append_file(filePath, content)

    async def readFile(self, filePath: str, encoding: Optional[str] = None) -> str:
        return await self.service.read_file(filePath, encoding=encoding)

    async def getFile(self, filePath: str) -> str:
        return await self.service.get_file(filePath)

    async def deleteFile(self, filePath: str) -> bool:
        return await self.service.delete_file(filePath)

    async def rename(self, oldPath: str, newPath: str) -> bool:
        return await self.service.rename(oldPath, newPath)

    async def copy(self, source: str, destination: str, options: Options = None) -> bool:
        options = options or {}
        return await self.service.copy(
            source, destination, overwrite=bool(options.get("overwrite", False))
        )

    async def exists(self, filePath: str) -> bool:
        return await self.service.exists(filePath)

    async def stat(self, filePath: str) -> dict[str, Any]:
        return _stat_dict(await self.service.stat(filePath))

    async def createDirectory(self, dirPath: str, options: Options = None) -> bool:
        options = options or {}
        return await self.service.create_directory(
            dirPath, recursive=bool(options.get("recursive", False))
        )

    async def chmod(self, filePath: str, mode: int) -> bool:
        return await self.service.chmod(filePath, mode)

    async def glob(self, pattern: str, options: Options = None) -> list[str]:
        return await self.service.glob(pattern, ignore_filter=_ignore_filter(options or {}))

    def getDirectoryTree(self, dir: str, options: Options = None) -> AsyncIterator[str]:
        options = options or {}
        return self.service.get_directory_tree(
            dir,
            ignore_filter=_ignore_filter(options),
            recursive=options.get("recursive", True),
        )

    async def grep(self, searchString: str, options: Options = None) -> list[dict[str, Any]]:
        options = options or {}
        include = options.get("includeContent") or {}
        results = await self.service.grep(
            searchString,
            ignore_filter=_ignore_filter(options),
            lines_before=include.get("linesBefore", 0),
            lines_after=include.get("linesAfter", 0),
        )
        return [result.model_dump() for result in results]

    async def watch(self, dir: str, options: Options = None) -> LegacyWatchSession:
        options = options or {}
        session = await self.service.watch(
            dir,
            ignore_filter=_ignore_filter(options),
            poll_interval=options.get("pollInterval"),
            stability_threshold=options.get("stabilityThreshold"),
        )
        return LegacyWatchSession(session)

    async def executeCommand(self, command, options: Options = None) -> dict[str, Any]:
        options = options or {}
        result = await self.service.execute_command(
            command,
            timeout_seconds=options.get("timeoutSeconds"),
            env=options.get("env"),
            working_directory=options.get("workingDirectory", "./"),
        )
        return _command_dict(result)
