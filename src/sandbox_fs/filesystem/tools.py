"""
LLM function-calling interface for the sandboxed filesystem.

Provides OpenAI-compatible tool schemas and a dispatcher that turns tool
calls into LocalFileSystemService calls. Tool results are always dicts;
errors are reported as ``{"success": False, ...}`` rather than raised.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from sandbox_fs.filesystem.exceptions import FileSystemError
from sandbox_fs.filesystem.service import LocalFileSystemService
from sandbox_fs.filesystem.walker import IgnoreFilter

logger = logging.getLogger(__name__)


def _schema(name: str, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


_PATH = {"type": "string", "description": "Path relative to the workspace root"}


class LLMFileSystemTools:
    """
    Unified filesystem interface for LLM function calling.

    The host supplies the ignore filter once; it is handed to every
    traversal, search and glob call.

    Usage:
        service = LocalFileSystemService(LocalFileSystemConfig(root_directory="/srv/ws"))
        tools = LLMFileSystemTools(service, ignore_filter=gitignore_matcher)

        schemas = tools.get_tool_schemas()
        result = await tools.execute_tool("read_file", {"path": "README.md"})
    """

    def __init__(
        self, service: LocalFileSystemService, ignore_filter: Optional[IgnoreFilter] = None
    ):
        self.service = service
        self.config = service.config
        self.ignore_filter = ignore_filter

        self._read_tools: dict[str, Callable[..., Awaitable[dict[str, Any]]]] = {
            "read_file": self._read_file,
            "list_directory": self._list_directory,
            "search_text": self._search_text,
            "find_files": self._find_files,
            "file_info": self._file_info,
        }
        self._write_tools = {
            "write_file": self._write_file,
            "append_file": self._append_file,
            "create_directory": self._create_directory,
            "rename_path": self._rename_path,
            "copy_path": self._copy_path,
        }
        self._delete_tools = {"delete_file": self._delete_file}
        self._exec_tools = {"run_command": self._run_command}

    def enabled_tools(self) -> dict[str, Callable[..., Awaitable[dict[str, Any]]]]:
        tools = dict(self._read_tools)
        if self.config.allow_write:
            tools.update(self._write_tools)
        if self.config.allow_delete:
            tools.update(self._delete_tools)
        if self.config.allow_exec:
            tools.update(self._exec_tools)
        return tools

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """
        Get OpenAI function calling schemas for the enabled tools.

        Returns:
            List of tool schemas in OpenAI format
        """
        schemas = [
            _schema(
                "read_file",
                "Read the contents of a text file in the workspace.",
                {"path": _PATH},
                ["path"],
            ),
            _schema(
                "list_directory",
                "List files and directories. Directories end with '/'.",
                {
                    "directory": {
                        "type": "string",
                        "description": "Directory to list (default: workspace root)",
                    },
                    "recursive": {
                        "type": "boolean",
                        "description": "List subdirectories too (default: false)",
                    },
                },
                [],
            ),
            _schema(
                "search_text",
                "Find lines containing a plain text string (not a regex). "
                "Returns file, line number and the matching line.",
                {
                    "text": {"type": "string", "description": "Text to search for"},
                    "lines_before": {
                        "type": "integer",
                        "description": "Context lines before each match (default: 0)",
                    },
                    "lines_after": {
                        "type": "integer",
                        "description": "Context lines after each match (default: 0)",
                    },
                },
                ["text"],
            ),
            _schema(
                "find_files",
                "Find files by glob pattern, e.g. 'src/**/*.py'.",
                {"pattern": {"type": "string", "description": "Glob pattern"}},
                ["pattern"],
            ),
            _schema(
                "file_info",
                "Get size, type and timestamps of a path.",
                {"path": _PATH},
                ["path"],
            ),
        ]

        if self.config.allow_write:
            schemas.extend([
                _schema(
                    "write_file",
                    "Write content to a file. Creates the file and parent directories "
                    "if needed, overwrites otherwise.",
                    {"path": _PATH, "content": {"type": "string", "description": "File content"}},
                    ["path", "content"],
                ),
                _schema(
                    "append_file",
                    "Append content to a file.",
                    {"path": _PATH, "content": {"type": "string", "description": "Content to append"}},
                    ["path", "content"],
                ),
                _schema(
                    "create_directory",
                    "Create a directory.",
                    {
                        "path": _PATH,
                        "recursive": {
                            "type": "boolean",
                            "description": "Create missing parent directories (default: true)",
                        },
                    },
                    ["path"],
                ),
                _schema(
                    "rename_path",
                    "Move or rename a file or directory. Fails if the target exists.",
                    {"source": _PATH, "destination": _PATH},
                    ["source", "destination"],
                ),
                _schema(
                    "copy_path",
                    "Copy a file or directory.",
                    {
                        "source": _PATH,
                        "destination": _PATH,
                        "overwrite": {
                            "type": "boolean",
                            "description": "Replace an existing destination (default: false)",
                        },
                    },
                    ["source", "destination"],
                ),
            ])

        if self.config.allow_delete:
            schemas.append(
                _schema("delete_file", "Delete a file.", {"path": _PATH}, ["path"])
            )

        if self.config.allow_exec:
            schemas.append(
                _schema(
                    "run_command",
                    "Run a shell command in the workspace and return its exit code and output.",
                    {
                        "command": {"type": "string", "description": "Shell command line"},
                        "working_directory": {
                            "type": "string",
                            "description": "Directory to run in (default: workspace root)",
                        },
                        "timeout_seconds": {
                            "type": "integer",
                            "description": "Timeout in seconds, 5 to 600 (default: 60)",
                        },
                    },
                    ["command"],
                )
            )

        return schemas

    async def execute_tool(
        self, tool_name: str, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Execute a tool call from an LLM.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (from LLM function call)

        Returns:
            Tool execution result as a dict

        Raises:
            ValueError: If tool name is unknown
        """
        tools = self.enabled_tools()
        if tool_name not in tools:
            known = (
                self._read_tools.keys() | self._write_tools.keys()
                | self._delete_tools.keys() | self._exec_tools.keys()
            )
            if tool_name in known:
                return {
                    "success": False,
                    "error": f"Tool {tool_name} is disabled",
                    "error_type": "ToolDisabled",
                }
            raise ValueError(f"Unknown tool: {tool_name}")

        try:
            return await tools[tool_name](**arguments)
        except FileSystemError as e:
            logger.warning(f"LLM {tool_name} failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }
        except (OSError, UnicodeDecodeError, TypeError) as e:
            logger.error(f"LLM {tool_name} unexpected error: {e}")
            return {
                "success": False,
                "error": f"Unexpected error: {e}",
                "error_type": "UnexpectedError",
            }

    async def _read_file(self, path: str) -> dict[str, Any]:
        content = await self.service.read_file(path)
        return {"success": True, "path": path, "content": content, "size": len(content)}

    async def _list_directory(self, directory: str = "", recursive: bool = False) -> dict[str, Any]:
        entries = [
            entry
            async for entry in self.service.get_directory_tree(
                directory, ignore_filter=self.ignore_filter, recursive=recursive
            )
        ]
        return {"success": True, "directory": directory, "entries": entries, "count": len(entries)}

    async def _search_text(
        self, text: str, lines_before: int = 0, lines_after: int = 0
    ) -> dict[str, Any]:
        results = await self.service.grep(
            text,
            ignore_filter=self.ignore_filter,
            lines_before=lines_before,
            lines_after=lines_after,
        )
        return {
            "success": True,
            "text": text,
            "matches": [result.model_dump() for result in results],
            "count": len(results),
        }

    async def _find_files(self, pattern: str) -> dict[str, Any]:
        files = await self.service.glob(pattern, ignore_filter=self.ignore_filter)
        return {"success": True, "pattern": pattern, "files": files, "count": len(files)}

    async def _file_info(self, path: str) -> dict[str, Any]:
        metadata = await self.service.stat(path)
        return {"success": True, **metadata.model_dump(mode="json")}

    async def _write_file(self, path: str, content: str) -> dict[str, Any]:
        await self.service.write_file(path, content)
        return {"success": True, "path": path, "size": len(content), "message": "File written successfully"}

    async def _append_file(self, path: str, content: str) -> dict[str, Any]:
        await self.service.append_file(path, content)
        return {"success": True, "path": path, "message": "Content appended successfully"}

    async def _create_directory(self, path: str, recursive: bool = True) -> dict[str, Any]:
        await self.service.create_directory(path, recursive=recursive)
        return {"success": True, "path": path, "message": "Directory created successfully"}

    async def _rename_path(self, source: str, destination: str) -> dict[str, Any]:
        await self.service.rename(source, destination)
        return {"success": True, "source": source, "destination": destination}

    async def _copy_path(
        self, source: str, destination: str, overwrite: bool = False
    ) -> dict[str, Any]:
        await self.service.copy(source, destination, overwrite=overwrite)
        return {"success": True, "source": source, "destination": destination}

    async def _delete_file(self, path: str) -> dict[str, Any]:
        await self.service.delete_file(path)
        return {"success": True, "path": path, "message": "File deleted successfully"}

    async def _run_command(
        self,
        command: str,
        working_directory: str = "./",
        timeout_seconds: Optional[int] = None,
    ) -> dict[str, Any]:
        result = await self.service.execute_command(
            command,
            timeout_seconds=timeout_seconds,
            working_directory=working_directory,
        )
        return {"success": result.ok, "command": command, **result.model_dump()}

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of the filesystem access configuration.

        Returns:
            Dict with configuration summary
        """
        return {
            "root_directory": str(self.config.root_directory),
            "tools": sorted(self.enabled_tools()),
            "allow_write": self.config.allow_write,
            "allow_delete": self.config.allow_delete,
            "allow_exec": self.config.allow_exec,
            "default_timeout_seconds": self.config.default_timeout_seconds,
            "max_output_mb": self.config.max_output_bytes / (1024 * 1024),
        }
