"""
Tests for the LLM tool interface and the legacy camelCase adapter.
"""

import tempfile
from pathlib import Path

import pytest

from sandbox_fs.filesystem import (
    LegacyFileSystemAdapter,
    LLMFileSystemTools,
    LocalFileSystemConfig,
    LocalFileSystemService,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir):
    """Create a test filesystem configuration."""
    return LocalFileSystemConfig(root_directory=temp_dir)


@pytest.fixture
def root(config):
    return config.root_directory


@pytest.fixture
def service(config):
    """Create a LocalFileSystemService instance."""
    return LocalFileSystemService(config)


@pytest.fixture
def llm_tools(service):
    """Create a LLMFileSystemTools instance that hides .git."""
    return LLMFileSystemTools(service, ignore_filter=lambda p: p == ".git")


@pytest.fixture
def legacy(service):
    """Create a LegacyFileSystemAdapter instance."""
    return LegacyFileSystemAdapter(service)


@pytest.fixture
def project(root):
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main TODO\n")
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("one\ntwo TODO\nthree\nfour\n")
    (root / "README.md").write_text("readme\n")
    return root


class TestLLMFileSystemTools:
    """Test LLMFileSystemTools."""

    def test_tool_schemas(self, llm_tools):
        schemas = llm_tools.get_tool_schemas()
        names = [s["function"]["name"] for s in schemas]

        assert names == [
            "read_file",
            "list_directory",
            "search_text",
            "find_files",
            "file_info",
            "write_file",
            "append_file",
            "create_directory",
            "rename_path",
            "copy_path",
            "delete_file",
            "run_command",
        ]
        for schema in schemas:
            assert schema["type"] == "function"
            assert schema["function"]["parameters"]["type"] == "object"

    def test_schemas_follow_permissions(self, temp_dir):
        config = LocalFileSystemConfig(
            root_directory=temp_dir, allow_write=False, allow_delete=False, allow_exec=False
        )
        tools = LLMFileSystemTools(LocalFileSystemService(config))
        names = {s["function"]["name"] for s in tools.get_tool_schemas()}
        assert names == {"read_file", "list_directory", "search_text", "find_files", "file_info"}
        assert set(tools.enabled_tools()) == names

    @pytest.mark.asyncio
    async def test_read_file(self, llm_tools, project):
        result = await llm_tools.execute_tool("read_file", {"path": "README.md"})
        assert result["success"] is True
        assert result["content"] == "readme\n"
        assert result["size"] == 7

    @pytest.mark.asyncio
    async def test_read_outside_root(self, llm_tools):
        result = await llm_tools.execute_tool("read_file", {"path": "../../etc/passwd"})
        assert result["success"] is False
        assert result["error_type"] == "PathOutsideRootError"

    @pytest.mark.asyncio
    async def test_read_missing(self, llm_tools):
        result = await llm_tools.execute_tool("read_file", {"path": "missing.txt"})
        assert result["success"] is False
        assert result["error_type"] == "PathNotFoundError"

    @pytest.mark.asyncio
    async def test_list_directory_uses_ignore_filter(self, llm_tools, project):
        result = await llm_tools.execute_tool("list_directory", {"recursive": True})
        assert result["success"] is True
        assert set(result["entries"]) == {"src/", "src/app.py", "README.md"}
        assert result["count"] == 3

    @pytest.mark.asyncio
    async def test_search_text(self, llm_tools, project):
        result = await llm_tools.execute_tool(
            "search_text", {"text": "TODO", "lines_before": 1, "lines_after": 1}
        )
        assert result["success"] is True
        assert result["count"] == 1
        match = result["matches"][0]
        assert match["file"] == "src/app.py"
        assert match["line"] == 2
        assert match["content"] == "one\ntwo TODO\nthree"

    @pytest.mark.asyncio
    async def test_find_files(self, llm_tools, project):
        result = await llm_tools.execute_tool("find_files", {"pattern": "**/*"})
        assert result["files"] == ["README.md", "src/app.py"]

    @pytest.mark.asyncio
    async def test_file_info(self, llm_tools, project):
        result = await llm_tools.execute_tool("file_info", {"path": "src"})
        assert result["success"] is True
        assert result["is_directory"] is True
        assert isinstance(result["modified"], str)

    @pytest.mark.asyncio
    async def test_write_and_append(self, llm_tools, root):
        result = await llm_tools.execute_tool("write_file", {"path": "out/a.txt", "content": "1\n"})
        assert result["success"] is True
        await llm_tools.execute_tool("append_file", {"path": "out/a.txt", "content": "2\n"})
        assert (root / "out" / "a.txt").read_text() == "1\n2\n"

    @pytest.mark.asyncio
    async def test_rename_conflict_reported(self, llm_tools, project):
        result = await llm_tools.execute_tool(
            "rename_path", {"source": "README.md", "destination": "src/app.py"}
        )
        assert result["success"] is False
        assert result["error_type"] == "PathExistsError"

    @pytest.mark.asyncio
    async def test_copy_and_delete(self, llm_tools, project):
        result = await llm_tools.execute_tool(
            "copy_path", {"source": "README.md", "destination": "COPY.md"}
        )
        assert result["success"] is True
        result = await llm_tools.execute_tool("delete_file", {"path": "COPY.md"})
        assert result["success"] is True
        assert not (project / "COPY.md").exists()

    @pytest.mark.asyncio
    async def test_create_directory(self, llm_tools, root):
        result = await llm_tools.execute_tool("create_directory", {"path": "x/y"})
        assert result["success"] is True
        assert (root / "x" / "y").is_dir()

    @pytest.mark.asyncio
    async def test_run_command(self, llm_tools):
        result = await llm_tools.execute_tool("run_command", {"command": "echo tool"})
        assert result["success"] is True
        assert result["ok"] is True
        assert result["stdout"] == "tool"
        assert result["command"] == "echo tool"

    @pytest.mark.asyncio
    async def test_disabled_tool(self, temp_dir):
        config = LocalFileSystemConfig(root_directory=temp_dir, allow_exec=False)
        tools = LLMFileSystemTools(LocalFileSystemService(config))
        result = await tools.execute_tool("run_command", {"command": "echo no"})
        assert result["success"] is False
        assert result["error_type"] == "ToolDisabled"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, llm_tools):
        with pytest.raises(ValueError, match="Unknown tool"):
            await llm_tools.execute_tool("format_disk", {})

    @pytest.mark.asyncio
    async def test_bad_arguments(self, llm_tools):
        result = await llm_tools.execute_tool("read_file", {"filename": "x"})
        assert result["success"] is False
        assert result["error_type"] == "UnexpectedError"

    def test_summary(self, llm_tools, root):
        summary = llm_tools.get_summary()
        assert summary["root_directory"] == str(root)
        assert summary["allow_exec"] is True
        assert summary["max_output_mb"] == 1.0
        assert "run_command" in summary["tools"]


class TestLegacyFileSystemAdapter:
    """Test the camelCase adapter."""

    def test_base_directory_and_paths(self, legacy, root):
        assert legacy.getBaseDirectory() == str(root)
        assert legacy.relativeOrAbsolutePathToAbsolutePath("a/b") == str(root / "a" / "b")
        assert legacy.relativeOrAbsolutePathToRelativePath(str(root / "a")) == "a"

    @pytest.mark.asyncio
    async def test_file_round_trip(self, legacy):
        assert await legacy.writeFile("f.txt", "x") is True
        assert await legacy.appendFile("f.txt", "y") is True
        assert await legacy.readFile("f.txt") == "xy"
        assert await legacy.getFile("f.txt") == "xy"
        assert await legacy.exists("f.txt") is True
        assert await legacy.deleteFile("f.txt") is True
        assert await legacy.exists("f.txt") is False

    @pytest.mark.asyncio
    async def test_stat_keys(self, legacy, project):
        info = await legacy.stat("README.md")
        assert info["isFile"] is True
        assert info["isDirectory"] is False
        assert info["isSymbolicLink"] is False
        assert info["absolutePath"] == str(project / "README.md")
        assert info["size"] == 7

    @pytest.mark.asyncio
    async def test_create_directory_options(self, legacy, root):
        assert await legacy.createDirectory("a/b", {"recursive": True}) is True
        assert (root / "a" / "b").is_dir()

    @pytest.mark.asyncio
    async def test_copy_overwrite_option(self, legacy, project):
        (project / "other.md").write_text("other\n")
        assert await legacy.copy("README.md", "other.md", {"overwrite": True}) is True
        assert (project / "other.md").read_text() == "readme\n"

    @pytest.mark.asyncio
    async def test_directory_tree_with_ig(self, legacy, project):
        entries = [e async for e in legacy.getDirectoryTree("", {"ig": lambda p: p == ".git"})]
        assert set(entries) == {"src/", "src/app.py", "README.md"}

    @pytest.mark.asyncio
    async def test_grep_include_content(self, legacy, project):
        results = await legacy.grep(
            "TODO",
            {
                "ignoreFilter": lambda p: p == ".git",
                "includeContent": {"linesBefore": 0, "linesAfter": 2},
            },
        )
        assert results == [
            {
                "file": "src/app.py",
                "line": 2,
                "match": "two TODO",
                "content": "two TODO\nthree\nfour",
            }
        ]

    @pytest.mark.asyncio
    async def test_glob_options(self, legacy, project):
        assert await legacy.glob("**/*", {"ig": lambda p: p.startswith(".git")}) == [
            "README.md",
            "src/app.py",
        ]

    @pytest.mark.asyncio
    async def test_execute_command(self, legacy):
        result = await legacy.executeCommand(
            "echo $GREETING", {"env": {"GREETING": "hi"}, "timeoutSeconds": 10}
        )
        assert result == {"ok": True, "exitCode": 0, "stdout": "hi", "stderr": "", "error": None}

    @pytest.mark.asyncio
    async def test_watch_forwards_paths(self, legacy, root):
        (root / "seen.txt").write_text("")
        added = []
        ready = []

        session = await legacy.watch("", {"pollInterval": 50, "stabilityThreshold": 100})
        session.on("add", added.append).on("ready", lambda: ready.append(True))
        try:
            await session.session.wait_until_ready(timeout=10)
        finally:
            await session.close()

        assert added == ["seen.txt"]
        assert ready == [True]
