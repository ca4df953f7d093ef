"""
Tests for configuration loading.
"""

import json
import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sandbox_fs.filesystem import LocalFileSystemConfig
from sandbox_fs.settings import CONFIG_ENV_VAR, load_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clean_env(monkeypatch, temp_dir):
    """Remove SANDBOX_FS_* variables and point HOME at an empty directory."""
    for name in (
        CONFIG_ENV_VAR,
        "SANDBOX_FS_ROOT_DIRECTORY",
        "SANDBOX_FS_ENCODING",
        "SANDBOX_FS_DEFAULT_TIMEOUT_SECONDS",
        "SANDBOX_FS_MAX_OUTPUT_BYTES",
        "SANDBOX_FS_WATCH_POLL_INTERVAL_MS",
        "SANDBOX_FS_WATCH_STABILITY_THRESHOLD_MS",
        "SANDBOX_FS_ALLOW_WRITE",
        "SANDBOX_FS_ALLOW_DELETE",
        "SANDBOX_FS_ALLOW_EXEC",
    ):
        monkeypatch.delenv(name, raising=False)
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return monkeypatch


class TestLocalFileSystemConfig:
    """Test LocalFileSystemConfig."""

    def test_defaults(self, temp_dir):
        config = LocalFileSystemConfig(root_directory=temp_dir)
        assert config.root_directory == temp_dir.resolve()
        assert config.encoding == "utf-8"
        assert config.default_timeout_seconds == 60.0
        assert config.max_output_bytes == 1024 * 1024
        assert config.watch_poll_interval_ms == 1000
        assert config.watch_stability_threshold_ms == 2000
        assert config.allow_write is True
        assert config.allow_delete is True
        assert config.allow_exec is True

    def test_root_is_resolved(self, temp_dir):
        (temp_dir / "a").mkdir()
        config = LocalFileSystemConfig(root_directory=str(temp_dir / "a" / ".." / "a"))
        assert config.root_directory == (temp_dir / "a").resolve()

    def test_missing_root_rejected(self, temp_dir):
        with pytest.raises(ValidationError, match="does not exist"):
            LocalFileSystemConfig(root_directory=temp_dir / "missing")

    def test_file_root_rejected(self, temp_dir):
        (temp_dir / "file.txt").write_text("")
        with pytest.raises(ValidationError, match="not a directory"):
            LocalFileSystemConfig(root_directory=temp_dir / "file.txt")

    def test_empty_root_rejected(self):
        with pytest.raises(ValidationError):
            LocalFileSystemConfig(root_directory="")

    def test_negative_timeout_rejected(self, temp_dir):
        with pytest.raises(ValidationError):
            LocalFileSystemConfig(root_directory=temp_dir, default_timeout_seconds=-1)

    def test_unknown_field_rejected(self, temp_dir):
        with pytest.raises(ValidationError):
            LocalFileSystemConfig(root_directory=temp_dir, allowed_directories=[])

    def test_frozen(self, temp_dir):
        config = LocalFileSystemConfig(root_directory=temp_dir)
        with pytest.raises(ValidationError):
            config.root_directory = Path("/")

    def test_repr(self, temp_dir):
        config = LocalFileSystemConfig(root_directory=temp_dir, allow_exec=False)
        assert "allow_exec=False" in repr(config)


class TestConfigFile:
    """Test loading configuration from files."""

    def test_from_yaml(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.safe_dump({
            "root_directory": str(temp_dir),
            "default_timeout_seconds": 120,
            "allow_exec": False,
        }))

        config = LocalFileSystemConfig.from_file(path)
        assert config.root_directory == temp_dir.resolve()
        assert config.default_timeout_seconds == 120
        assert config.allow_exec is False

    def test_from_json(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"root_directory": str(temp_dir), "encoding": "latin-1"}))

        config = LocalFileSystemConfig.from_file(path)
        assert config.encoding == "latin-1"

    def test_nested_section(self, temp_dir):
        path = temp_dir / "agent.yaml"
        path.write_text(yaml.safe_dump({
            "filesystem": {"root_directory": str(temp_dir), "allow_delete": False},
        }))

        config = LocalFileSystemConfig.from_file(path)
        assert config.allow_delete is False

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            LocalFileSystemConfig.from_file(temp_dir / "nope.yaml")


class TestConfigEnv:
    """Test loading configuration from the environment."""

    def test_from_env(self, clean_env, temp_dir):
        clean_env.setenv("SANDBOX_FS_ROOT_DIRECTORY", str(temp_dir))
        clean_env.setenv("SANDBOX_FS_MAX_OUTPUT_BYTES", "2048")
        clean_env.setenv("SANDBOX_FS_ALLOW_WRITE", "false")

        config = LocalFileSystemConfig.from_env()
        assert config.root_directory == temp_dir.resolve()
        assert config.max_output_bytes == 2048
        assert config.allow_write is False

    def test_from_env_requires_root(self, clean_env):
        with pytest.raises(ValueError, match="SANDBOX_FS_ROOT_DIRECTORY"):
            LocalFileSystemConfig.from_env()


class TestLoadConfig:
    """Test load_config source precedence."""

    def test_explicit_file(self, clean_env, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.safe_dump({"root_directory": str(temp_dir)}))
        assert load_config(path).root_directory == temp_dir.resolve()

    def test_config_env_var(self, clean_env, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.safe_dump({"root_directory": str(temp_dir), "allow_exec": False}))
        clean_env.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().allow_exec is False

    def test_environment(self, clean_env, temp_dir):
        clean_env.setenv("SANDBOX_FS_ROOT_DIRECTORY", str(temp_dir))
        assert load_config().root_directory == temp_dir.resolve()

    def test_default_file(self, clean_env, temp_dir):
        default = temp_dir / "home" / ".sandbox-fs" / "config.yaml"
        default.parent.mkdir()
        default.write_text(yaml.safe_dump({"root_directory": str(temp_dir), "encoding": "ascii"}))
        assert load_config().encoding == "ascii"

    def test_root_override_keeps_other_settings(self, clean_env, temp_dir):
        (temp_dir / "other").mkdir()
        path = temp_dir / "config.yaml"
        path.write_text(yaml.safe_dump({"root_directory": str(temp_dir), "allow_exec": False}))

        config = load_config(path, root_directory=temp_dir / "other")
        assert config.root_directory == (temp_dir / "other").resolve()
        assert config.allow_exec is False

    def test_fallback_root(self, clean_env, temp_dir):
        assert load_config(fallback_root=temp_dir).root_directory == temp_dir.resolve()

    def test_environment_beats_fallback(self, clean_env, temp_dir):
        (temp_dir / "env-root").mkdir()
        clean_env.setenv("SANDBOX_FS_ROOT_DIRECTORY", str(temp_dir / "env-root"))
        config = load_config(fallback_root=temp_dir)
        assert config.root_directory == (temp_dir / "env-root").resolve()

    def test_no_source(self, clean_env):
        with pytest.raises(ValueError, match="No configuration found"):
            load_config()
