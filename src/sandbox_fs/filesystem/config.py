"""
Configuration for the sandboxed local filesystem service.
"""

import json
import os
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, Field, field_validator


class LocalFileSystemConfig(BaseModel):
    """
    Configuration for a root-confined local filesystem service.

    The root directory is resolved once, when the config is validated,
    and never changes afterwards. Every path handed to the service is
    confined to it.

    Example:
        ```python
        config = LocalFileSystemConfig(root_directory="~/projects/demo")
        service = LocalFileSystemService(config)
        ```
    """

    model_config = {"extra": "forbid", "frozen": True}

    root_directory: Path = Field(
        description="Root directory for all file operations (must exist)",
    )

    encoding: str = Field(
        default="utf-8",
        description="Text encoding used when reading and writing files",
    )

    default_timeout_seconds: float = Field(
        default=60.0,
        description="Command timeout used when the caller does not pass one",
    )

    max_output_bytes: int = Field(
        default=1024 * 1024,  # 1 MiB
        ge=1,
        description="Maximum bytes captured per output stream of a command",
    )

    watch_poll_interval_ms: int = Field(
        default=1000,
        ge=1,
        description="How often a changed file is polled while waiting for it to settle",
    )

    watch_stability_threshold_ms: int = Field(
        default=2000,
        ge=0,
        description="How long a file must stay unchanged before a change is reported",
    )

    # LLM tool permissions
    allow_write: bool = Field(
        default=True,
        description="Expose write tools (write/append/create directory/rename/copy)",
    )

    allow_delete: bool = Field(
        default=True,
        description="Expose the delete tool",
    )

    allow_exec: bool = Field(
        default=True,
        description="Expose the command execution tool",
    )

    @field_validator("root_directory", mode="before")
    @classmethod
    def resolve_root(cls, v):
        """Resolve the root to a canonical absolute path and require it to exist."""
        if v is None or str(v) == "":
            raise ValueError("root_directory is required")
        root = Path(v).expanduser().resolve()
        if not root.exists():
            raise ValueError(f"Root directory {root} does not exist")
        if not root.is_dir():
            raise ValueError(f"Root directory {root} is not a directory")
        return root

    @field_validator("default_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        """Reject negative default timeouts; clamping happens at run time."""
        if v < 0:
            raise ValueError("default_timeout_seconds must not be negative")
        return v

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LocalFileSystemConfig":
        """
        Load configuration from a YAML or JSON file.

        File format (YAML):
            ```yaml
            root_directory: ~/projects/demo
            default_timeout_seconds: 120
            allow_exec: false
            ```

        Args:
            path: Path to configuration file

        Returns:
            Loaded LocalFileSystemConfig instance

        Raises:
            FileNotFoundError: If the config file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text()

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        elif path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        # Nested form: a top-level "filesystem" section
        if isinstance(data, dict) and "filesystem" in data:
            data = data["filesystem"]

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LocalFileSystemConfig":
        """Create configuration from a dictionary."""
        return cls(**data)

    @classmethod
    def from_env(cls, prefix: str = "SANDBOX_FS_") -> "LocalFileSystemConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            SANDBOX_FS_ROOT_DIRECTORY - Root directory (required)
            SANDBOX_FS_ENCODING - Text encoding
            SANDBOX_FS_DEFAULT_TIMEOUT_SECONDS - Default command timeout
            SANDBOX_FS_MAX_OUTPUT_BYTES - Output cap per stream
            SANDBOX_FS_WATCH_POLL_INTERVAL_MS - Watch poll interval
            SANDBOX_FS_WATCH_STABILITY_THRESHOLD_MS - Watch stability threshold
            SANDBOX_FS_ALLOW_WRITE / _ALLOW_DELETE / _ALLOW_EXEC - Tool switches

        Raises:
            ValueError: If the root directory variable is missing
        """
        root = os.environ.get(f"{prefix}ROOT_DIRECTORY")
        if not root:
            raise ValueError(f"Missing required environment variable: {prefix}ROOT_DIRECTORY")

        data: dict[str, Any] = {"root_directory": root}
        for name in cls.model_fields:
            if name == "root_directory":
                continue
            value = os.environ.get(f"{prefix}{name.upper()}")
            if value is not None:
                data[name] = value

        return cls(**data)

    def __repr__(self) -> str:
        return (
            f"LocalFileSystemConfig("
            f"root_directory={str(self.root_directory)!r}, "
            f"allow_write={self.allow_write}, "
            f"allow_delete={self.allow_delete}, "
            f"allow_exec={self.allow_exec})"
        )
