"""
Configuration loading for Sandbox FS.

Looks for configuration in this order:
1. An explicit file path
2. The file named by SANDBOX_FS_CONFIG
3. SANDBOX_FS_* environment variables
4. ~/.sandbox-fs/config.yaml

An explicit root directory always wins over the root found in any source.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from sandbox_fs.filesystem.config import LocalFileSystemConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SANDBOX_FS_CONFIG"
ENV_PREFIX = "SANDBOX_FS_"
DEFAULT_CONFIG_PATH = Path("~/.sandbox-fs/config.yaml")


def load_config(
    path: Optional[Union[str, Path]] = None,
    root_directory: Optional[Union[str, Path]] = None,
    fallback_root: Optional[Union[str, Path]] = None,
) -> LocalFileSystemConfig:
    """
    Load the filesystem configuration.

    Args:
        path: Explicit configuration file (YAML or JSON)
        root_directory: Overrides the root directory from any source
        fallback_root: Root directory to use when no source is found

    Returns:
        LocalFileSystemConfig

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValueError: If no source provides a root directory
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if path:
        logger.debug(f"Loading configuration from {path}")
        config = LocalFileSystemConfig.from_file(path)
    elif os.environ.get(f"{ENV_PREFIX}ROOT_DIRECTORY"):
        logger.debug("Loading configuration from environment")
        config = LocalFileSystemConfig.from_env(ENV_PREFIX)
    elif DEFAULT_CONFIG_PATH.expanduser().exists():
        logger.debug(f"Loading configuration from {DEFAULT_CONFIG_PATH}")
        config = LocalFileSystemConfig.from_file(DEFAULT_CONFIG_PATH)
    elif root_directory is not None or fallback_root is not None:
        return LocalFileSystemConfig(root_directory=root_directory or fallback_root)
    else:
        raise ValueError(
            f"No configuration found: pass a file, set {CONFIG_ENV_VAR} "
            f"or {ENV_PREFIX}ROOT_DIRECTORY"
        )

    if root_directory is not None:
        config = LocalFileSystemConfig(
            **{**config.model_dump(), "root_directory": root_directory}
        )
    return config
