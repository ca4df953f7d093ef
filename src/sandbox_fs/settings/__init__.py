"""
Settings and configuration for Sandbox FS.

Example:
    ```python
    from sandbox_fs.settings import load_config

    # Explicit file
    config = load_config("~/.sandbox-fs/config.yaml")

    # Environment (SANDBOX_FS_ROOT_DIRECTORY=...), root overridden
    config = load_config(root_directory="/srv/workspace")
    ```
"""

from sandbox_fs.settings.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    ENV_PREFIX,
    load_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "load_config",
]
