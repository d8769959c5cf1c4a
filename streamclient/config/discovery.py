"""Configuration file discovery."""

import os
from pathlib import Path


CONFIG_FILE_ENV = "STREAMCLIENT_CONFIG_FILE"


def get_config_dir() -> Path:
    """Per-user configuration directory (``$XDG_CONFIG_HOME/streamclient``)."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    return base / "streamclient"


def find_git_root(path: Path | None = None) -> Path | None:
    """Find the root directory of the git repository containing ``path``.

    Args:
        path: Starting path to search from. Defaults to current directory.

    Returns:
        Path to the git root directory, or None if not in a git repository.
    """
    if path is None:
        path = Path.cwd()

    current = path.resolve()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    return None


def find_toml_config_file() -> Path | None:
    """Find the TOML configuration file for streamclient.

    Searches in the following order:
    1. ``$STREAMCLIENT_CONFIG_FILE``
    2. .streamclient.toml in current directory
    3. streamclient.toml in git repository root (if in a git repo)
    4. config.toml in XDG_CONFIG_HOME/streamclient/

    Returns:
        Path to the first found configuration file, or None if not found.
    """
    explicit = os.environ.get(CONFIG_FILE_ENV)
    if explicit:
        return Path(explicit)

    current_dir_config = Path.cwd() / ".streamclient.toml"
    if current_dir_config.exists():
        return current_dir_config

    git_root = find_git_root()
    if git_root:
        repo_config = git_root / "streamclient.toml"
        if repo_config.exists():
            return repo_config

    xdg_config = get_config_dir() / "config.toml"
    if xdg_config.exists():
        return xdg_config

    return None
