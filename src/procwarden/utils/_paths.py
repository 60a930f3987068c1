import os
from pathlib import Path

import platformdirs

SYSTEM_RUNTIME_DIR = Path("/run/procwarden")


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/procwarden/config.toml``
    - macOS: ``~/Library/Application Support/procwarden/config.toml``
    """
    return platformdirs.user_config_path("procwarden") / "config.toml"


def get_runtime_dir() -> Path:
    """Get the directory for PID files.

    Root uses ``/run/procwarden``; other users get their per-user runtime
    directory (``$XDG_RUNTIME_DIR/procwarden`` on Linux).
    """
    if os.geteuid() == 0:
        return SYSTEM_RUNTIME_DIR
    return platformdirs.user_runtime_path("procwarden")


def get_default_pid_file(name: str) -> Path:
    """Get the default PID file path for a supervised process.

    Args:
        name: The supervised process name.

    Returns:
        Path to ``<runtime dir>/<name>.pid``.
    """
    return get_runtime_dir() / f"{name}.pid"
