"""PID file storage.

The launcher records the child's process ID at a well-known path so that
external tools, and a service manager running a ``Type=forking`` unit, can
track the real daemon after the short-lived launcher exits.
"""

import os
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import final


@final
class FilePidStore:
    """PID store backed by a single file.

    Writes are atomic: the PID goes to a temporary sibling file that is then
    renamed over the target, so readers never see a partial write.

    Attributes:
        path: Location of the PID file.
    """

    __slots__ = ("path",)

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> int | None:
        """Return the stored process ID.

        Returns:
            The PID, or None if the file is missing, empty, or malformed.
        """
        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

        if not content.isdigit():
            return None

        pid = int(content)
        return pid if pid > 0 else None

    def write(self, pid: int) -> None:
        """Store the process ID, creating parent directories as needed.

        Args:
            pid: The process ID to store. Must be positive.

        Raises:
            ValueError: If the PID is not positive.
        """
        if pid <= 0:
            msg = f"Invalid PID: {pid}"
            raise ValueError(msg)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        _ = tmp_path.write_text(f"{pid}\n", encoding="utf-8")
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        """Remove the PID file if it exists."""
        self.path.unlink(missing_ok=True)
