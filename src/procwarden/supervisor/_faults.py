"""Log-based fault detection.

The libxml2 crash does not always kill the supervised process: it can log
an error and keep running in a degraded state. The FaultDetector looks for
a known signature in recent log output so the supervisor can restart the
process even though it still reports as running.

Log sources:
- FileLogSource: Tails a log file into a bounded ring buffer
- JournalLogSource: Queries the systemd journal for a time range
"""

from __future__ import annotations

import math
import subprocess
from collections import deque
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import TYPE_CHECKING, final

import anyio
import anyio.to_thread
import pendulum

from procwarden.exceptions import LogSourceError
from procwarden.utils import get_default_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import FaultSignature
    from ._protocol import Clock, LogSource


@final
class FileLogSource:
    """Log source tailing a file.

    The first read starts at the end of the file, so history written before
    the supervisor started is ignored. Later reads pick up appended lines
    only. When the file shrinks (truncation or rotation) reading restarts
    from the beginning. Lines are timestamped when first observed and kept
    in a ring buffer of ``max_lines`` entries.
    """

    __slots__ = ("_buffer", "_clock", "_offset", "_partial", "path")

    def __init__(
        self,
        path: Path,
        clock: Clock,
        *,
        max_lines: int = 1000,
        from_start: bool = False,
    ) -> None:
        """Initialize the source.

        Args:
            path: Log file to tail.
            clock: Clock used to timestamp observed lines.
            max_lines: Ring buffer capacity.
            from_start: Treat existing content as newly observed on the
                first read, as one-shot checks need.
        """
        self.path = path
        self._clock = clock
        self._buffer: deque[tuple[float, str]] = deque(maxlen=max_lines)
        self._offset: int | None = 0 if from_start else None
        self._partial = b""

    def _read_new_lines(self) -> list[str]:
        try:
            size = self.path.stat().st_size
        except FileNotFoundError:
            # Everything written once the file appears is new
            self._offset = 0
            self._partial = b""
            return []

        if self._offset is None:
            self._offset = size
            return []

        if size < self._offset:
            self._offset = 0
            self._partial = b""

        if size == self._offset:
            return []

        with self.path.open("rb") as f:
            _ = f.seek(self._offset)
            data = f.read()
        self._offset += len(data)

        chunks = (self._partial + data).split(b"\n")
        self._partial = chunks.pop()
        return [chunk.decode("utf-8", errors="replace").rstrip("\r") for chunk in chunks]

    async def recent(self, window: float) -> list[str]:
        """Return lines observed within the last ``window`` seconds.

        Raises:
            LogSourceError: If the file exists but cannot be read.
        """
        try:
            new_lines = await anyio.to_thread.run_sync(self._read_new_lines)
        except OSError as e:
            msg = f"Failed to read log file {self.path}: {e}"
            raise LogSourceError(msg, cause=e) from e

        now = self._clock.now()
        self._buffer.extend((now, line) for line in new_lines)

        cutoff = now - window
        return [line for observed_at, line in self._buffer if observed_at >= cutoff]

    def reset(self) -> None:
        """Forget every complete line written so far.

        Buffered lines are dropped and lines already in the file but not
        yet read are skipped. An unfinished trailing line is kept so that
        its remainder is still read as part of the same line.
        """
        self._buffer.clear()
        if self._offset is None:
            return
        try:
            _ = self._read_new_lines()
        except OSError:
            # Resume at the end of the file on the next read
            self._offset = None
            self._partial = b""


@final
class JournalLogSource:
    """Log source querying the systemd journal for a unit."""

    __slots__ = ("_cutoff", "_journalctl", "_logger", "_timeout", "unit")

    def __init__(
        self,
        unit: str,
        *,
        timeout: float = 5.0,
        journalctl: str = "journalctl",
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            unit: Unit whose journal entries are read.
            timeout: Maximum seconds to wait for journalctl.
            journalctl: Name or path of the journalctl binary.
            logger: Structured logger. Uses the default logger if None.
        """
        self.unit = unit
        self._timeout = timeout
        self._journalctl = journalctl
        self._logger = logger or get_default_logger()
        self._cutoff: float | None = None

    def build_command(self, since: float) -> list[str]:
        """Build the journalctl command for entries newer than ``since``.

        Args:
            since: Unix timestamp of the oldest entry to include.
        """
        return [
            self._journalctl,
            "--unit",
            self.unit,
            "--since",
            f"@{int(since)}",
            "--output",
            "cat",
            "--no-pager",
            "--quiet",
        ]

    async def recent(self, window: float) -> list[str]:
        """Return journal lines from the last ``window`` seconds.

        Entries older than the last reset are excluded. A timed out query
        yields no lines.

        Raises:
            LogSourceError: If journalctl cannot run or fails.
        """
        since = pendulum.now("UTC").timestamp() - window
        if self._cutoff is not None and self._cutoff > since:
            # journalctl takes whole seconds; skip the second of the reset
            since = math.ceil(self._cutoff)

        command = self.build_command(since)
        with anyio.move_on_after(self._timeout):
            try:
                result = await anyio.run_process(
                    command, check=False, stderr=subprocess.PIPE
                )
            except OSError as e:
                msg = f"Failed to run journalctl: {e}"
                raise LogSourceError(msg, cause=e) from e

            if result.returncode != 0:
                stderr = result.stderr.decode(errors="replace").strip()
                msg = f"journalctl exited with code {result.returncode}: {stderr}"
                raise LogSourceError(msg)

            return result.stdout.decode(errors="replace").splitlines()

        self._logger.warning("journal_query_timeout", unit=self.unit)
        return []

    def reset(self) -> None:
        """Ignore every entry logged before now."""
        self._cutoff = pendulum.now("UTC").timestamp()


@final
class FaultDetector:
    """Scans recent log output for a fault signature."""

    __slots__ = ("signature", "source", "window")

    def __init__(
        self,
        source: LogSource,
        signature: FaultSignature,
        *,
        window: float = 60.0,
    ) -> None:
        """Initialize the detector.

        Args:
            source: Where recent log lines come from.
            signature: Default signature to look for.
            window: Default look-back window in seconds.
        """
        self.source = source
        self.signature = signature
        self.window = window

    async def scan(
        self,
        window: float | None = None,
        signature: FaultSignature | None = None,
    ) -> bool:
        """Report whether the signature appears in the recent log window.

        Args:
            window: Look-back window in seconds. Uses the default if None.
            signature: Signature to match. Uses the default if None.

        Returns:
            True if any line within the window contains the signature.

        Raises:
            LogSourceError: If the log source cannot be read.
        """
        effective_window = self.window if window is None else window
        effective_signature = self.signature if signature is None else signature

        lines = await self.source.recent(effective_window)
        return any(effective_signature.matches(line) for line in lines)

    def reset(self) -> None:
        """Forget observed lines so a handled fault does not fire again."""
        self.source.reset()
