"""Process table helpers built on psutil.

These functions are blocking. Callers in async code run them on a worker
thread with ``anyio.to_thread.run_sync``.
"""

import os

import psutil


def _command_line(proc: psutil.Process) -> str:
    """Return the joined command line, falling back to the process name."""
    cmdline = proc.cmdline()
    return " ".join(cmdline) if cmdline else proc.name()


def find_pids(pattern: str) -> tuple[int, ...]:
    """Find live processes whose command line contains the pattern.

    The calling process and zombies never match.

    Args:
        pattern: Case-sensitive substring of the command line.

    Returns:
        Matching process IDs in ascending order.
    """
    own_pid = os.getpid()
    matches: list[int] = []

    for proc in psutil.process_iter():
        if proc.pid == own_pid:
            continue
        try:
            if proc.status() == psutil.STATUS_ZOMBIE:
                continue
            if pattern in _command_line(proc):
                matches.append(proc.pid)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            continue
        except psutil.AccessDenied:
            # Other users' processes; the name is usually still readable
            try:
                if pattern in proc.name():
                    matches.append(proc.pid)
            except psutil.Error:
                continue

    return tuple(sorted(matches))


def pid_matches(pid: int, pattern: str) -> bool:
    """Check that a PID is alive and still belongs to the expected command.

    Guards against signalling an unrelated process that reused a stale PID.
    """
    try:
        proc = psutil.Process(pid)
        if proc.status() == psutil.STATUS_ZOMBIE:
            return False
        return pattern in _command_line(proc)
    except (psutil.NoSuchProcess, psutil.ZombieProcess):
        return False


def terminate_pids(pids: tuple[int, ...], timeout: float) -> tuple[int, ...]:
    """Terminate processes, escalating to SIGKILL after the timeout.

    Args:
        pids: Process IDs to terminate.
        timeout: Seconds to wait after SIGTERM (and again after SIGKILL).

    Returns:
        Process IDs that are still alive afterwards.

    Raises:
        psutil.AccessDenied: If a process may not be signalled.
    """
    procs: list[psutil.Process] = []
    for pid in pids:
        try:
            proc = psutil.Process(pid)
            proc.terminate()
            procs.append(proc)
        except psutil.NoSuchProcess:
            continue

    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue

    _, still_alive = psutil.wait_procs(alive, timeout=timeout)
    return tuple(sorted(proc.pid for proc in still_alive))
