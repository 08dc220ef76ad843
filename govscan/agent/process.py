"""
Agent process management — start, stop and probe the detached poller daemon.

The daemon's identity is a pid file holding the process id as decimal text.
A pid file whose process is gone is stale: it reads as "not running" and
is removed.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import time
from datetime import timedelta
from pathlib import Path
from typing import Optional, Protocol, Sequence

from govscan.config import Settings
from govscan.errors import AgentProcessError
from govscan.models.agent_models import AgentStatus
from govscan.store.base import Store

logger = logging.getLogger("govscan.agent.process")

STOP_POLL_ATTEMPTS = 30
STOP_POLL_INTERVAL = 0.1
KILL_GRACE = 0.2

DAEMON_COMMAND: tuple[str, ...] = (sys.executable, "-m", "govscan.agent.daemon")


class ManagedBackgroundProcess(Protocol):
    def start(self) -> int: ...

    def stop(self) -> None: ...

    def probe(self) -> Optional[int]: ...


def _alive(pid: int) -> bool:
    try:
        # Reap our own exited child so it does not linger as a zombie.
        reaped, _ = os.waitpid(pid, os.WNOHANG)
        if reaped == pid:
            return False
    except ChildProcessError:
        pass
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by another user.
        return True
    return True


class PidFileProcess:
    """ManagedBackgroundProcess backed by a pid file and POSIX signals."""

    def __init__(
        self,
        pid_path: Path,
        log_path: Path,
        command: Sequence[str] = DAEMON_COMMAND,
    ) -> None:
        self.pid_path = Path(pid_path)
        self.log_path = Path(log_path)
        self.command = list(command)

    def _read_pid(self) -> Optional[int]:
        try:
            pid = int(self.pid_path.read_text().strip())
        except (OSError, ValueError):
            return None
        return pid if pid > 0 else None

    def _remove_pid_file(self) -> None:
        self.pid_path.unlink(missing_ok=True)

    def probe(self) -> Optional[int]:
        """Pid of the running daemon, or None."""
        pid = self._read_pid()
        if pid is None:
            return None
        if not _alive(pid):
            logger.info(f"Removing stale pid file {self.pid_path} (pid {pid})")
            self._remove_pid_file()
            return None
        return pid

    def start(self) -> int:
        """Launch the daemon in a new session. Raises AgentProcessError."""
        running = self.probe()
        if running is not None:
            raise AgentProcessError(f"Agent is already running (PID {running})")

        self.pid_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.log_path, "ab") as log_file:
                proc = subprocess.Popen(
                    self.command,
                    stdin=subprocess.DEVNULL,
                    stdout=log_file,
                    stderr=log_file,
                    start_new_session=True,
                )
        except OSError as e:
            raise AgentProcessError(f"Starting agent failed: {e}") from e

        self.pid_path.write_text(str(proc.pid))
        logger.info(f"Agent started (PID {proc.pid}), logging to {self.log_path}")
        return proc.pid

    def stop(self) -> None:
        """SIGTERM, wait up to 3 s, then SIGKILL. Raises AgentProcessError."""
        pid = self.probe()
        if pid is None:
            self._remove_pid_file()
            raise AgentProcessError("Agent is not running")

        try:
            os.kill(pid, signal.SIGTERM)
        except OSError as e:
            self._remove_pid_file()
            raise AgentProcessError(f"Sending SIGTERM to {pid} failed: {e}") from e

        for _ in range(STOP_POLL_ATTEMPTS):
            time.sleep(STOP_POLL_INTERVAL)
            if not _alive(pid):
                self._remove_pid_file()
                logger.info(f"Agent (PID {pid}) stopped")
                return

        logger.warning(f"Agent (PID {pid}) ignored SIGTERM; sending SIGKILL")
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        time.sleep(KILL_GRACE)
        self._remove_pid_file()


def get_status(config: Settings, store: Store, process: ManagedBackgroundProcess) -> AgentStatus:
    pid = process.probe()
    status = AgentStatus(
        running=pid is not None,
        pid=pid,
        interval_hours=config.agent_check_interval_hours,
    )

    sources = store.list_agent_sources()
    status.source_count = len(sources)
    status.error_count = sum(1 for s in sources if s.last_error)

    checks = [s.last_check_at for s in sources if s.last_check_at is not None]
    if checks:
        status.last_check_at = max(checks)
        status.next_check_at = status.last_check_at + timedelta(
            hours=config.agent_check_interval_hours
        )
    return status
