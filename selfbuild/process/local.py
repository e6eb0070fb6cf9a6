import logging
import os
import subprocess
from typing import Dict, Optional

from ..cmd import Command
from ..config import settings
from ..log import CMD
from .base import BaseRunner, ProcessHandle, SpawnError

logger = logging.getLogger("selfbuild.process")


class LocalRunner(BaseRunner):
    """Runs commands as direct children of this process (argv, no shell).

    There is no timeout or cancellation: a spawned child runs until it exits
    or is killed by a signal from elsewhere.
    """

    def __init__(self, cwd: Optional[str] = None, env: Optional[Dict[str, str]] = None):
        self.cwd = cwd
        self.env = env

    def spawn_async(self, cmd: Command, log: Optional[bool] = None) -> ProcessHandle:
        if log is None:
            log = settings.LOG_COMMANDS

        argv = cmd.items
        if not argv:
            logger.error("couldn't start subprocess: empty command")
            raise SpawnError("cannot spawn an empty command")

        if log:
            logger.log(CMD, cmd.display())

        try:
            proc = subprocess.Popen(argv, cwd=self.cwd, env=self.env)
        except OSError as e:
            logger.error(f"couldn't execute command {argv[0]}: {e}")
            raise SpawnError(f"couldn't execute command {argv[0]}: {e}") from e

        return ProcessHandle(pid=proc.pid, argv=argv, proc=proc)

    def wait(self, handle: ProcessHandle) -> bool:
        if handle.waited:
            logger.error(f"process {handle.pid} was already waited on")
            return False
        handle.waited = True

        # Popen.wait() reports an already-reaped child (ECHILD) as exit status 0,
        # so every handle is waited on with waitpid directly.
        try:
            returncode = self._waitpid(handle.pid)
        except OSError as e:
            logger.error(f"could not wait on command (pid {handle.pid}): {e}")
            return False

        if handle.proc is not None:
            # Keep Popen from reaping the pid a second time.
            handle.proc.returncode = returncode

        handle.returncode = returncode
        if returncode < 0:
            logger.error(f"command process {handle.pid} was terminated by signal {-returncode}")
            return False
        if returncode != 0:
            logger.error(f"command exited with exit code {returncode}")
            return False
        return True

    @staticmethod
    def _waitpid(pid: int) -> int:
        """Block until pid exits. Negative result means killed by signal.

        os.waitpid retries on EINTR itself (PEP 475), so unrelated signals do not end the wait.
        """
        while True:
            _, status = os.waitpid(pid, 0)
            if os.WIFSTOPPED(status):
                continue
            return os.waitstatus_to_exitcode(status)
