import abc
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..cmd import Command


class BuildError(Exception):
    """Base exception for build orchestration failures."""
    pass


class SpawnError(BuildError):
    """Raised when a program could not be launched at all."""
    pass


@dataclass
class ProcessHandle:
    """A spawned child process. Must be waited on exactly once."""
    pid: int
    argv: List[str] = field(default_factory=list)
    waited: bool = False
    returncode: Optional[int] = None
    # Backend-specific process object (subprocess.Popen for LocalRunner).
    proc: Any = field(default=None, repr=False, compare=False)


class BaseRunner(abc.ABC):
    """Spawn/wait contract shared by all process runners."""

    @abc.abstractmethod
    def spawn_async(self, cmd: Command, log: Optional[bool] = None) -> ProcessHandle:
        """Start cmd without blocking. Raises SpawnError if it cannot be launched."""
        ...

    @abc.abstractmethod
    def wait(self, handle: ProcessHandle) -> bool:
        """Block until the process exits. True iff it exited normally with status 0."""
        ...

    def run_sync(self, cmd: Command, log: Optional[bool] = None) -> bool:
        """Spawn cmd and wait for it. Launch failures are reported as False."""
        try:
            handle = self.spawn_async(cmd, log)
        except SpawnError:
            return False
        return self.wait(handle)
