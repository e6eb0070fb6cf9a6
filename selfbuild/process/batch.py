import logging
from typing import Iterable, Iterator, List, Optional

from ..cmd import Command
from .base import BaseRunner, ProcessHandle

logger = logging.getLogger("selfbuild.process")


class ProcessBatch:
    """
    A cohort of concurrently running children.

    Handles are owned by the batch until wait_all(), which waits on each one
    exactly once in insertion order and empties the batch. Used as a context
    manager, any handles still pending on exit are waited on so no child is
    left as a zombie.
    """

    def __init__(self, runner: Optional[BaseRunner] = None):
        if runner is None:
            from . import default_runner
            runner = default_runner()
        self.runner = runner
        self._handles: List[ProcessHandle] = []

    def append(self, handle: ProcessHandle):
        self._handles.append(handle)

    def append_many(self, handles: Iterable[ProcessHandle]):
        self._handles.extend(handles)

    def spawn(self, cmd: Command, log: Optional[bool] = None) -> ProcessHandle:
        """Spawn cmd through the runner and track it. SpawnError propagates untracked."""
        handle = self.runner.spawn_async(cmd, log)
        self.append(handle)
        return handle

    def wait_all(self) -> bool:
        """Wait on every tracked handle. True iff all of them succeeded."""
        failed = 0
        handles, self._handles = self._handles, []
        for handle in handles:
            if not self.runner.wait(handle):
                failed += 1
        if failed:
            logger.error(f"{failed} of {len(handles)} commands failed")
        return failed == 0

    @property
    def handles(self) -> List[ProcessHandle]:
        return list(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[ProcessHandle]:
        return iter(list(self._handles))

    def __enter__(self) -> "ProcessBatch":
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._handles:
            self.wait_all()
        return False
