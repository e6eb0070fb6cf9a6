from typing import Optional

from ..cmd import Command
from .base import BaseRunner, BuildError, ProcessHandle, SpawnError
from .batch import ProcessBatch
from .local import LocalRunner

__all__ = [
    "BaseRunner",
    "BuildError",
    "LocalRunner",
    "ProcessBatch",
    "ProcessHandle",
    "SpawnError",
    "default_runner",
    "run_cmd",
    "run_sync",
    "spawn_async",
    "wait",
]

_DEFAULT_RUNNER: Optional[BaseRunner] = None


def default_runner() -> BaseRunner:
    """Shared LocalRunner used by the module-level helpers."""
    global _DEFAULT_RUNNER
    if _DEFAULT_RUNNER is None:
        _DEFAULT_RUNNER = LocalRunner()
    return _DEFAULT_RUNNER


def spawn_async(cmd: Command, log: Optional[bool] = None) -> ProcessHandle:
    return default_runner().spawn_async(cmd, log)


def wait(handle: ProcessHandle) -> bool:
    return default_runner().wait(handle)


def run_sync(cmd: Command, log: Optional[bool] = None) -> bool:
    return default_runner().run_sync(cmd, log)


def run_cmd(*args, log: Optional[bool] = None) -> bool:
    """Run a one-off command synchronously, e.g. run_cmd("mkdir", "-p", "build")."""
    return default_runner().run_sync(Command(args), log)
