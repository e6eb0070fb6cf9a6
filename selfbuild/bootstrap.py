"""
Self-rebuild bootstrap.

Run once at the very start of a build program, before it parses its own
arguments. If the program's source is newer than its compiled binary:

    CHECK -> STALE -> BACKUP -> RECOMPILE
        -> RECOMPILE_OK -> CLEANUP_BACKUP -> RELAUNCH      (never returns)
        -> RECOMPILE_FAILED -> RESTORE_BACKUP -> ABORT     (SystemExit, nonzero)

otherwise CHECK -> NOT_STALE and control returns to the caller.

The current binary is moved aside before the compiler is allowed to write to
its path, so the last known-good binary is never deleted before a replacement
has been built. The move is os.replace, atomic on one volume, which is why the
backup lives next to the binary.

Two copies of the same program rebuilding themselves at the same time are
not supported; nothing here takes a lock.
"""
import enum
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .cmd import Command
from .config import settings
from .process import BaseRunner, SpawnError, default_runner
from .staleness import is_newer

logger = logging.getLogger("selfbuild.bootstrap")


class RebuildState(enum.Enum):
    CHECK = "check"
    NOT_STALE = "not_stale"
    STALE = "stale"
    BACKUP = "backup"
    RECOMPILE = "recompile"
    RECOMPILE_OK = "recompile_ok"
    CLEANUP_BACKUP = "cleanup_backup"
    RELAUNCH = "relaunch"
    RECOMPILE_FAILED = "recompile_failed"
    RESTORE_BACKUP = "restore_backup"
    ABORT = "abort"


@dataclass
class SelfRebuildContext:
    """Everything the bootstrapper needs, passed in explicitly instead of read from sys.argv."""
    source_path: str
    binary_path: str
    args: List[str] = field(default_factory=list)
    cflags: Optional[List[str]] = None
    compiler: Optional[str] = None
    backup_path: Optional[str] = None
    relaunch_mode: Optional[str] = None

    def __post_init__(self):
        self.source_path = os.fspath(self.source_path)
        self.binary_path = os.fspath(self.binary_path)
        self.args = list(self.args)
        if self.cflags is None:
            self.cflags = list(settings.CFLAGS)
        if self.compiler is None:
            self.compiler = settings.CC
        if self.backup_path is None:
            self.backup_path = self.binary_path + settings.BACKUP_SUFFIX
        if self.relaunch_mode is None:
            self.relaunch_mode = settings.RELAUNCH_MODE
        if self.relaunch_mode == "auto":
            self.relaunch_mode = "exec" if os.name == "posix" else "spawn"
        if self.relaunch_mode not in ("exec", "spawn"):
            raise ValueError(f"Unknown relaunch mode: {self.relaunch_mode}")

    @classmethod
    def from_argv(cls, source_path: str, argv: Sequence[str], cflags: Optional[Sequence[str]] = None,
                  compiler: Optional[str] = None) -> "SelfRebuildContext":
        """Context for the usual case where argv[0] is the running binary."""
        if not argv:
            raise ValueError("argv must contain at least the program path")
        return cls(
            source_path=source_path,
            binary_path=argv[0],
            args=list(argv[1:]),
            cflags=list(cflags) if cflags is not None else None,
            compiler=compiler,
        )


class SelfRebuilder:
    def __init__(self, ctx: SelfRebuildContext, runner: Optional[BaseRunner] = None):
        self.ctx = ctx
        self.runner = runner or default_runner()
        self.cmd = Command()
        self.state = RebuildState.CHECK
        self.history: List[RebuildState] = [RebuildState.CHECK]

    def _enter(self, state: RebuildState):
        self.state = state
        self.history.append(state)

    def _abort(self, message: str):
        self._enter(RebuildState.ABORT)
        logger.error(message)
        sys.exit(1)

    def run(self) -> RebuildState:
        ctx = self.ctx

        if not os.path.exists(ctx.source_path):
            logger.warning(f"{ctx.source_path} not found, skipping self-rebuild")
            self._enter(RebuildState.NOT_STALE)
            return self.state

        if not is_newer(ctx.source_path, ctx.binary_path):
            self._enter(RebuildState.NOT_STALE)
            return self.state

        self._enter(RebuildState.STALE)
        logger.info(f"{ctx.source_path} is newer than {ctx.binary_path}, rebuilding")

        self._enter(RebuildState.BACKUP)
        if os.path.exists(ctx.backup_path):
            self._recover_leftover_backup()
        try:
            os.replace(ctx.binary_path, ctx.backup_path)
        except OSError as e:
            self._abort(f"failed to rename {ctx.binary_path} to {ctx.backup_path}: {e}")
        logger.info(f"renamed {ctx.binary_path} to {ctx.backup_path}")

        self._enter(RebuildState.RECOMPILE)
        self.cmd.reset()
        self.cmd.push(ctx.compiler, *ctx.cflags, "-o", ctx.binary_path, ctx.source_path)
        ok = self.runner.run_sync(self.cmd)
        self.cmd.reset()

        if not ok:
            self._enter(RebuildState.RECOMPILE_FAILED)
            self._restore_backup()
            self._abort(f"failed to rebuild {ctx.binary_path}")

        self._enter(RebuildState.RECOMPILE_OK)
        self._cleanup_backup()
        self._relaunch()
        return self.state  # unreachable: _relaunch always exits

    def _recover_leftover_backup(self):
        """Deal with a backup left behind by an interrupted rebuild.

        Moving the binary aside would overwrite it, and it may be the only
        known-good build left.
        """
        ctx = self.ctx
        if os.path.exists(ctx.binary_path):
            self._abort(
                f"{ctx.backup_path} is left over from an earlier rebuild; "
                f"inspect it and remove it or move it back to {ctx.binary_path}"
            )
        try:
            os.replace(ctx.backup_path, ctx.binary_path)
        except OSError as e:
            self._abort(f"failed to rename {ctx.backup_path} to {ctx.binary_path}: {e}")
        logger.warning(f"restored {ctx.binary_path} from leftover {ctx.backup_path}")

    def _cleanup_backup(self):
        self._enter(RebuildState.CLEANUP_BACKUP)
        try:
            os.remove(self.ctx.backup_path)
        except OSError as e:
            logger.warning(f"failed to delete {self.ctx.backup_path}: {e}")
        else:
            logger.info(f"deleted {self.ctx.backup_path}")

    def _restore_backup(self):
        ctx = self.ctx
        self._enter(RebuildState.RESTORE_BACKUP)
        try:
            os.replace(ctx.backup_path, ctx.binary_path)
        except OSError as e:
            logger.warning(f"failed to rename {ctx.backup_path} to {ctx.binary_path}: {e}")
            logger.error(
                f"no working binary may exist at {ctx.binary_path}; "
                f"the previous build could not be restored from {ctx.backup_path}"
            )
        else:
            logger.info(f"renamed {ctx.backup_path} to {ctx.binary_path}")

    def _relaunch(self):
        ctx = self.ctx
        self._enter(RebuildState.RELAUNCH)

        # A bare name would otherwise be looked up on PATH.
        program = ctx.binary_path
        if not os.path.dirname(program):
            program = os.path.join(os.curdir, program)

        self.cmd.reset()
        self.cmd.push(program, *ctx.args)
        logger.info(f"relaunching {self.cmd.display()}")

        if ctx.relaunch_mode == "exec":
            argv = self.cmd.items
            for handler in logging.getLogger("selfbuild").handlers:
                handler.flush()
            sys.stdout.flush()
            sys.stderr.flush()
            try:
                os.execv(program, argv)
            except OSError as e:
                self._abort(f"couldn't relaunch {program}: {e}")
            return

        # spawn mode: run the new binary as a child and forward its status.
        try:
            handle = self.runner.spawn_async(self.cmd, log=False)
        except SpawnError:
            self._abort(f"couldn't relaunch {program}")
        self.runner.wait(handle)
        sys.exit(_exit_status(handle.returncode))


def _exit_status(returncode: Optional[int]) -> int:
    if returncode is None:
        return 1
    if returncode < 0:
        return 128 - returncode
    return returncode


def build_yourself(ctx: SelfRebuildContext, runner: Optional[BaseRunner] = None) -> RebuildState:
    """Rebuild and relaunch the running program if its source changed.

    Returns RebuildState.NOT_STALE when nothing needed doing. Otherwise it does
    not return: the process is replaced by the new binary, or exits nonzero if
    the rebuild failed.
    """
    return SelfRebuilder(ctx, runner).run()
