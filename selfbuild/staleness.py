"""
Staleness decisions from filesystem modification times.

Nothing is cached: every check stats the files again, so manual edits between
runs are always picked up.
"""
import os
from dataclasses import dataclass, field
from typing import List, Sequence

from .paths import path_with_ext


def is_newer(path_a, path_b) -> bool:
    """True if path_a was modified strictly after path_b.

    If either path cannot be stat'ed (usually: the output does not exist yet)
    the answer is True, which is what makes a from-scratch build happen.
    Equal timestamps are not newer.
    """
    try:
        mtime_a = os.stat(path_a).st_mtime_ns
        mtime_b = os.stat(path_b).st_mtime_ns
    except OSError:
        return True
    return mtime_a > mtime_b


@dataclass
class BuildTarget:
    """One output path and the inputs it is built from."""
    output: str
    inputs: List[str] = field(default_factory=list)

    @classmethod
    def from_source(cls, source: str, ext: str, extra_inputs: Sequence[str] = ()) -> "BuildTarget":
        """Target whose output is source with its extension replaced, e.g. foo.c -> foo.o."""
        return cls(path_with_ext(source, ext), [source, *extra_inputs])

    def is_stale(self) -> bool:
        return needs_rebuild(self)


def needs_rebuild(target: BuildTarget) -> bool:
    """True if any input is newer than the output, or there are no inputs at all."""
    if not target.inputs:
        return True
    return any(is_newer(src, target.output) for src in target.inputs)
