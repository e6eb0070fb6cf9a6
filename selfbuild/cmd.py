"""
Command builder.

A Command is an ordered argv list (argv[0] is the program) owned by a single
caller. It is reused across spawns: call reset() between uses, otherwise the
previous arguments leak into the next command line.
"""
import os
import re
import shlex
from typing import Iterable, Iterator, List, Optional

# Same character class shlex.quote treats as safe.
_UNSAFE = re.compile(r"[^\w@%+=:,./-]", re.ASCII)


def is_shell_safe(arg: str) -> bool:
    """True if arg can be shown unquoted on a POSIX shell command line."""
    return bool(arg) and _UNSAFE.search(arg) is None


def _coerce(arg) -> str:
    if isinstance(arg, os.PathLike):
        arg = os.fspath(arg)
    if not isinstance(arg, str):
        raise TypeError(f"Command arguments must be str or path-like, got {type(arg).__name__}")
    if "\x00" in arg:
        raise ValueError(f"Command argument contains a NUL byte: {arg!r}")
    return arg


class Command:
    """Append-only argument list for one process invocation."""

    def __init__(self, args: Optional[Iterable[str]] = None):
        self._items: List[str] = []
        if args is not None:
            self.extend(args)

    def push(self, *args) -> "Command":
        """Append zero or more arguments."""
        return self.extend(args)

    def extend(self, args: Iterable[str]) -> "Command":
        for arg in args:
            self._items.append(_coerce(arg))
        return self

    def reset(self) -> "Command":
        """Truncate to zero arguments so the object can build the next command."""
        del self._items[:]
        return self

    @property
    def items(self) -> List[str]:
        return list(self._items)

    @property
    def program(self) -> Optional[str]:
        return self._items[0] if self._items else None

    def display(self) -> str:
        """Human-readable command line. For logging only; execution never goes through a shell."""
        return " ".join(a if is_shell_safe(a) else shlex.quote(a) for a in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"Command({self._items!r})"

    def __str__(self) -> str:
        return self.display()
