import logging
import os
from typing import Iterable, List, Set, Union

logger = logging.getLogger("selfbuild.paths")


def path_with_ext(path: str, ext: str) -> str:
    """Return path with its extension replaced by ext ("." included in ext).

    Only the final component is considered, so "build.d/main" becomes
    "build.d/main.o" rather than "build.o".
    """
    base, _ = os.path.splitext(os.fspath(path))
    return base + ext


def create_dir_if_not_exists(path: str) -> bool:
    try:
        os.mkdir(path, 0o775)
    except FileExistsError:
        logger.info(f"{path} already exists")
        return True
    except OSError as e:
        logger.error(f"couldn't create {path}: {e.strerror or e}")
        return False
    logger.info(f"created {path}")
    return True


def _scan(root: str, ext: str, recursive: bool) -> List[str]:
    if not recursive:
        return sorted(
            os.path.join(root, name)
            for name in os.listdir(root)
            if name.endswith(ext) and os.path.isfile(os.path.join(root, name))
        )

    found = []
    visited: Set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        real = os.path.realpath(dirpath)
        if real in visited:
            dirnames[:] = []
            continue
        visited.add(real)
        dirnames.sort()
        for name in sorted(filenames):
            if name.endswith(ext):
                found.append(os.path.join(dirpath, name))
    return found


def collect_sources(roots: Union[str, Iterable[str]], ext: str, recursive: bool = False) -> List[str]:
    """
    Build an input set from files and directories.

    Files are taken as given; directories are scanned for names ending in ext.
    Recursive scans follow directory symlinks but never enter the same real
    directory twice. Order is deterministic and duplicates are dropped.
    """
    if isinstance(roots, (str, os.PathLike)):
        roots = [roots]

    sources: List[str] = []
    seen: Set[str] = set()
    for root in roots:
        root = os.fspath(root)
        if os.path.isdir(root):
            paths = _scan(root, ext, recursive)
        else:
            paths = [root]
        for p in paths:
            key = os.path.normpath(p)
            if key not in seen:
                seen.add(key)
                sources.append(p)
    return sources
