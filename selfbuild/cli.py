"""
selfbuild command-line entry point.

Usage: selfbuild <command> [args]

Commands:
  build    rebuild one output from its sources when stale
  check    report whether an output is stale
  compile  compile stale sources to objects in parallel, optionally link
  run      keep a compiled program in sync with its source, then run it
  mkdir    create directories
  version  print the version

Exit status: 0 on success (including "nothing to rebuild"), 1 on failure or
an unknown command.
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .bootstrap import SelfRebuildContext, build_yourself
from .cmd import Command
from .config import settings
from .log import setup_logging
from .paths import collect_sources, create_dir_if_not_exists, path_with_ext
from .process import BuildError, ProcessBatch, default_runner
from .staleness import BuildTarget, needs_rebuild

logger = logging.getLogger("selfbuild.cli")

COMMANDS = ["build", "check", "compile", "run", "mkdir", "version"]


class UsageError(BuildError):
    pass


def _parse(parser: argparse.ArgumentParser, argv: List[str]) -> argparse.Namespace:
    # argparse exits with 2 on bad usage; the CLI only reports 0 or 1.
    try:
        return parser.parse_args(argv)
    except SystemExit as e:
        if e.code not in (0, None):
            raise UsageError(f"invalid arguments for {parser.prog}") from None
        raise


def _toolchain_args(parser: argparse.ArgumentParser):
    parser.add_argument("--cc", default=None, help="compiler (default: $SELFBUILD_CC or cc)")
    parser.add_argument("--cflag", dest="cflags", action="append", default=None,
                        help="flag passed to the compiler verbatim; repeatable")


def _toolchain(opts):
    cc = opts.cc or settings.CC
    cflags = opts.cflags if opts.cflags is not None else list(settings.CFLAGS)
    return cc, cflags


def cmd_build(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(prog="selfbuild build")
    parser.add_argument("-o", "--output", required=True)
    parser.add_argument("--dep", dest="deps", action="append", default=[],
                        help="extra input that forces a rebuild when newer; repeatable")
    _toolchain_args(parser)
    parser.add_argument("sources", nargs="+")
    opts = _parse(parser, argv)

    target = BuildTarget(opts.output, [*opts.sources, *opts.deps])
    if not needs_rebuild(target):
        logger.info(f"{opts.output} is up to date")
        return 0

    cc, cflags = _toolchain(opts)
    cmd = Command().push(cc, *cflags, "-o", opts.output, *opts.sources)
    if not default_runner().run_sync(cmd):
        logger.error(f"failed to build {opts.output}")
        return 1
    return 0


def cmd_check(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(prog="selfbuild check")
    parser.add_argument("-o", "--output", required=True)
    parser.add_argument("inputs", nargs="*")
    opts = _parse(parser, argv)

    stale = needs_rebuild(BuildTarget(opts.output, opts.inputs))
    print("stale" if stale else "up to date")
    return 0


def _object_path(source: str, out_dir: Optional[str], obj_ext: str) -> str:
    if out_dir is None:
        return path_with_ext(source, obj_ext)
    rel = os.path.relpath(source)
    if rel.startswith(os.pardir):
        rel = os.path.basename(source)
    return os.path.join(out_dir, path_with_ext(rel, obj_ext))


def cmd_compile(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(prog="selfbuild compile")
    parser.add_argument("--ext", default=None, help="source extension to scan for (default: .c)")
    parser.add_argument("-r", "--recursive", action="store_true")
    parser.add_argument("--out-dir", default=None)
    parser.add_argument("--link", default=None, metavar="OUT", help="link all objects into OUT")
    _toolchain_args(parser)
    parser.add_argument("paths", nargs="+")
    opts = _parse(parser, argv)

    cc, cflags = _toolchain(opts)
    sources = collect_sources(opts.paths, opts.ext or settings.SOURCE_EXT, recursive=opts.recursive)
    if not sources:
        logger.error("no sources found")
        return 1

    objects = []
    with ProcessBatch() as batch:
        cmd = Command()
        for src in sources:
            obj = _object_path(src, opts.out_dir, settings.OBJECT_EXT)
            objects.append(obj)
            if not needs_rebuild(BuildTarget(obj, [src])):
                continue
            obj_dir = os.path.dirname(obj)
            if obj_dir:
                os.makedirs(obj_dir, exist_ok=True)
            cmd.push(cc, *cflags, "-c", "-o", obj, src)
            batch.spawn(cmd)
            cmd.reset()
        if not batch.wait_all():
            return 1

    if opts.link is None:
        return 0
    if not needs_rebuild(BuildTarget(opts.link, objects)):
        logger.info(f"{opts.link} is up to date")
        return 0
    cmd = Command().push(cc, *cflags, "-o", opts.link, *objects)
    return 0 if default_runner().run_sync(cmd) else 1


def cmd_run(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(prog="selfbuild run")
    parser.add_argument("--source", required=True)
    parser.add_argument("--binary", default=None, help="default: source without its extension")
    _toolchain_args(parser)
    parser.add_argument("args", nargs=argparse.REMAINDER)
    opts = _parse(parser, argv)

    args = opts.args
    if args and args[0] == "--":
        args = args[1:]
    binary = opts.binary or path_with_ext(opts.source, "")
    cc, cflags = _toolchain(opts)

    runner = default_runner()
    if not os.path.exists(binary):
        cmd = Command().push(cc, *cflags, "-o", binary, opts.source)
        if not runner.run_sync(cmd):
            logger.error(f"failed to build {binary}")
            return 1
    else:
        ctx = SelfRebuildContext(opts.source, binary, args, cflags=cflags, compiler=cc)
        build_yourself(ctx, runner)

    program = binary if os.path.dirname(binary) else os.path.join(os.curdir, binary)
    cmd = Command().push(program, *args)
    handle = runner.spawn_async(cmd, log=False)
    runner.wait(handle)
    if handle.returncode is None:
        return 1
    return handle.returncode if handle.returncode >= 0 else 128 - handle.returncode


def cmd_mkdir(argv: List[str]) -> int:
    if not argv:
        print("Usage: selfbuild mkdir <path>...")
        return 1
    ok = True
    for path in argv:
        if not create_dir_if_not_exists(path):
            ok = False
    return 0 if ok else 1


HANDLERS = {
    "build": cmd_build,
    "check": cmd_check,
    "compile": cmd_compile,
    "run": cmd_run,
    "mkdir": cmd_mkdir,
}


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    setup_logging(settings.LOG_LEVEL)

    if not argv:
        print("Usage: selfbuild <command> [args]")
        print(f"Available commands: {', '.join(COMMANDS)}")
        return 1

    command, rest = argv[0], argv[1:]

    if command == "version":
        print(f"selfbuild {__version__}")
        return 0

    handler = HANDLERS.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS)}")
        return 1

    try:
        return handler(rest)
    except BuildError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
