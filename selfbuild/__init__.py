"""
selfbuild: incremental build orchestration for build scripts that rebuild themselves.

Public surface:
  - cmd.py        → Command, is_shell_safe
  - process/      → LocalRunner, ProcessHandle, ProcessBatch, run_cmd
  - staleness.py  → is_newer, needs_rebuild, BuildTarget
  - paths.py      → path_with_ext, create_dir_if_not_exists, collect_sources
  - bootstrap.py  → SelfRebuildContext, build_yourself
"""

__version__ = "0.3.0"
