"""
conftest.py: test isolation for the selfbuild suite.

1. Make the repo root importable when running from a checkout.
2. Snapshot and restore SELFBUILD_* environment variables around each test.
3. Undo logging changes made by the CLI (setup_logging detaches the
   "selfbuild" logger from the root logger).
"""
import logging
import os
import sys

import pytest

_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)


@pytest.fixture(autouse=True)
def _clean_env_vars():
    """Snapshot and restore SELFBUILD_* environment variables after each test."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("SELFBUILD_")}

    yield

    for key in [k for k in os.environ if k.startswith("SELFBUILD_")]:
        if key not in saved:
            os.environ.pop(key, None)
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def _reset_selfbuild_logger():
    logger = logging.getLogger("selfbuild")
    handlers = list(logger.handlers)
    level, propagate = logger.level, logger.propagate

    yield

    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate

