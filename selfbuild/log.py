import logging
import sys

# Rendered command lines sit between INFO and WARNING.
CMD = 25

logging.addLevelName(CMD, "CMD")

LOG_FORMAT = "[%(levelname)s] %(message)s"


class _LevelFormatter(logging.Formatter):
    """Shortens level names on our own output only; the global level table is left alone."""

    LEVEL_NAMES = {logging.WARNING: "WARN"}

    def format(self, record):
        name = self.LEVEL_NAMES.get(record.levelno)
        if name is not None:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = name
        return super().format(record)


def setup_logging(level="INFO", stream=None):
    """Configure the selfbuild logger for command-line use. Safe to call repeatedly."""
    logger = logging.getLogger("selfbuild")
    for handler in list(logger.handlers):
        if getattr(handler, "_selfbuild", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_LevelFormatter(LOG_FORMAT))
    handler._selfbuild = True
    logger.addHandler(handler)
    logger.setLevel(level if isinstance(level, int) else level.upper())
    logger.propagate = False
    return logger
