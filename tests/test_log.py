import io
import logging
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from selfbuild.log import CMD, setup_logging


def test_prefixed_lines():
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)

    log = logging.getLogger("selfbuild.test")
    log.info("renamed build to build.old")
    log.log(CMD, "cc -o build build.c")
    log.warning("failed to delete build.old")
    log.error("command exited with exit code 1")
    log.debug("hidden")

    assert stream.getvalue().splitlines() == [
        "[INFO] renamed build to build.old",
        "[CMD] cc -o build build.c",
        "[WARN] failed to delete build.old",
        "[ERROR] command exited with exit code 1",
    ]


def test_setup_is_idempotent():
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)
    setup_logging("INFO", stream=stream)
    logging.getLogger("selfbuild.test").info("once")
    assert stream.getvalue() == "[INFO] once\n"


def test_cmd_level_sits_between_info_and_warning():
    assert logging.INFO < CMD < logging.WARNING
    assert logging.getLevelName(CMD) == "CMD"


def test_warning_name_is_unchanged_for_other_loggers():
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)
    logging.getLogger("selfbuild.test").warning("careful")

    assert stream.getvalue() == "[WARN] careful\n"
    assert logging.getLevelName(logging.WARNING) == "WARNING"
    record = logging.makeLogRecord({"levelno": logging.WARNING, "levelname": "WARNING", "msg": "x"})
    assert logging.Formatter("%(levelname)s").format(record) == "WARNING"
