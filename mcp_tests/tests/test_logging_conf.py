import logging
import sys

import pytest

from core.logging_conf import LOG_FORMAT, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for h in root.handlers[:]:
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_setup_logging_uses_single_stderr_handler(restore_root_logger):
    setup_logging("debug")
    setup_logging("debug")

    root = restore_root_logger
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert handler.stream is sys.stderr
    assert handler.formatter._fmt == LOG_FORMAT
    assert root.level == logging.DEBUG


def test_setup_logging_unknown_level_falls_back_to_info(restore_root_logger):
    setup_logging("chatty")
    assert restore_root_logger.level == logging.INFO
