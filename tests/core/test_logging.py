# tests/core/test_logging.py
import io
import logging

import pytest

from perf_enhancer.core.utils.configure_logging import (
    LogWithTqdm,
    configure_from_config,
    configure_logger,
    to_level,
)

TOUCHED = ("bs4", "perf_enhancer.services.script_service")


@pytest.fixture(autouse=True)
def restore_logging():
    """Puts the root handlers and the touched logger levels back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    levels = {name: logging.getLogger(name).level for name in TOUCHED}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, old in levels.items():
        logging.getLogger(name).setLevel(old)


@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG), ("WARNING", logging.WARNING), (" error ", logging.ERROR),
    (20, logging.INFO), ("loud", logging.CRITICAL), (None, logging.CRITICAL), (True, logging.CRITICAL),
])
def test_to_level(value, expected):
    assert to_level(value, logging.CRITICAL) == expected


def test_configure_logger_levels():
    configure_logger(
        "warning",
        module_specific_levels={"perf_enhancer.services.script_service": "DEBUG"},
        silenced_loggers={"bs4": "ERROR"},
    )

    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("perf_enhancer.services.script_service").level == logging.DEBUG
    assert logging.getLogger("bs4").level == logging.ERROR


def test_handler_installed_once():
    configure_logger("INFO")
    configure_logger("INFO")

    tqdm_handlers = [h for h in logging.getLogger().handlers if isinstance(h, LogWithTqdm)]
    assert len(tqdm_handlers) == 1


def test_records_go_to_stream():
    stream = io.StringIO()
    configure_logger("INFO", stream=stream)

    logging.getLogger("perf_enhancer.test").info("Relocated %d script(s).", 3)
    assert "INFO - [perf_enhancer.test:" in stream.getvalue()
    assert "Relocated 3 script(s)." in stream.getvalue()


def test_configure_from_config_silences_loggers():
    handler = configure_from_config({"level": "ERROR", "modules": {}, "silenced": {"bs4": "nonsense"}})

    assert isinstance(handler, LogWithTqdm)
    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("bs4").level == logging.CRITICAL


def test_configure_from_config_tolerates_bad_section():
    configure_from_config(None)
    assert logging.getLogger().level == logging.WARNING
