# src/perf_enhancer/core/utils/configure_logging.py
import logging
import sys
from typing import Any, Dict, Mapping, Optional, TextIO, Union

from tqdm import tqdm

Level = Union[int, str]

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"


class LogWithTqdm(logging.Handler):
    """
    Writes log records through `tqdm.write()` so they do not tear the batch
    progress bar. Output goes to stderr by default; stdout is reserved for the
    rewritten markup of `perf-enhancer enhance`.
    """

    def __init__(self, stream: Optional[TextIO] = None, level: Level = logging.NOTSET):
        super().__init__(level)
        self.stream = stream

    def emit(self, record):
        try:
            msg = self.format(record)
            # Resolved per record so a replaced sys.stderr is honoured
            tqdm.write(msg, file=self.stream or sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def to_level(level: Optional[Level], fallback: int) -> int:
    """Turns 'debug', 'WARNING' or 10 into a logging level; anything else is `fallback`."""
    if isinstance(level, bool):
        return fallback
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        if isinstance(value, int):
            return value
    return fallback


def configure_logger(
        general_level: Level = "WARNING",
        module_specific_levels: Optional[Mapping[str, Level]] = None,
        silenced_loggers: Optional[Mapping[str, Level]] = None,
        stream: Optional[TextIO] = None,
) -> LogWithTqdm:
    """
    Installs a single LogWithTqdm handler on the root logger.

    Args:
        general_level: Level of the root logger.
        module_specific_levels: Logger name -> level, e.g. to debug only
            `perf_enhancer.services.script_service`.
        silenced_loggers: Logger name -> level for third party loggers such as
            `bs4`; unknown levels mean CRITICAL.
        stream: Where records are written (stderr when None).

    Returns:
        LogWithTqdm: The installed handler.
    """
    handler = LogWithTqdm(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(to_level(general_level, logging.WARNING))

    # Calling this twice must not print every record twice
    for existing in list(root_logger.handlers):
        if isinstance(existing, LogWithTqdm):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(to_level(level, logging.INFO))

    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(to_level(level, logging.CRITICAL))

    return handler


def configure_from_config(debug_section: Optional[Dict[str, Any]]) -> LogWithTqdm:
    """Applies the `debug` section of settings.json (`level`, `modules`, `silenced`)."""
    section = debug_section if isinstance(debug_section, dict) else {}
    modules = section.get("modules")
    silenced = section.get("silenced")
    return configure_logger(
        section.get("level", "WARNING"),
        module_specific_levels=modules if isinstance(modules, dict) else None,
        silenced_loggers=silenced if isinstance(silenced, dict) else None,
    )
