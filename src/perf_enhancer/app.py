# src/perf_enhancer/app.py
from __future__ import annotations

import logging
import sys
from typing import Callable, Dict, List, Optional

from perf_enhancer.core.managers.config_manager import config_manager
from perf_enhancer.core.utils.configure_logging import configure_from_config
from perf_enhancer.handlers.config_handler import handle_config
from perf_enhancer.handlers.enhance_handler import enhance_help_text, handle_batch, handle_enhance

logger = logging.getLogger(__name__)

COMMANDS: Dict[str, Callable[[List[str]], int]] = {
    "enhance": handle_enhance,
    "batch": handle_batch,
    "config": handle_config,
}

USAGE = f"""
Usage: perf-enhancer <command> [args]

Commands:
{enhance_help_text}
  config list|get|set|reset
      Inspect or change the configuration for this run.
"""


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the `perf-enhancer` console script."""
    args = list(sys.argv[1:] if argv is None else argv)

    configure_from_config(config_manager.get_nested("debug", {}))

    if not args or args[0] in ("-h", "--help", "help"):
        print(USAGE)
        return 0 if args else 1

    handler = COMMANDS.get(args[0])
    if handler is None:
        print(f"Unknown command: '{args[0]}'.")
        print(USAGE)
        return 1

    try:
        return handler(args[1:])
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
