# src/perf_enhancer/handlers/config_handler.py
import json
import logging
from typing import List, Optional

from perf_enhancer.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)


USAGE = """
Usage:
  config list                Show the current configuration as JSON.
  config get <key>           Show one value (e.g., enhancer.ttl_inner).
  config set <key> <value>   Set a value and save it to ~/.perf_enhancer/settings.json
                             (e.g., enhancer.lazy_images false).
  config reset               Delete the saved user settings and go back to the defaults.
"""


def handle_config(args: List[str], _stdin: Optional[str] = None) -> int:
    """Handles the 'config' command for viewing and modifying configuration."""
    if not args:
        print(USAGE)
        return 1

    command = args[0]

    if command == "list":
        print(json.dumps(config_manager.get_all(), indent=2))
        return 0

    if command == "get":
        if len(args) < 2:
            print("Usage: config get <key>")
            return 1
        value = config_manager.get_nested(args[1])
        if value is None:
            print(f"❌ Error: Unknown config key '{args[1]}'.")
            return 1
        print(json.dumps(value, indent=2) if isinstance(value, (dict, list)) else value)
        return 0

    if command == "set":
        if len(args) < 3:
            print("Usage: config set <key> <value>")
            return 1
        key_path = args[1]
        value = " ".join(args[2:])

        if value.startswith('"') and value.endswith('"'):
            value = value[1:-1]

        if not config_manager.set_nested(key_path, value):
            print(f"❌ Error: Failed to set config value for key '{key_path}'.")
            return 1

        try:
            saved_to = config_manager.save()
        except OSError as e:
            logger.error("Could not save configuration: %s", e)
            print(f"❌ Error: Could not save the configuration: {e}")
            return 1

        new_value = config_manager.get_nested(key_path)
        print(f"✅ Config updated: {key_path} = {new_value} (type: {type(new_value).__name__})")
        print(f"   Saved to {saved_to}")
        return 0

    if command == "reset":
        try:
            removed = config_manager.clear_user_settings()
        except OSError as e:
            logger.error("Could not remove user settings: %s", e)
            print(f"❌ Error: Could not remove the user settings file: {e}")
            return 1
        print("✅ Configuration has been reset to the values from settings.json.")
        if not removed:
            print("   (No user settings file was present.)")
        return 0

    print(f"Unknown command: 'config {command}'.")
    return 1
