# src/perf_enhancer/handlers/enhance_handler.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from perf_enhancer.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

enhance_help_text = """
  enhance <input|-> [-o OUTPUT] [--homepage] [--settings FILE] [--headers]
      Rewrites one HTML file (or stdin) and writes the result to OUTPUT (or stdout).
  batch <input_dir> <output_dir> [--homepage-file NAME] [--settings FILE]
      Rewrites every *.html file of a directory tree into output_dir.
""".strip()


def _load_settings(path: Optional[str]) -> bool:
    if not path:
        return True
    if not Path(path).exists():
        print(f"❌ Error: Settings file '{path}' not found.", file=sys.stderr)
        return False
    config_manager.reset(path)
    return True


def handle_enhance(args: List[str], _stdin: Optional[str] = None) -> int:
    """Handles the 'enhance' command for a single document."""
    parser = argparse.ArgumentParser(prog="enhance", description="Rewrite one HTML document.")
    parser.add_argument("input", help="Path to an HTML file, or '-' for stdin.")
    parser.add_argument("-o", "--output", help="Write the result here instead of stdout.")
    parser.add_argument("--homepage", action="store_true", help="Use the homepage cache TTL.")
    parser.add_argument("--settings", help="Path to a settings.json file.")
    parser.add_argument("--headers", action="store_true", help="Print the response headers to stderr.")

    try:
        pargs = parser.parse_args(args)
    except SystemExit:
        return 1

    if not _load_settings(pargs.settings):
        return 1

    try:
        if pargs.input == "-":
            html = _stdin if _stdin is not None else sys.stdin.read()
        else:
            html = Path(pargs.input).read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Could not read input: %s", e)
        print(f"❌ Error: Could not read '{pargs.input}': {e}", file=sys.stderr)
        return 1

    controller = config_manager.build_controller()
    result = controller.process(html, is_homepage=pargs.homepage)

    if pargs.headers:
        for name, value in result.headers:
            print(f"{name}: {value}", file=sys.stderr)

    if pargs.output:
        try:
            Path(pargs.output).write_text(result.html, encoding="utf-8")
        except OSError as e:
            logger.error("Could not write output: %s", e)
            print(f"❌ Error: Could not write '{pargs.output}': {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(result.html)
    return 0


def handle_batch(args: List[str], _stdin: Optional[str] = None) -> int:
    """Handles the 'batch' command: rewrites every HTML file below a directory."""
    parser = argparse.ArgumentParser(prog="batch", description="Rewrite a directory of HTML files.")
    parser.add_argument("input_dir")
    parser.add_argument("output_dir")
    parser.add_argument("--homepage-file", default="index.html",
                        help="File name treated as the homepage (default: index.html at the top level).")
    parser.add_argument("--settings", help="Path to a settings.json file.")

    try:
        pargs = parser.parse_args(args)
    except SystemExit:
        return 1

    if not _load_settings(pargs.settings):
        return 1

    input_dir = Path(pargs.input_dir)
    output_dir = Path(pargs.output_dir)
    if not input_dir.is_dir():
        print(f"❌ Error: '{input_dir}' is not a directory.", file=sys.stderr)
        return 1

    files = sorted(input_dir.rglob("*.html"))
    if not files:
        print(f"No HTML files found in '{input_dir}'.")
        return 0

    controller = config_manager.build_controller()
    changed = failed = 0

    for path in tqdm(files, desc="Enhancing", unit="page", leave=False):
        relative = path.relative_to(input_dir)
        target = output_dir / relative
        try:
            html = path.read_text(encoding="utf-8")
            result = controller.process(html, is_homepage=str(relative) == pargs.homepage_file)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(result.html, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to process %s: %s", path, e)
            failed += 1
            continue
        if result.changed:
            changed += 1

    print(f"✅ Processed {len(files)} file(s): {changed} changed, {failed} failed.")
    return 1 if failed else 0
