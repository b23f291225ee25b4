# src/perf_enhancer/services/script_service.py
import logging
from typing import Iterable, Tuple

from bs4 import Tag

from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.core.matcher import has_string
from perf_enhancer.dom.core import (
    ClassificationResult,
    Zone,
    get_attr,
    inner_text,
    parent_name,
    set_inner_text,
)
from perf_enhancer.model import PatternSets
from perf_enhancer.services.minify_service import minify_js
from perf_enhancer.services.nobot_service import NobotService

logger = logging.getLogger(__name__)

STRUCTURED_DATA_TYPE = "application/ld+json"
REDUNDANT_SCRIPT_TYPES = {"text/javascript", "application/javascript"}


class ScriptService:
    """
    Classifies the <script> elements of one zone and collects the ones that
    should move to the end of the page.

    Decisions per node, in order: noscript children and JSON-LD are left
    alone; an external source seen before is a duplicate and is deleted;
    skip patterns keep a node in place; remove patterns delete it; what is
    left is either deferred behind the bot check or queued for relocation.
    """

    def __init__(self, patterns: PatternSets, nobot_service: NobotService):
        self.patterns = patterns
        self.nobot_service = nobot_service

    def handle_scripts(self, scripts: Iterable[Tag], zone: Zone, state: PipelineState) -> None:
        """Classifies every script of a zone, in encounter order, updating `state`."""
        zone = Zone(zone)
        counts = {result: 0 for result in ClassificationResult}

        for node in scripts:
            result = self.handle_script(node, zone, state)
            counts[result] += 1

        logger.debug(
            "Scripts in %s: %s",
            zone.value,
            ", ".join(f"{k.value}={v}" for k, v in counts.items()),
        )

    def handle_script(self, node: Tag, zone: Zone, state: PipelineState) -> ClassificationResult:
        """Classifies a single script node and records the decision in `state`."""
        result, text = self.classify(node, zone, state)

        if result is ClassificationResult.REMOVE:
            state.mark_for_removal(node)
            return result

        if result is ClassificationResult.KEEP:
            return result

        # Surviving node: the bot gate decides between DEFER and RELOCATE
        if self.nobot_service.handle(node, get_attr(node, "src"), text, state) is None:
            return ClassificationResult.DEFER

        state.scripts.append(node)
        return ClassificationResult.RELOCATE

    def classify(self, node: Tag, zone: Zone, state: PipelineState) -> Tuple[ClassificationResult, str]:
        """
        Decides KEEP, REMOVE or RELOCATE for a node and applies the attribute
        clean-up that goes with relocation.

        Returns:
            Tuple[ClassificationResult, str]: The decision and the original
            trimmed inline code.
        """
        if parent_name(node) == "noscript":
            return ClassificationResult.KEEP, ""

        script_type = get_attr(node, "type").strip()
        src = get_attr(node, "src").strip()
        text = inner_text(node)

        if script_type.lower() == STRUCTURED_DATA_TYPE:
            return ClassificationResult.KEEP, text

        skips = self.patterns.zone_skips(zone.value)

        if src:
            # Embeds (e.g. tweets) often print the same external script several times
            if state.has_source(src):
                logger.debug("Removing duplicate script: %s", src)
                return ClassificationResult.REMOVE, text

            if has_string(skips + self.patterns.src_skips, src):
                return ClassificationResult.KEEP, text

            if has_string(self.patterns.remove_scripts, src):
                logger.debug("Removing script by pattern: %s", src)
                return ClassificationResult.REMOVE, text

            # Moved scripts execute in order more reliably without async/defer
            for attr in ("async", "defer"):
                if attr in node.attrs:
                    del node.attrs[attr]
            state.add_source(src)
        elif text:
            if not script_type or script_type.lower() in REDUNDANT_SCRIPT_TYPES:
                set_inner_text(node, minify_js(text))

            if has_string(self.patterns.inline_skips + skips, text):
                return ClassificationResult.KEEP, text

            if has_string(self.patterns.remove_scripts, text):
                logger.debug("Removing inline script by pattern.")
                return ClassificationResult.REMOVE, text

        if script_type.lower() in REDUNDANT_SCRIPT_TYPES:
            del node.attrs["type"]

        return ClassificationResult.RELOCATE, text
