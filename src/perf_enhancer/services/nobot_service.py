# src/perf_enhancer/services/nobot_service.py
import json
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.core.matcher import has_string
from perf_enhancer.dom.core import ClassificationResult, set_inner_text
from perf_enhancer.model import PatternSets

logger = logging.getLogger(__name__)


def js_string(value: str) -> str:
    """
    JSON-encodes a value as a JS string literal that can not close its <script>
    or switch it into the escaped state (`<!--` followed by `<script`).
    """
    return json.dumps(value).replace("</", "<\\/").replace("<!--", "\\u003c!--")


class NobotService:
    """
    Hides "human only" scripts (ads, trackers, widgets) from crawlers and page
    speed graders.

    A matching script is taken out of the markup and replaced by code that
    rebuilds it at runtime. That code only runs when the user agent does not
    look like a known bot, which also pushes the script's cost past first
    paint for real visitors.
    """

    def __init__(self, patterns: PatternSets, anchor_id: str = "nobots"):
        self.patterns = patterns
        self.anchor_id = anchor_id

    def classify(self, src: str, text: str) -> ClassificationResult:
        """DEFER when the source or the inline text matches a human-only pattern."""
        human = self.patterns.human_scripts
        if (src and has_string(human, src)) or (text and has_string(human, text)):
            return ClassificationResult.DEFER
        return ClassificationResult.KEEP

    def handle(self, node: Tag, src: str, text: str, state: PipelineState) -> Optional[Tag]:
        """
        Defers the node if it is human-only.

        Args:
            node (Tag): The script element, still attached to the document.
            src (str): Its `src` attribute ('' for inline scripts).
            text (str): Its original trimmed inline code.
            state (PipelineState): Invocation state receiving the injection code.

        Returns:
            Optional[Tag]: The node when it passes through, None when deferred.
        """
        if self.classify(src, text) is not ClassificationResult.DEFER:
            return node

        var = state.next_nobot_var()
        lines = [f"var {var} = document.createElement( 'script' );"]
        for name, value in node.attrs.items():
            if isinstance(value, (list, tuple)):
                value = " ".join(value)
            lines.append(f"{var}.setAttribute( {js_string(str(name))}, {js_string(str(value or ''))} );")

        if not src and text:
            lines.append(f"{var}.innerHTML = {js_string(text)};")

        lines.append(f"nobots.parentNode.insertBefore( {var}, nobots );")
        state.inject += "\n".join(lines) + "\n"
        state.deferred.append(node)

        logger.debug("Deferred human-only script as %s (src=%r).", var, src or None)
        return None

    def build_wrapper(self, soup: BeautifulSoup, state: PipelineState) -> Optional[Tag]:
        """
        Builds the script that detects bots and runs the accumulated injection
        code for everyone else. Returns None when nothing was deferred.
        """
        if not state.inject:
            return None

        agents = "|".join(f"({re.escape(a)})" if " " in a else re.escape(a) for a in self.patterns.bot_agents)
        code = (
            "window.isBot = (function(){\n"
            f"var agents = {js_string('(' + agents + ')')};\n"
            "var regex = new RegExp( agents, 'i' );\n"
            "return regex.test( navigator.userAgent );\n"
            "})();\n"
            "if ( ! isBot ) {\n"
            f"const nobots = document.getElementById( {js_string(self.anchor_id)} );\n"
            f"{state.inject}"
            "}\n"
        )

        wrapper = soup.new_tag("script")
        wrapper["id"] = self.anchor_id
        set_inner_text(wrapper, code)
        return wrapper
