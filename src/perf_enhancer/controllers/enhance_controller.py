# src/perf_enhancer/controllers/enhance_controller.py
from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.dom.builder import DOMBuilder, DocumentStructureError
from perf_enhancer.dom.core import Fragment, Zone, detach, insert_after
from perf_enhancer.dom.models import HTMLDocument
from perf_enhancer.model import (
    EnhanceResult,
    EnhancerData,
    EnhancerSettings,
    HostFeatures,
    PatternSets,
)
from perf_enhancer.services.cache_header_service import CacheHeaderService
from perf_enhancer.services.hint_service import HintService
from perf_enhancer.services.lazy_load_service import LazyLoadService
from perf_enhancer.services.nobot_service import NobotService
from perf_enhancer.services.prefilter_service import PrefilterService
from perf_enhancer.services.script_service import ScriptService
from perf_enhancer.services.style_service import StyleService

logger = logging.getLogger(__name__)

Header = Tuple[str, str]


def is_xml(html: str) -> bool:
    """True for XML documents (feeds, sitemaps), which must never be rewritten."""
    return html.lstrip("\ufeff \t\r\n").startswith("<?xml")


class EnhanceController:
    """
    Orchestrates the transform pipeline for one page at a time.

    The controller only holds immutable configuration and stateless services;
    every call to `process()` gets its own PipelineState, so a single
    controller can serve concurrent requests.
    """

    def __init__(
            self,
            settings: Optional[EnhancerSettings] = None,
            patterns: Optional[PatternSets] = None,
            features: Optional[HostFeatures] = None,
            data: Optional[EnhancerData] = None,
    ) -> None:
        self.settings = settings or EnhancerSettings()
        self.patterns = patterns or PatternSets()
        self.features = features or HostFeatures()
        self.data = data or EnhancerData()

        self.builder = DOMBuilder()
        self.prefilter = PrefilterService()
        self.cache_headers = CacheHeaderService(self.settings)
        self.nobots = NobotService(self.patterns, anchor_id=self.settings.nobot_anchor_id)
        self.scripts = ScriptService(self.patterns, self.nobots)
        self.styles = StyleService(self.patterns, self.features)
        self.hints = HintService(self.patterns)
        self.lazy = LazyLoadService(self.settings, self.patterns)

    def process(self, html: str, is_homepage: bool = False) -> EnhanceResult:
        """
        Rewrites a fully rendered page.

        Cache headers are decided first, even for markup that is passed
        through untouched. Any failure after that returns the input unchanged.

        Args:
            html (str): The buffered page markup.
            is_homepage (bool): Selects the homepage TTL for Cache-Control.

        Returns:
            EnhanceResult: The rewritten markup and the headers to send.
        """
        headers: List[Header] = list(self.cache_headers.headers(is_homepage))

        if not html or not html.strip():
            return EnhanceResult(html=html or "", headers=headers)

        if is_xml(html):
            logger.debug("XML document detected, skipping.")
            return EnhanceResult(html=html, headers=headers)

        start = time.perf_counter()
        try:
            output, extra_headers = self._run(html)
        except DocumentStructureError as e:
            logger.info("Skipping document: %s", e)
            return EnhanceResult(html=html, headers=headers)
        except Exception as e:
            logger.error("Enhancing failed, returning the original markup: %s", e, exc_info=True)
            return EnhanceResult(html=html, headers=headers)

        headers.extend(extra_headers)
        logger.info(
            "Enhanced document in %.1f ms (%d -> %d chars).",
            (time.perf_counter() - start) * 1000, len(html), len(output),
        )
        return EnhanceResult(html=output, headers=headers, changed=output != html)

    def _run(self, html: str) -> Tuple[str, List[Header]]:
        """Runs every pass on a fresh state and serializes the result."""
        state = PipelineState()
        headers: List[Header] = []

        buffer = self.prefilter.apply(html)
        doc = self.builder.parse_doc(buffer)

        self.setup_scripts(state)

        self.lazy.apply(doc, state)

        if self.settings.move_scripts:
            self.scripts.handle_scripts(doc.head.find_all("script"), Zone.HEAD, state)
            self.scripts.handle_scripts(doc.body.find_all("script"), Zone.BODY, state)

        if self.settings.preload_header:
            headers.extend(self.hints.preload_headers(doc))

        if state.sources:
            self.hints.do_preconnects(doc, state.sources)

        self.styles.handle_styles(doc, state)
        self.styles.handle_inline_styles(doc)

        self.handle_injects(doc, state)
        self.remove_nodes(state)

        logger.debug("Pipeline finished: %r", state)
        return self.builder.serialize(doc), headers

    def setup_scripts(self, state: PipelineState) -> None:
        """Queues the site owner's extra script markup ahead of every relocated script."""
        if not self.data.scripts:
            return
        fragment = Fragment.from_markup(self.data.scripts)
        if fragment:
            state.scripts.append(fragment)

    def handle_injects(self, doc: HTMLDocument, state: PipelineState) -> bool:
        """
        Moves the queued scripts and styles to directly after the anchor.

        Without the anchor nothing moves and deferred scripts stay where they
        are, so no content is lost. Returns True when relocation happened.
        """
        container = doc.get_element_by_id(self.settings.anchor_id)
        if container is None or container.parent is None:
            if state.scripts or state.styles or state.deferred:
                logger.warning(
                    "Anchor element #%s not found, leaving %d script(s) and %d style(s) in place.",
                    self.settings.anchor_id, len(state.scripts), len(state.styles),
                )
            return False

        wrapper = self.nobots.build_wrapper(doc.soup, state)
        if wrapper is not None:
            # Added last so it runs after every relocated script
            state.scripts.append(wrapper)
            for node in state.deferred:
                state.mark_for_removal(node)

        # insert_after puts each node right behind the anchor, so insert in reverse
        for node in reversed(state.scripts):
            insert_after(node, container)

        for node in reversed(state.styles):
            insert_after(node, container)

        logger.debug("Relocated %d script(s) and %d style(s).", len(state.scripts), len(state.styles))
        return True

    @staticmethod
    def remove_nodes(state: PipelineState) -> int:
        """Detaches every node marked for deletion. Returns the number removed."""
        removed = sum(1 for node in state.remove if detach(node))
        if removed:
            logger.debug("Removed %d node(s).", removed)
        return removed
