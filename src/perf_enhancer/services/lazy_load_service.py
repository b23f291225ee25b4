# src/perf_enhancer/services/lazy_load_service.py
import logging
from typing import List, Optional

from bs4 import Tag

from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.dom.core import document_positions, get_attr, has_class, unique_in_order
from perf_enhancer.dom.models import HTMLDocument
from perf_enhancer.model import EnhancerSettings, PatternSets

logger = logging.getLogger(__name__)

# Siblings of the anchor that never contain content worth lazy loading
_NON_CONTENT_TAGS = {"script", "style", "link"}


class LazyLoadService:
    """
    Adds loading="lazy" to images and iframes in the content regions.

    The very first image of the document is left alone since it is most
    likely above the fold. That exemption is tracked on the PipelineState so
    it spans every region of one document and nothing else.
    """

    def __init__(self, settings: EnhancerSettings, patterns: PatternSets):
        self.settings = settings
        self.patterns = patterns

    def regions(self, doc: HTMLDocument) -> List[Tag]:
        """
        Content regions in document order: every element named in
        `lazy_regions`, plus the content siblings following the anchor.
        """
        found: List[Tag] = []
        if self.patterns.lazy_regions:
            found.extend(doc.soup.find_all(self.patterns.lazy_regions))

        anchor = doc.get_element_by_id(self.settings.anchor_id)
        if anchor is not None:
            found.extend(
                sibling for sibling in anchor.find_next_siblings(True)
                if sibling.name not in _NON_CONTENT_TAGS
            )

        return unique_in_order(found, document_positions(doc.soup))

    def _skip(self, node: Tag) -> bool:
        if "loading" in node.attrs and get_attr(node, "loading").strip():
            return True
        return has_class(node, self.settings.lazy_opt_out_class)

    def _collect(self, regions: List[Tag], tag_name: str) -> List[Tag]:
        nodes = []
        for region in regions:
            nodes.extend(region.find_all(tag_name))
        # Nested regions would otherwise yield the same node twice
        return unique_in_order(nodes)

    def do_lazy_images(self, regions: List[Tag], state: PipelineState) -> int:
        count = 0
        for node in self._collect(regions, "img"):
            if not state.first_image_seen:
                state.first_image_seen = True
                continue
            if self._skip(node):
                continue
            node["loading"] = "lazy"
            count += 1
        return count

    def do_lazy_iframes(self, regions: List[Tag]) -> int:
        count = 0
        for node in self._collect(regions, "iframe"):
            if self._skip(node):
                continue
            node["loading"] = "lazy"
            count += 1
        return count

    def apply(self, doc: HTMLDocument, state: PipelineState, regions: Optional[List[Tag]] = None) -> int:
        """Runs the enabled annotators. Returns the number of nodes annotated."""
        if not (self.settings.lazy_images or self.settings.lazy_iframes):
            return 0

        regions = self.regions(doc) if regions is None else regions
        if not regions:
            return 0

        count = 0
        if self.settings.lazy_images:
            count += self.do_lazy_images(regions, state)
        if self.settings.lazy_iframes:
            count += self.do_lazy_iframes(regions)

        logger.debug("Lazy loading added to %d element(s) in %d region(s).", count, len(regions))
        return count
