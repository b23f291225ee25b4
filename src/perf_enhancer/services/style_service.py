# src/perf_enhancer/services/style_service.py
import logging
from typing import List

from bs4 import Tag

from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.core.matcher import has_string
from perf_enhancer.dom.core import ClassificationResult, get_attr, set_inner_text
from perf_enhancer.dom.models import HTMLDocument
from perf_enhancer.model import HostFeatures, PatternSets, clean_patterns
from perf_enhancer.services.minify_service import minify_css

logger = logging.getLogger(__name__)

WOOCOMMERCE_BLOCKS_STYLE = "wc-blocks"
RECIPE_MAKER_STYLE = "wp-recipes-maker"


class StyleService:
    """
    Removes unused stylesheets from <head>, queues others for the footer and
    minifies inline <style> bodies.
    """

    def __init__(self, patterns: PatternSets, features: HostFeatures):
        self.patterns = patterns
        self.features = features

    @staticmethod
    def head_stylesheets(doc: HTMLDocument) -> List[Tag]:
        """Returns the <link rel="stylesheet"> children of <head>."""
        return [
            link for link in doc.head.find_all("link", recursive=False)
            if get_attr(link, "rel").strip().lower() == "stylesheet"
        ]

    def removal_patterns(self, doc: HTMLDocument) -> List[str]:
        """
        The configured removal set plus conditional entries: block library
        styles are dropped when the plugin is active but the page renders none
        of its blocks.
        """
        remove = list(self.patterns.styles_to_remove)

        if self.features.woocommerce:
            has_blocks = doc.soup.find(
                attrs={"data-block-name": lambda v: bool(v) and v.startswith("woocommerce/")}
            )
            if not has_blocks:
                remove.append(WOOCOMMERCE_BLOCKS_STYLE)

        if self.features.recipe_maker:
            has_recipe = doc.soup.find(attrs={"class": lambda v: bool(v) and v.startswith("wprm-recipe")})
            if not has_recipe:
                remove.append(RECIPE_MAKER_STYLE)

        return clean_patterns(remove)

    def classify(self, href: str, remove: List[str], footer: List[str]) -> ClassificationResult:
        if not href:
            return ClassificationResult.KEEP
        # Removal wins, a node is never both deleted and moved
        if has_string(remove, href):
            return ClassificationResult.REMOVE
        if has_string(footer, href):
            return ClassificationResult.RELOCATE
        return ClassificationResult.KEEP

    def handle_styles(self, doc: HTMLDocument, state: PipelineState) -> None:
        """Classifies head stylesheets, updating the removal and relocation lists."""
        styles = self.head_stylesheets(doc)
        if not styles:
            return

        for node in styles:
            if get_attr(node, "type").strip().lower() == "text/css":
                del node.attrs["type"]

        remove = self.removal_patterns(doc)
        footer = self.patterns.styles_to_footer
        if not remove and not footer:
            return

        for node in styles:
            href = get_attr(node, "href").strip()
            result = self.classify(href, remove, footer)
            if result is ClassificationResult.REMOVE:
                logger.debug("Removing stylesheet: %s", href)
                state.mark_for_removal(node)
            elif result is ClassificationResult.RELOCATE:
                logger.debug("Moving stylesheet to footer: %s", href)
                state.styles.append(node)

    @staticmethod
    def handle_inline_styles(doc: HTMLDocument) -> int:
        """Minifies every non-empty <style> body. Returns the number minified."""
        count = 0
        for node in doc.soup.find_all("style"):
            text = node.get_text()
            if not text.strip():
                continue
            set_inner_text(node, minify_css(text))
            count += 1
        return count
