# src/perf_enhancer/services/hint_service.py
import logging
from typing import Dict, List, Tuple

from bs4 import NavigableString, Tag

from perf_enhancer.core.matcher import has_string
from perf_enhancer.dom.core import Fragment, get_attr, insert_after
from perf_enhancer.dom.models import HTMLDocument
from perf_enhancer.model import CROSSORIGIN_PRECONNECT_KEYS, PatternSets

logger = logging.getLogger(__name__)

Header = Tuple[str, str]


class HintService:
    """
    Resource hints: `Link: rel=preload` response headers for early hints and
    <link rel="preconnect"/"dns-prefetch"> tags for third party origins.
    """

    def __init__(self, patterns: PatternSets):
        self.patterns = patterns

    @staticmethod
    def preload_headers(doc: HTMLDocument) -> List[Header]:
        """
        Promotes head <link rel="preload"> elements to `Link` headers.

        Image preloads are skipped: their `imagesrcset`/`imagesizes` can not be
        expressed in a single header yet.
        """
        headers: List[Header] = []
        for node in doc.head.find_all("link", recursive=False):
            if get_attr(node, "rel").strip().lower() != "preload":
                continue

            href = get_attr(node, "href").strip()
            as_value = get_attr(node, "as").strip()

            if as_value == "image":
                continue
            if not href and not as_value:
                continue

            headers.append(("Link", f"<{href}>; rel=preload; as={as_value}; crossorigin"))

        if headers:
            logger.debug("Emitting %d preload header(s).", len(headers))
        return headers

    def matched_origins(self, sources: List[str]) -> Dict[str, bool]:
        """
        Collects the origins of every preconnect key that occurs in at least
        one relocated script source.

        Returns:
            Dict[str, bool]: Origin -> needs crossorigin="anonymous", in
            mapping order and free of duplicates.
        """
        origins: Dict[str, bool] = {}
        if not sources:
            return origins

        for key, key_origins in self.patterns.preconnects.items():
            if not has_string(key, sources):
                continue
            crossorigin = key in CROSSORIGIN_PRECONNECT_KEYS
            for origin in key_origins:
                origins[origin] = origins.get(origin, False) or crossorigin
        return origins

    def build_links(self, doc: HTMLDocument, origins: Dict[str, bool]) -> Fragment:
        """All preconnect links first, then the dns-prefetch fallbacks."""
        soup = doc.soup
        preconnect: List[Tag] = []
        prefetch: List[Tag] = []

        for origin, crossorigin in origins.items():
            link = soup.new_tag("link")
            link["rel"] = "preconnect"
            link["href"] = origin
            if crossorigin:
                link["crossorigin"] = "anonymous"
            preconnect.append(link)

            # For browsers without preconnect support
            fallback = soup.new_tag("link")
            fallback["rel"] = "dns-prefetch"
            fallback["href"] = origin
            prefetch.append(fallback)

        fragment = Fragment()
        for link in preconnect + prefetch:
            fragment.append(NavigableString("\n"))
            fragment.append(link)
        return fragment

    def do_preconnects(self, doc: HTMLDocument, sources: List[str]) -> int:
        """
        Inserts preconnect/dns-prefetch links after the first <meta> in head.
        Returns the number of origins hinted.
        """
        origins = self.matched_origins(sources)
        if not origins:
            return 0

        fragment = self.build_links(doc, origins)
        meta = doc.head.find("meta")
        if meta is not None:
            insert_after(fragment, meta)
        else:
            for offset, node in enumerate(fragment):
                doc.head.insert(offset, node)

        logger.debug("Added preconnect hints for %d origin(s).", len(origins))
        return len(origins)
