# src/perf_enhancer/core/context/pipeline_context.py
import logging
from typing import List, Union

from bs4 import PageElement, Tag

from perf_enhancer.dom.core import Fragment

logger = logging.getLogger(__name__)


class PipelineState:
    """
    Mutable state for exactly one pipeline invocation.

    Holds the relocation lists, the seen script sources, the bot-gated
    injection buffer and the nodes marked for deletion. A fresh instance is
    created for every document, so concurrent requests never share counters.
    """

    def __init__(self):
        # Relocation lists, in encounter order
        self.scripts: List[Union[Tag, Fragment]] = []
        self.styles: List[Tag] = []

        # Script sources already relocated; only ever grows
        self.sources: List[str] = []
        self._source_set = set()

        # Bot-gated injection code and the nodes it replaces
        self.inject: str = ""
        self.deferred: List[Tag] = []
        self.nobot_index: int = 1

        self.remove: List[PageElement] = []
        self.first_image_seen: bool = False

    def has_source(self, src: str) -> bool:
        return src in self._source_set

    def add_source(self, src: str) -> None:
        """Records a relocated script source (once)."""
        if src and src not in self._source_set:
            self._source_set.add(src)
            self.sources.append(src)

    def mark_for_removal(self, node: PageElement) -> None:
        """Schedules a node for deletion at finalize time; marking twice is a no-op."""
        if any(node is existing for existing in self.remove):
            return
        self.remove.append(node)

    def next_nobot_var(self) -> str:
        """Returns the next unique JS variable name for a deferred script."""
        name = f"nobot{self.nobot_index}"
        self.nobot_index += 1
        return name

    def __repr__(self) -> str:
        return (
            f"<PipelineState scripts={len(self.scripts)} styles={len(self.styles)} "
            f"sources={len(self.sources)} deferred={len(self.deferred)} remove={len(self.remove)}>"
        )
