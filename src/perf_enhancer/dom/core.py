# src/perf_enhancer/dom/core.py
"""
Node level helpers shared by every transform service.

Nodes are BeautifulSoup objects: `Tag` for elements, `NavigableString` for
text and `Comment` for comments. A `Fragment` is an ordered list of nodes that
are not attached to the document yet.
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import Script, Stylesheet

logger = logging.getLogger(__name__)


class Zone(str, Enum):
    """Region of the document a node was found in."""
    HEAD = "head"
    BODY = "body"


class ClassificationResult(str, Enum):
    """Outcome of classifying a single node. Never stored on the node."""
    KEEP = "keep"
    RELOCATE = "relocate"
    DEFER = "defer"
    REMOVE = "remove"


class Fragment(list):
    """An ordered forest of nodes waiting to be inserted into the document."""

    @classmethod
    def from_markup(cls, markup: str) -> "Fragment":
        """Parses a markup snippet into detached nodes."""
        if not markup or not markup.strip():
            return cls()
        snippet = BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)
        return cls(node.extract() for node in list(snippet.contents))


Insertable = Union[PageElement, Fragment]


def get_attr(tag: Tag, name: str) -> str:
    """Returns an attribute as a string; missing or malformed values become ''."""
    if not isinstance(tag, Tag):
        return ""
    value = tag.attrs.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def has_class(tag: Tag, class_name: str) -> bool:
    """True if `class_name` is one of the whitespace separated classes of the tag."""
    if not class_name:
        return False
    return class_name in get_attr(tag, "class").split()


def inner_text(tag: Tag) -> str:
    """Trimmed text content of a node."""
    if not isinstance(tag, Tag):
        return ""
    return tag.get_text().strip()


def set_inner_text(tag: Tag, text: str) -> None:
    """
    Replaces the content of a node with a single string. Script and style
    bodies use their own string classes so the serializer leaves them raw.
    """
    tag.clear()
    if tag.name == "script":
        tag.append(Script(text))
    elif tag.name == "style":
        tag.append(Stylesheet(text))
    else:
        tag.append(NavigableString(text))


def parent_name(node: PageElement) -> str:
    parent = getattr(node, "parent", None)
    return parent.name if isinstance(parent, Tag) and parent.name else ""


def is_attached(node: PageElement) -> bool:
    return getattr(node, "parent", None) is not None


def insert_after(node: Insertable, anchor: Tag) -> None:
    """
    Moves `node` (or every node of a Fragment, in order) to directly after
    `anchor`. Nodes are detached from their current parent first.
    """
    if anchor is None or anchor.parent is None:
        raise ValueError("Anchor element is not attached to a document.")

    nodes = list(node) if isinstance(node, Fragment) else [node]
    previous = anchor
    for item in nodes:
        if item is anchor:
            continue
        if is_attached(item):
            item.extract()
        previous.insert_after(item)
        previous = item


def detach(node: PageElement) -> bool:
    """Removes a node from its parent. Returns False if it was already detached."""
    if not is_attached(node):
        return False
    node.extract()
    return True


def document_positions(root: Tag) -> Dict[int, int]:
    """Maps id(tag) to its position in document order."""
    return {id(tag): index for index, tag in enumerate(root.find_all(True))}


def unique_in_order(tags: Iterable[Tag], positions: Optional[Dict[int, int]] = None) -> List[Tag]:
    """De-duplicates tags by identity and sorts them in document order when positions are given."""
    seen = set()
    out: List[Tag] = []
    for tag in tags:
        if id(tag) in seen:
            continue
        seen.add(id(tag))
        out.append(tag)
    if positions is not None:
        out.sort(key=lambda t: positions.get(id(t), len(positions)))
    return out
