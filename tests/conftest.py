# tests/conftest.py
import pytest
from bs4 import BeautifulSoup

from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.dom.builder import DOMBuilder


def build_page(head: str = "", body: str = "", anchor: bool = True) -> str:
    """Wraps head/body snippets in a full document, optionally with the #top anchor."""
    top = '<div id="top"></div>' if anchor else ""
    return (
        "<!DOCTYPE html>\n"
        "<html><head>"
        '<meta charset="utf-8"><title>Test page</title>'
        f"{head}"
        "</head><body>"
        f"{top}{body}"
        "</body></html>"
    )


def reparse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser", multi_valued_attributes=None)


@pytest.fixture
def page():
    """Factory fixture for full test documents."""
    return build_page


@pytest.fixture
def parse_doc():
    """Parses markup into an HTMLDocument."""
    builder = DOMBuilder()
    return builder.parse_doc


@pytest.fixture
def state():
    return PipelineState()
