# tests/core/test_style_service.py
import pytest

from perf_enhancer.model import HostFeatures, PatternSets
from perf_enhancer.services.style_service import StyleService

CLASSIC = '<link rel="stylesheet" href="/wp-includes/css/classic-themes.min.css">'
WC_BLOCKS = '<link rel="stylesheet" href="/plugins/woocommerce/wc-blocks.css">'
WPRM = '<link rel="stylesheet" href="/plugins/wp-recipes-maker/public.css">'
THEME = '<link rel="stylesheet" type="text/css" href="/theme/style.css">'


def ids(nodes):
    return [n["href"] for n in nodes]


def test_baseline_removal(page, parse_doc, state):
    service = StyleService(PatternSets(), HostFeatures())
    doc = parse_doc(page(head=CLASSIC + THEME))

    service.handle_styles(doc, state)

    assert ids(state.remove) == ["/wp-includes/css/classic-themes.min.css"]
    assert state.styles == []


def test_redundant_type_dropped(page, parse_doc, state):
    service = StyleService(PatternSets(), HostFeatures())
    doc = parse_doc(page(head=THEME))

    service.handle_styles(doc, state)
    assert "type" not in doc.head.find("link", href="/theme/style.css").attrs


def test_footer_relocation(page, parse_doc, state):
    service = StyleService(PatternSets(styles_to_footer=["/theme/"]), HostFeatures())
    doc = parse_doc(page(head=THEME))

    service.handle_styles(doc, state)
    assert ids(state.styles) == ["/theme/style.css"]


def test_removal_wins_over_footer(page, parse_doc, state):
    service = StyleService(PatternSets(styles_to_footer=["classic"]), HostFeatures())
    doc = parse_doc(page(head=CLASSIC))

    service.handle_styles(doc, state)
    assert state.styles == []
    assert len(state.remove) == 1


@pytest.mark.parametrize("body, removed", [
    ("<p>No blocks here</p>", True),
    ('<div data-block-name="woocommerce/cart"></div>', False),
])
def test_woocommerce_blocks(page, parse_doc, state, body, removed):
    service = StyleService(PatternSets(), HostFeatures(woocommerce=True))
    doc = parse_doc(page(head=WC_BLOCKS, body=body))

    service.handle_styles(doc, state)
    assert ("/plugins/woocommerce/wc-blocks.css" in ids(state.remove)) is removed


def test_woocommerce_inactive_keeps_styles(page, parse_doc, state):
    service = StyleService(PatternSets(), HostFeatures(woocommerce=False))
    doc = parse_doc(page(head=WC_BLOCKS))

    service.handle_styles(doc, state)
    assert state.remove == []


@pytest.mark.parametrize("body, removed", [
    ("<p>Just a post</p>", True),
    ('<div class="wprm-recipe-container"></div>', False),
])
def test_recipe_maker(page, parse_doc, state, body, removed):
    service = StyleService(PatternSets(), HostFeatures(recipe_maker=True))
    doc = parse_doc(page(head=WPRM, body=body))

    service.handle_styles(doc, state)
    assert ("/plugins/wp-recipes-maker/public.css" in ids(state.remove)) is removed


def test_inline_styles_minified(page, parse_doc):
    doc = parse_doc(page(head="<style>\n  body {  margin : 0 ; }\n</style><style>   </style>"))

    assert StyleService.handle_inline_styles(doc) == 1
    first, second = doc.head.find_all("style")
    assert first.string == "body{margin :0}"
    assert second.string == "   "
