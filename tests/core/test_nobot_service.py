# tests/core/test_nobot_service.py
import json
import re

import pytest

from conftest import reparse
from perf_enhancer.core.context.pipeline_context import PipelineState
from perf_enhancer.dom.core import ClassificationResult
from perf_enhancer.model import PatternSets
from perf_enhancer.services.nobot_service import NobotService, js_string


@pytest.fixture
def service():
    return NobotService(PatternSets(), anchor_id="nobots")


def test_classify(service):
    assert service.classify("https://connect.facebook.net/en_US/fbevents.js", "") is ClassificationResult.DEFER
    assert service.classify("", "(adsbygoogle = window.adsbygoogle || []).push({}); // googlesyndication") \
        is ClassificationResult.DEFER
    assert service.classify("/js/app.js", "run();") is ClassificationResult.KEEP


def test_pass_through_returns_node(service, page, parse_doc, state):
    doc = parse_doc(page(body='<script src="/js/app.js"></script>'))
    node = doc.body.find("script")

    assert service.handle(node, "/js/app.js", "", state) is node
    assert state.inject == ""
    assert state.deferred == []


def test_external_script_reconstruction(service, page, parse_doc, state):
    src = "https://static.hotjar.com/c/hotjar-1.js?sv=6"
    doc = parse_doc(page(body=f'<script src="{src}" data-cfasync="false"></script>'))
    node = doc.body.find("script")

    assert service.handle(node, src, "", state) is None
    assert state.deferred == [node]
    assert "var nobot1 = document.createElement( 'script' );" in state.inject
    assert f'nobot1.setAttribute( "src", {json.dumps(src)} );' in state.inject
    assert 'nobot1.setAttribute( "data-cfasync", "false" );' in state.inject
    assert "innerHTML" not in state.inject
    assert state.inject.rstrip().endswith("nobots.parentNode.insertBefore( nobot1, nobots );")


def test_inline_text_round_trips_through_json(service, page, parse_doc, state):
    text = 'var s = "</script>"; loadAds("https://pagead2.googlesyndication.com/x");'
    doc = parse_doc(page(body="<script>placeholder</script>"))
    node = doc.body.find("script")

    service.handle(node, "", text, state)

    match = re.search(r"^nobot1\.innerHTML = (.*);$", state.inject, re.M)
    assert match
    assert "</script>" not in match.group(1)
    assert json.loads(match.group(1)) == text


def test_counter_is_per_state(service, page, parse_doc, state):
    doc = parse_doc(page(body='<script src="https://a.hotjar.com/1.js"></script><script src="https://b.hotjar.com/2.js"></script>'))
    first, second = doc.body.find_all("script")

    service.handle(first, first["src"], "", state)
    service.handle(second, second["src"], "", state)
    assert "var nobot1 " in state.inject
    assert "var nobot2 " in state.inject

    fresh = PipelineState()
    service.handle(first, first["src"], "", fresh)
    assert "var nobot1 " in fresh.inject


def test_wrapper(service, page, parse_doc, state):
    doc = parse_doc(page(body='<script src="https://a.hotjar.com/1.js"></script>'))
    node = doc.body.find("script")

    assert service.build_wrapper(doc.soup, state) is None

    service.handle(node, node["src"], "", state)
    wrapper = service.build_wrapper(doc.soup, state)

    assert wrapper.name == "script"
    assert wrapper["id"] == "nobots"
    code = wrapper.string
    assert "window.isBot" in code
    assert "Googlebot" in code and "GTmetrix" in code
    assert "new RegExp( agents, 'i' )" in code
    assert "document.getElementById( \"nobots\" )" in code
    assert state.inject in code


def test_js_string_escapes_closing_tags():
    assert js_string("a</script>b") == '"a<\\/script>b"'
    assert json.loads(js_string("a</script>b")) == "a</script>b"


def test_js_string_escapes_comment_openers():
    payload = 'document.write("<!--<script>x()</script>-->");'
    encoded = js_string(payload)

    assert "<!--" not in encoded
    assert "</" not in encoded
    assert json.loads(encoded) == payload


def test_wrapper_survives_comment_opener(service, page, parse_doc, state):
    text = 'loadAds("https://securepubads.g.doubleclick.net/tag/js/gpt.js"); document.write("<!--<script>x()</script>");'
    doc = parse_doc(page(body="<script>placeholder</script><p id=\"after\">rest</p>"))
    node = doc.body.find("script")

    service.handle(node, "", text, state)
    wrapper = service.build_wrapper(doc.soup, state)
    doc.body.find(id="after").insert_before(wrapper)
    assert "<!--" not in wrapper.string

    reparsed = reparse(doc.soup.decode(formatter="minimal"))
    assert reparsed.find(id="nobots").name == "script"
    assert reparsed.find(id="after").string == "rest"
