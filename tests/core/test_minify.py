# tests/core/test_minify.py
from perf_enhancer.services.minify_service import minify_css, minify_js


def test_css_whitespace_and_comments():
    css = """
    /* header */
    .a > .b ,  .c {
        color : red ;
        margin: 0 auto !important;
    }
    """
    assert minify_css(css) == ".a>.b,.c{color :red;margin:0 auto!important}"


def test_css_keeps_strings_and_license_comments():
    css = '/*! keep me */ .q::before { content: "a  /* b */  c"; }'
    assert minify_css(css) == '/*! keep me */ .q::before{content:"a  /* b */  c"}'


def test_css_keeps_descendant_combinator():
    assert minify_css("nav   ul  li a { x: 1 }") == "nav ul li a{x:1}"


def test_css_blank_input_unchanged():
    assert minify_css("  \n ") == "  \n "


def test_js_strips_comments_and_blank_lines():
    js = """
    // leading comment
    var a = 1; // trailing

    /* block */
    function f() {
        return a;
    }
    """
    assert minify_js(js) == "var a = 1;\nfunction f() {\nreturn a;\n}"


def test_js_keeps_urls_in_strings():
    js = 'var u = "https://example.com/x.js"; var v = \'//cdn.example.com\';'
    assert minify_js(js) == js


def test_js_keeps_template_literal_lines():
    js = "var t = `line one\n    line two`;\n    next();"
    assert minify_js(js) == "var t = `line one\n    line two`;\nnext();"


def test_js_keeps_license_comment():
    js = "/*! lib v1 */\nrun();"
    assert minify_js(js) == js


def test_js_already_minified_unchanged():
    assert minify_js("var a=1;") == "var a=1;"


def test_js_keeps_regex_literals():
    js = 'var re = /"/g; var u = "a//b"; go(u);'
    assert minify_js(js) == js

    js = "var r = /[//]/g; go(r);"
    assert minify_js(js) == js


def test_js_regex_literal_after_indentation():
    js = "if (x) {\n    s = s.replace(/\\/\\*x/g, '');\n}"
    assert minify_js(js) == "if (x) {\ns = s.replace(/\\/\\*x/g, '');\n}"


def test_js_division_is_not_a_regex():
    assert minify_js("var half = total / 2; // note") == "var half = total / 2;"
