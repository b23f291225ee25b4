# tests/core/test_cli.py
import pytest

from conftest import build_page
from perf_enhancer.app import main
from perf_enhancer.core.managers.config_manager import config_manager
from perf_enhancer.handlers.enhance_handler import handle_batch, handle_enhance

PAGE = build_page(
    head='<script src="/js/app.js"></script>',
    body='<main><img src="a.jpg"><img src="b.jpg"></main>',
)


@pytest.fixture(autouse=True)
def restore_config():
    """Handlers may load another settings file; always return to the shipped one."""
    yield
    config_manager.reset()


def test_enhance_file_to_stdout(tmp_path, capsys):
    source = tmp_path / "page.html"
    source.write_text(PAGE, encoding="utf-8")

    assert handle_enhance([str(source), "--headers", "--homepage"]) == 0
    captured = capsys.readouterr()

    assert 'loading="lazy"' in captured.out
    assert "Cache-Control: public, max-age=60," in captured.err


def test_enhance_stdin_to_file(tmp_path, capsys):
    target = tmp_path / "out.html"

    assert handle_enhance(["-", "-o", str(target)], _stdin=PAGE) == 0
    assert capsys.readouterr().out == ""
    assert '<div id="top"></div><script src="/js/app.js">' in target.read_text(encoding="utf-8")


def test_enhance_with_settings_file(tmp_path, capsys):
    settings = tmp_path / "settings.json"
    settings.write_text('{"enhancer": {"lazy_images": false, "cache_headers": false}}', encoding="utf-8")

    assert handle_enhance(["-", "--settings", str(settings), "--headers"], _stdin=PAGE) == 0
    captured = capsys.readouterr()

    assert "loading" not in captured.out
    assert "Cache-Control" not in captured.err


def test_enhance_errors(tmp_path, capsys):
    assert handle_enhance([str(tmp_path / "missing.html")]) == 1
    assert handle_enhance(["-", "--settings", str(tmp_path / "missing.json")], _stdin=PAGE) == 1
    assert handle_enhance([]) == 1


def test_batch(tmp_path, capsys):
    source = tmp_path / "site"
    (source / "blog").mkdir(parents=True)
    (source / "index.html").write_text(PAGE, encoding="utf-8")
    (source / "blog" / "post.html").write_text(PAGE, encoding="utf-8")
    (source / "feed.html").write_text('<?xml version="1.0"?><rss></rss>', encoding="utf-8")
    output = tmp_path / "out"

    assert handle_batch([str(source), str(output)]) == 0
    captured = capsys.readouterr()

    assert "Processed 3 file(s): 2 changed, 0 failed." in captured.out
    assert 'loading="lazy"' in (output / "blog" / "post.html").read_text(encoding="utf-8")
    assert (output / "feed.html").read_text(encoding="utf-8") == '<?xml version="1.0"?><rss></rss>'


def test_batch_missing_dir(tmp_path, capsys):
    assert handle_batch([str(tmp_path / "nope"), str(tmp_path / "out")]) == 1
    assert "is not a directory" in capsys.readouterr().err


def test_main_dispatch(capsys):
    assert main(["--help"]) == 0
    assert "Usage: perf-enhancer" in capsys.readouterr().out

    assert main([]) == 1
    assert main(["frobnicate"]) == 1
    assert "Unknown command" in capsys.readouterr().out

    assert main(["config", "get", "enhancer.ttl_homepage"]) == 0
    assert capsys.readouterr().out.strip() == "60"
