from argparse import Namespace

import pytest

from sitebuild.config import ConfigError, load_config, parse_config_text, resolve_head_content


def test_parse_each_format():
    assert parse_config_text('base_url = "https://example.com"\nminify = false\n', ".toml") == {
        "base_url": "https://example.com",
        "minify": False,
    }
    assert parse_config_text("mode: development\n", ".yaml") == {"mode": "development"}
    assert parse_config_text('{"inline_threshold": 1024}', ".json") == {"inline_threshold": 1024}
    assert parse_config_text("", ".yml") == {}


def test_invalid_config_raises():
    with pytest.raises(ConfigError):
        parse_config_text("base_url = ", ".toml")
    with pytest.raises(ConfigError, match="mapping"):
        parse_config_text("- a\n- b\n", ".yaml")


def test_missing_config_is_empty(tmp_path):
    assert load_config(tmp_path / "site.toml") == {}


def test_broken_config_exits(tmp_path, capsys):
    path = tmp_path / "site.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        load_config(path)

    assert excinfo.value.code == 1
    assert "Invalid config" in capsys.readouterr().err


def test_head_snippet_resolution(tmp_path, capsys):
    (tmp_path / "head.html").write_text("<meta name='a'>", encoding="utf-8")
    config = str(tmp_path / "site.toml")

    inline = Namespace(config=config, head_html=" <link> ", head_file="head.html")
    from_file = Namespace(config=config, head_html="", head_file="head.html")
    missing = Namespace(config=config, head_html="", head_file="nope.html")

    assert resolve_head_content(inline) == "<link>"
    assert resolve_head_content(from_file) == "<meta name='a'>"
    assert resolve_head_content(missing) == ""
    assert "Snippet file not found" in capsys.readouterr().err
