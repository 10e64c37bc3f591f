"""Tests for configuration loading."""

import json

import pytest

from newsdigest.config import (
    CONFIG_ENV_VAR,
    Config,
    ConfigModel,
    FeedSource,
    default_config_path,
    load_config,
    save_config,
)

CONFIG_YAML = """
output_dir: /tmp/digest
newsletter:
  title: Morning Brief
  description: What happened overnight
  author: Ops
  max_items_per_feed: 5
  max_total_items: 20
  retention_days: 14
fetch:
  timeout: 10
  request_delay: 1.5
feeds:
  - name: Example
    url: https://example.com/feed.xml
    category: Technology
  - name: Paused
    url: https://paused.example/rss
    category: Science
    enabled: false
"""


def test_load_yaml_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)

    config = load_config(path)

    assert config.newsletter.title == "Morning Brief"
    assert config.newsletter.max_items_per_feed == 5
    assert config.newsletter.retention_days == 14
    assert config.fetch.request_delay == 1.5
    assert config.fetch.max_concurrent == 1
    assert [f.name for f in config.feeds] == ["Example", "Paused"]
    assert [f.name for f in config.enabled_feeds] == ["Example"]


def test_load_camel_case_json_config(tmp_path):
    path = tmp_path / "feeds.config.json"
    path.write_text(json.dumps({
        "newsletter": {
            "title": "Tech Digest",
            "description": "d",
            "author": "a",
            "maxItemsPerFeed": 3,
            "maxTotalItems": 9,
            "retentionDays": 7,
        },
        "feeds": [
            {"name": "HN", "url": "https://hnrss.org/frontpage", "category": "Tech News", "enabled": True},
        ],
        "categories": ["Tech News"],
    }))

    config = load_config(path)

    assert config.newsletter.max_items_per_feed == 3
    assert config.newsletter.max_total_items == 9
    assert config.newsletter.retention_days == 7
    assert config.categories == ["Tech News"]


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("newsletter: [unclosed")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(path)


def test_negative_cap_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("newsletter:\n  max_total_items: -1\n")

    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(path)


def test_feed_without_url_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("feeds:\n  - name: Broken\n")

    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(path)


def test_non_mapping_document_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_config(path)


def test_zero_caps_are_valid(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("newsletter:\n  max_items_per_feed: 0\n  max_total_items: 0\n")

    config = load_config(path)

    assert config.newsletter.max_items_per_feed == 0


def test_save_and_reload_round_trip(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    model = ConfigModel(feeds=[FeedSource(name="X", url="https://x.example/rss", category="Gaming")])

    save_config(model, path)

    assert load_config(path) == model


def test_config_manager_paths(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "custom.yaml"))
    assert default_config_path() == tmp_path / "custom.yaml"

    model = ConfigModel(output_dir=str(tmp_path / "out"))
    config = Config.from_model(model)

    assert config.config_path == tmp_path / "custom.yaml"
    assert config.output_dir == tmp_path / "out"
    assert config.output_dir.is_dir()


def test_db_password_from_environment(monkeypatch):
    monkeypatch.setenv("DIGEST_PW", "s3cret")
    model = ConfigModel(postgres={"password_env": "DIGEST_PW"})

    db_config = Config.from_model(model).get_db_config()

    assert db_config["password"] == "s3cret"
