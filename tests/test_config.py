import pytest
import yaml

from transitpulse.aggregator import build_aggregator
from transitpulse.config import DEFAULT_CONFIG_PATH, load_settings
from transitpulse.models import AlertItem


def test_bundled_defaults():
    settings = load_settings(environ={})
    assert settings.port == 3000
    assert settings.poll_interval == 20
    assert settings.fetch_timeout == 10
    assert settings.write_timeout == 5
    assert settings.news_alert_policy == "always"
    assert settings.feed_names == ["trenes", "subtes", "transito", "noticias"]
    assert not any(f.configured for f in settings.feeds)


def test_bundled_fallbacks_are_normalized():
    settings = load_settings(environ={})
    trenes = settings.feeds[0]
    assert trenes.fallback == (
        AlertItem("Ramal Sarmiento → Demora 10 min", True),
        AlertItem("Ramal Mitre → Normal", False),
        AlertItem("Ramal Roca → Interrumpido", True),
    )
    assert all(f.fallback for f in settings.feeds)


def test_environment_overrides():
    settings = load_settings(environ={
        "PORT": "8080",
        "POLL_INTERVAL": "5",
        "FETCH_TIMEOUT": "2.5",
        "NEWS_ALERT_POLICY": "keywords",
        "TRENES_API_URL": " https://trenes.example/api ",
        "NEWSAPI_KEY": "secret",
    })
    assert settings.port == 8080
    assert settings.poll_interval == 5.0
    assert settings.fetch_timeout == 2.5
    assert settings.news_alert_policy == "keywords"
    by_name = {f.name: f for f in settings.feeds}
    assert by_name["trenes"].url == "https://trenes.example/api"
    assert by_name["trenes"].configured
    assert by_name["noticias"].api_key == "secret"
    assert by_name["noticias"].configured
    assert not by_name["subtes"].configured


def test_empty_env_value_means_fallback_only():
    settings = load_settings(environ={"SUBTE_SOURCE_URL": ""})
    assert not {f.name: f for f in settings.feeds}["subtes"].configured


@pytest.mark.parametrize("env", [{"PORT": "http"}, {"POLL_INTERVAL": "0"}, {"FETCH_TIMEOUT": "-1"}])
def test_invalid_numbers_rejected(env):
    with pytest.raises(ValueError):
        load_settings(environ=env)


def test_custom_config_file(tmp_path):
    path = tmp_path / "feeds.yaml"
    path.write_text(yaml.safe_dump({
        "port": 9000,
        "feeds": [
            {"name": "lanchas", "type": "json", "url": "https://lanchas.example", "fallback": ["Sin datos"]},
        ],
    }), encoding="utf-8")
    settings = load_settings(path, environ={})
    assert settings.port == 9000
    assert settings.feed_names == ["lanchas"]
    assert settings.feeds[0].url == "https://lanchas.example"
    assert settings.feeds[0].fallback == (AlertItem("Sin datos", False),)


def test_config_without_feeds_rejected(tmp_path):
    path = tmp_path / "feeds.yaml"
    path.write_text("port: 3000\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path, environ={})


def test_feed_without_type_rejected(tmp_path):
    path = tmp_path / "feeds.yaml"
    path.write_text(yaml.safe_dump({"feeds": [{"name": "x"}]}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path, environ={})


def test_no_placeholder_urls():
    cfg = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"))
    for feed in cfg["feeds"]:
        assert "url" not in feed, f"Hard-coded upstream left in {feed['name']}"
        assert feed.get("url_env") or feed.get("key_env")


@pytest.mark.parametrize("var", ["PORT", "POLL_INTERVAL", "FETCH_TIMEOUT", "WRITE_TIMEOUT", "NEWS_ALERT_POLICY"])
@pytest.mark.parametrize("value", ["", "   "])
def test_blank_scalar_env_uses_default(var, value):
    settings = load_settings(environ={var: value})
    assert settings.port == 3000
    assert settings.poll_interval == 20
    assert settings.fetch_timeout == 10
    assert settings.write_timeout == 5
    assert settings.news_alert_policy == "always"
    assert build_aggregator(settings).feed_names == ("trenes", "subtes", "transito", "noticias")
