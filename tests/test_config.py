import pytest

from core.env import SupabaseEnv, load_config, merge_config
from core.factory import FeedServiceFactory
from core.feeds import COMMODITIES, FEEDS, get_feed


def test_settings_yaml_is_loaded():
    config = load_config()

    assert config["retention"]["days_to_keep"] == 15
    assert set(config["feeds"]) == set(FEEDS)
    assert config["feeds"]["commodities"]["cron"] == "*/5 * * * *"


def test_dev_yaml_overrides_nested_keys(tmp_path):
    configs = tmp_path / "configs"
    configs.mkdir()
    (configs / "settings.yaml").write_text("http:\n  timeout_seconds: 20\nretention:\n  days_to_keep: 15\n  cron: '0 1 * * *'\n")
    (configs / "dev.yaml").write_text("retention:\n  days_to_keep: 3\n")

    config = load_config(str(tmp_path))

    assert config["retention"] == {"days_to_keep": 3, "cron": "0 1 * * *"}
    assert config["http"]["timeout_seconds"] == 20


def test_missing_settings_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path))


def test_merge_config_keeps_base_untouched():
    base = {"a": {"b": 1, "c": 2}}
    merged = merge_config(base, {"a": {"b": 9}})

    assert merged == {"a": {"b": 9, "c": 2}}
    assert base == {"a": {"b": 1, "c": 2}}


def test_supabase_env_flags(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon")
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)

    env = SupabaseEnv()

    assert env.can_read is True
    assert env.can_write is False


def test_feed_lookup_by_key_or_slug():
    assert get_feed("us-indices") is get_feed("us_indices")
    with pytest.raises(KeyError):
        get_feed("crypto")


def test_configure_feed_overrides_cadence():
    feed = FeedServiceFactory.configure_feed(COMMODITIES, {"cron": "*/10 * * * *", "enabled": True})

    assert feed.cron == "*/10 * * * *"
    assert feed.timezone == COMMODITIES.timezone
    assert FeedServiceFactory.configure_feed(COMMODITIES, {}) is COMMODITIES


def test_disabled_feed_is_not_scheduled(admin_db, public_db):
    config = {"feeds": {"currencies": {"enabled": False}}}

    runtime = FeedServiceFactory.build(config, admin_db, public_db)

    assert "currencies" not in runtime.services
    assert len(runtime.retention.persisters) == 4
    assert set(runtime.scheduler.jobs) == {"US Indices", "Brazil Indices", "Commodities", "Data Cleanup"}
