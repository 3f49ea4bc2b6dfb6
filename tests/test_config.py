"""Tests for settings loading."""
from __future__ import annotations

import pytest

from jobnado import config
from jobnado.config import ConfigError, load_settings, require


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_key, _ in config._KEYS.values():
        monkeypatch.delenv(env_key, raising=False)


def test_defaults_without_file(tmp_path):
    s = load_settings(tmp_path / "missing.yaml")
    assert s.analysis_model == config.DEFAULT_MODEL
    assert s.search_retry_strategy == "backoff"
    assert s.alert_store == "csv"
    assert s.smtp_port == 587


def test_yaml_values_and_env_override(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "default_country: Canada\nsearch_retry_strategy: fast\nsmtp_port: 465\nalert_store: supabase\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("DEFAULT_COUNTRY", "Spain")
    s = load_settings(path)
    assert s.default_country == "Spain"
    assert s.search_retry_strategy == "fast"
    assert s.smtp_port == 465
    assert s.alert_store == "supabase"


def test_invalid_values_fall_back(tmp_path, monkeypatch):
    monkeypatch.setenv("SMTP_PORT", "not-a-port")
    monkeypatch.setenv("SEARCH_RETRY_STRATEGY", "turbo")
    s = load_settings(tmp_path / "missing.yaml")
    assert s.smtp_port == 587
    assert s.search_retry_strategy == "backoff"


def test_non_mapping_yaml_ignored(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    assert load_settings(path).default_country == "United States"


def test_require():
    assert require("abc", "GEMINI_API_KEY") == "abc"
    with pytest.raises(ConfigError, match="GEMINI_API_KEY"):
        require("", "GEMINI_API_KEY")
