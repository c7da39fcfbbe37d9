import pytest
from pydantic import ValidationError

from config.settings import ServiceConfig


def test_from_env(monkeypatch):
    monkeypatch.setenv("NOTION_API_KEY", "secret_abc")
    monkeypatch.setenv("NOTION_DATABASE_FAQ_ID", "faq-db")
    monkeypatch.delenv("NOTION_DATABASE_TEMPLATES_ID", raising=False)
    monkeypatch.delenv("NOTION_DATABASE_KNOWLEDGE_ID", raising=False)
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("FRONTEND_URL", "https://whisper-tree.example")
    monkeypatch.setenv("LOG_JSON", "true")

    config = ServiceConfig.from_env()

    assert config.notion_configured is True
    assert config.database_ids == {"faq": "faq-db", "template": "", "knowledge": ""}
    assert config.port == 4000
    assert config.frontend_url == "https://whisper-tree.example"
    assert config.log_json is True


def test_defaults_refresh_before_expiry():
    config = ServiceConfig()
    assert config.refresh_interval == 240
    assert config.cache_duration == 300
    assert config.notion_configured is False


def test_refresh_interval_must_be_shorter_than_cache_duration():
    with pytest.raises(ValidationError):
        ServiceConfig(cache_duration=60, refresh_interval=60)
