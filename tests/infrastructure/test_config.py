"""Configuration — nested sections, JSON config file, section+key lookup."""

import json

from forum.config import HttpsSettings, PostgresqlSettings, Settings, config_value


def test_defaults():
    settings = Settings()
    assert settings.https.address == ":8080"
    assert settings.https.certificate == ""
    assert settings.bcrypt_rounds == 4  # from tests/conftest.py environment


def test_config_json_file_is_read(tmp_path, monkeypatch):
    (tmp_path / "config.json").write_text(json.dumps({
        "https": {"address": ":8443", "captcha": True},
        "postgresql": {"host": "db.internal", "database": "gorum"},
    }))
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("HTTPS__CAPTCHA", raising=False)
    settings = Settings()
    assert settings.https.address == ":8443"
    assert settings.https.captcha is True
    assert settings.postgresql.host == "db.internal"


def test_environment_overrides_file(tmp_path, monkeypatch):
    (tmp_path / "config.json").write_text(json.dumps({"https": {"address": ":8443"}}))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HTTPS__ADDRESS", ":9999")
    assert Settings().https.address == ":9999"


def test_config_value_lookup():
    settings = Settings(https=HttpsSettings(address=":1", captcha=True))
    assert config_value("https", "address", settings) == ":1"
    assert config_value("https", "captcha", settings) == "true"
    assert config_value("https", "missing", settings) == ""
    assert config_value("nosection", "address", settings) == ""
    assert config_value("postgresql", "port", settings) == "5432"


def test_postgresql_url_assembly():
    url = PostgresqlSettings(
        host="db", port=5433, database="forum", username="u", password="p@ss", ssl="require",
    ).url()
    assert url.startswith("postgresql+asyncpg://u:")
    assert "@db:5433/forum" in url
    assert "ssl=require" in url


def test_database_url_override_wins():
    settings = Settings(database_url="sqlite+aiosqlite:///x.db")
    assert settings.resolved_database_url == "sqlite+aiosqlite:///x.db"
