"""Tests for settings and the persisted sheet connection."""
from contacts2sheet.config import Settings, SettingsStore, SheetSettings


def test_store_round_trip(tmp_path):
    store = SettingsStore(tmp_path / "home")
    assert store.load() == SheetSettings()

    store.save(SheetSettings(webhook_url="https://example.com/hook"))
    loaded = SettingsStore(tmp_path / "home").load()
    assert loaded.webhook_url == "https://example.com/hook"
    assert loaded.sheet_view_url == ""
    assert loaded.is_connected


def test_corrupt_file_loads_defaults(tmp_path):
    (tmp_path / "settings.json").write_text("{oops", encoding="utf-8")
    assert SettingsStore(tmp_path).load() == SheetSettings()


def test_not_connected_without_webhook():
    assert not SheetSettings(sheet_view_url="https://docs.google.com/x").is_connected


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_API_KEY", "key-123")
    monkeypatch.setenv("CONTACTS2SHEET_HOME", str(tmp_path))
    monkeypatch.setenv("CONFIRM_DELAY", "0")
    settings = Settings(_env_file=None)
    assert settings.gemini_api_key == "key-123"
    assert settings.home == tmp_path
    assert settings.confirm_delay == 0
    assert settings.gemini_model == "gemini-3-flash-preview"
