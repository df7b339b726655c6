import json

from config import apply_env_overrides, get_default_settings, load_settings, resolve_config_path, save_settings
from secrets_policy import redact_secrets, scrub_secrets


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.json")
    assert settings == get_default_settings()
    assert settings["max_messages"] == 20


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "server_config.json"
    path.write_text(json.dumps({"port": 8080, "max_messages": 50}), encoding="utf-8")

    settings = load_settings(path)
    assert settings["port"] == 8080
    assert settings["max_messages"] == 50
    assert settings["document_root"] == "www"


def test_corrupt_file_is_backed_up(tmp_path):
    path = tmp_path / "server_config.json"
    path.write_text("{not json", encoding="utf-8")

    settings = load_settings(path)

    assert settings == get_default_settings()
    assert not path.exists()
    backups = list(tmp_path.glob("server_config.json.bad-*"))
    assert len(backups) == 1


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "7000")
    monkeypatch.setenv("WEATHER_API_KEY", "owm-secret")
    monkeypatch.setenv("NORDCHAT_CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("NORDCHAT_EXIT_ON_ERROR", "no")
    monkeypatch.setenv("NORDCHAT_LOG_LEVEL", "debug")
    monkeypatch.setenv("NORDCHAT_PROXY_HOPS", "2")
    monkeypatch.delenv("NORDCHAT_PORT", raising=False)

    settings = get_default_settings()
    apply_env_overrides(settings)

    assert settings["port"] == 7000
    assert settings["weather_api_key"] == "owm-secret"
    assert settings["cors_allowed_origins"] == ["https://a.example", "https://b.example"]
    assert settings["exit_on_unhandled_error"] is False
    assert settings["log_level"] == "DEBUG"
    assert settings["proxy_hops"] == 2


def test_config_path_from_env(monkeypatch):
    monkeypatch.setenv("NORDCHAT_CONFIG", "/etc/nordchat.json")
    assert str(resolve_config_path()) == "/etc/nordchat.json"
    assert str(resolve_config_path("local.json")) == "local.json"


def test_secrets_never_written_or_logged(tmp_path):
    settings = get_default_settings()
    settings["weather_api_key"] = "owm-secret"

    path = tmp_path / "out.json"
    save_settings(path, settings)
    assert "owm-secret" not in path.read_text(encoding="utf-8")

    assert "weather_api_key" not in scrub_secrets(settings)
    assert redact_secrets(settings)["weather_api_key"] == "***"
