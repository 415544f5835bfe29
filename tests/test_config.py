from config import load_settings


def test_defaults(monkeypatch):
    for name in ("MONGODB_URI", "DB_NAME", "UPLOAD_DIR", "UPLOAD_URL_PREFIX", "DELETE_REPLACED_RECEIPTS", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings(env_file=None)

    assert settings.mongodb_uri == "mongodb://localhost:27017"
    assert settings.db_name == "expense_tracker"
    assert settings.upload_url_prefix == "/uploads"
    assert settings.delete_replaced_receipts is True
    assert settings.cors_origin_list == ["*"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017")
    monkeypatch.setenv("UPLOAD_URL_PREFIX", "receipts/")
    monkeypatch.setenv("DELETE_REPLACED_RECEIPTS", "False")
    monkeypatch.setenv("MAX_UPLOAD_SIZE", "1024")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://app.example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings(env_file=None)

    assert settings.mongodb_uri == "mongodb://db:27017"
    assert settings.upload_url_prefix == "/receipts"
    assert settings.delete_replaced_receipts is False
    assert settings.max_upload_size == 1024
    assert settings.cors_origin_list == ["http://localhost:3000", "https://app.example.com"]
    assert settings.log_level == "DEBUG"


def test_env_file_is_read(tmp_path, monkeypatch):
    monkeypatch.delenv("DB_NAME", raising=False)
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("DB_NAME=from_file\nRATE_LIMIT_ENABLED=true\nUNRELATED_KEY=ignored\n")

    settings = load_settings(env_file=str(env_file))

    assert settings.db_name == "from_file"
    assert settings.rate_limit_enabled is True
