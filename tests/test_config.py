from pathlib import Path

from app.core.config import Settings, get_settings, parse_cors_origins


def test_parse_cors_origins_csv():
    value = "http://localhost:5173, http://localhost:3000"
    assert parse_cors_origins(value) == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_parse_cors_origins_json_list():
    value = '["http://localhost:5173", "https://disputes.example.com"]'
    assert parse_cors_origins(value) == [
        "http://localhost:5173",
        "https://disputes.example.com",
    ]


def test_parse_cors_origins_deduplicates():
    value = "http://localhost:5173,http://localhost:5173"
    assert parse_cors_origins(value) == ["http://localhost:5173"]


def test_parse_cors_origins_bad_json_is_empty():
    assert parse_cors_origins("[not json") == []
    assert parse_cors_origins("") == []


def test_stripe_configured_requires_non_blank_key():
    assert Settings(stripe_secret_key="sk_test_123").stripe_configured
    assert not Settings(stripe_secret_key="   ").stripe_configured
    assert not Settings(stripe_secret_key=None).stripe_configured


def test_storage_dirs_live_under_storage_root():
    settings = Settings(storage_root="/tmp/dispute-store")
    assert settings.uploads_dir == Path("/tmp/dispute-store") / "uploads"
    assert settings.packets_dir == Path("/tmp/dispute-store") / "packets"


def test_settings_read_from_environment(storage_root):
    settings = get_settings()
    assert settings.storage_root == storage_root
    assert settings.rate_limit_enabled is False
    assert settings.max_upload_bytes == 2 * 1024 * 1024
