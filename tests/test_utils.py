from shared.utils import config, generate_otp, sanitize_filename
from shared.validators import (
    is_valid_email,
    is_valid_folder_name,
    is_valid_password,
    is_valid_username,
    normalize_email,
)


def test_config_env_loading() -> None:
    assert config.get("jwt_secret_key") == "test-secret"
    assert config.get("client_address") == "http://client.test"
    assert config.get("tmdb_link").startswith("https://")
    assert isinstance(config.get("allowed_origins"), list)


def test_settings_env_override(monkeypatch) -> None:
    monkeypatch.setenv("APP_FLAG_SYNC_MIN_AGE_HOURS", "12")
    assert config.get_setting("sync.min_age_hours", 24) == 12
    assert config.get_setting("does.not.exist", "fallback") == "fallback"


def test_generate_otp() -> None:
    codes = {generate_otp() for _ in range(50)}
    assert all(len(code) == 4 and code.isdigit() for code in codes)


def test_sanitize_filename() -> None:
    safe = sanitize_filename("bad:file/name?.png")
    assert ":" not in safe and "/" not in safe and "?" not in safe


def test_username_rules() -> None:
    assert is_valid_username("movie.fan_1")
    assert not is_valid_username("ab")
    assert not is_valid_username("a" * 16)
    assert not is_valid_username("has space")
    assert not is_valid_username(None)
    assert not is_valid_username("abc\n")


def test_email_and_password_rules() -> None:
    assert is_valid_email("someone@example.com")
    assert not is_valid_email("someone@example")
    assert not is_valid_email("")
    assert not is_valid_email("someone@example.com\n")
    assert is_valid_password("12345678")
    assert not is_valid_password("1234567")
    assert normalize_email("  Someone@Example.COM ") == "someone@example.com"


def test_folder_name_rules() -> None:
    assert is_valid_folder_name("Horror")
    assert not is_valid_folder_name("Two words")
    assert not is_valid_folder_name("x" * 11)
    assert not is_valid_folder_name("")
