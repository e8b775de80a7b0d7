import pytest

from src.shared.config import Settings, get_settings


def test_test_environment_settings():
    s = get_settings()
    assert s.environment == "test"
    assert s.is_dev and not s.is_prod
    assert s.is_sqlite
    assert s.redis_url is None
    assert s.upcoming_window_days == 30
    assert s.safe_dict()["secret_key"] != s.secret_key


def test_secret_key_is_required():
    with pytest.raises(ValueError):
        Settings(secret_key="")


def test_database_driver_is_validated():
    with pytest.raises(ValueError):
        Settings(secret_key="k", database_url="postgresql://localhost/vet")


def test_short_secret_rejected_in_prod():
    with pytest.raises(ValueError):
        Settings(secret_key="short", environment="prod")


def test_event_publish_timeout_must_be_positive():
    with pytest.raises(ValueError):
        Settings(secret_key="k", event_publish_timeout_seconds=0)
