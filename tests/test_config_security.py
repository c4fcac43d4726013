import pytest

from skyfall_backend.config import load_config, parse_price_bonus_map, safe_int_env


def test_load_config_requires_secret_key_in_non_dev(monkeypatch):
    monkeypatch.setenv("RENDER", "true")
    monkeypatch.delenv("FLASK_ENV", raising=False)
    monkeypatch.delenv("SENTRY_ENVIRONMENT", raising=False)
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("FLASK_SECRET_KEY", raising=False)

    with pytest.raises(RuntimeError):
        load_config()


def test_load_config_allows_missing_secret_in_dev(monkeypatch):
    monkeypatch.delenv("RENDER", raising=False)
    monkeypatch.setenv("FLASK_ENV", "development")
    monkeypatch.delenv("FLASK_SECRET_KEY", raising=False)

    cfg = load_config()
    assert cfg.flask_secret_key == ""


def test_checkout_urls_follow_public_base_url(monkeypatch):
    monkeypatch.setenv("FLASK_ENV", "development")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://staging.topseat.us/")
    monkeypatch.delenv("CHECKOUT_SUCCESS_URL", raising=False)
    monkeypatch.delenv("CHECKOUT_CANCEL_URL", raising=False)

    cfg = load_config()

    assert cfg.public_base_url == "https://staging.topseat.us"
    assert cfg.checkout_success_url == "https://staging.topseat.us/success.html"
    assert cfg.checkout_cancel_url == "https://staging.topseat.us/cancel.html"


def test_safe_int_env_clamps_and_falls_back(monkeypatch):
    monkeypatch.setenv("SIGNUP_MAX_PER_HOUR", "not-a-number")
    assert safe_int_env("SIGNUP_MAX_PER_HOUR", 3, minimum=1, maximum=1000) == 3

    monkeypatch.setenv("SIGNUP_MAX_PER_HOUR", "99999")
    assert safe_int_env("SIGNUP_MAX_PER_HOUR", 3, minimum=1, maximum=1000) == 1000


def test_parse_price_bonus_map_skips_bad_pairs():
    assert parse_price_bonus_map("price_a:10, price_b:x, :5, price_c:0,price_d:25") == {"price_a": 10, "price_d": 25}


def test_create_app_attaches_extension_state(monkeypatch):
    monkeypatch.setenv("FLASK_ENV", "development")
    monkeypatch.delenv("SENTRY_DSN_BACKEND", raising=False)

    from skyfall_backend import create_app

    app = create_app()

    state = app.extensions["skyfall_backend"]
    assert state["factory_initialized"] is True
    assert state["sentry_enabled"] is False
