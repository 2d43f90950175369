import pytest

from wordheat.security.auth import create_jwt_token, get_current_user, revoke_token, verify_jwt_token
from wordheat.security.env_validator import validate_required_env_vars
from wordheat.security.validators import (
    sanitize_guess,
    sanitize_player_names,
    sanitize_session_id,
    sanitize_username,
    validate_request_body_size,
)


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "x" * 32)


def test_token_identifies_the_player():
    token = create_jwt_token("alice")
    user = get_current_user({"Authorization": f"Bearer {token}"})
    assert user.username == "alice"


def test_bad_or_missing_tokens_mean_guest():
    assert get_current_user({}) is None
    assert get_current_user({"Authorization": "Bearer nonsense"}) is None


def test_revoked_token_is_rejected():
    token = create_jwt_token("alice")
    payload = verify_jwt_token(token)
    assert revoke_token(payload["jti"])
    assert verify_jwt_token(token) is None


@pytest.mark.parametrize("raw, expected", [
    ("Ocean", "ocean"),
    ("  agua ", "agua"),
    ("océano", "océano"),
    ("two words", None),
    ("abc123", None),
    ("", None),
])
def test_sanitize_guess(raw, expected):
    assert sanitize_guess(raw) == expected


def test_session_ids_are_sixteen_hex_chars():
    assert sanitize_session_id("ABCDEF0123456789") == "abcdef0123456789"
    assert sanitize_session_id("abc") is None


def test_reserved_usernames():
    assert sanitize_username("admin") is None
    assert sanitize_username("alice_99") == "alice_99"


def test_party_names_are_escaped_and_capped():
    names = sanitize_player_names("Ann,<b>,Cy,Di,Ed")
    assert names == ["Ann", "", "Cy", "Di"]


def test_body_size_limit():
    assert validate_request_body_size(2048, 1024)[0] is False
    assert validate_request_body_size(0, 1024) == (True, "")


def _configure(monkeypatch, **overrides):
    values = {
        "OPENAI_API_KEY": "sk-test",
        "UPSTASH_REDIS_REST_URL": "https://example.upstash.io",
        "UPSTASH_REDIS_REST_TOKEN": "token",
        "JWT_SECRET": "x" * 32,
    }
    values.update(overrides)
    for name, value in values.items():
        monkeypatch.setenv(name, value)


def test_complete_environment_passes(monkeypatch):
    _configure(monkeypatch)
    monkeypatch.delenv("WORDHEAT_BLITZ_SECONDS", raising=False)
    assert validate_required_env_vars(strict=True) == (True, [])


def test_short_jwt_secret_is_rejected(monkeypatch, capsys):
    _configure(monkeypatch, JWT_SECRET="short")
    ok, errors = validate_required_env_vars(strict=True)
    assert not ok
    assert errors == ["Invalid value for JWT_SECRET: use at least 32 characters"]
    assert "short" not in capsys.readouterr().out


def test_bad_optional_override_is_only_logged(monkeypatch, capsys):
    _configure(monkeypatch, WORDHEAT_BLITZ_SECONDS="soon")
    assert validate_required_env_vars(strict=True) == (True, [])
    assert "[OPTIONAL]" in capsys.readouterr().out


def test_production_refuses_to_start_without_settings(monkeypatch):
    monkeypatch.setenv("VERCEL_ENV", "production")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        validate_required_env_vars(strict=True)
