import jwt
import pytest

from heritagepal.core.config import settings
from heritagepal.core.jwt_utils import build_jwt_manager, parse_lifetime


@pytest.mark.parametrize(
    "value,seconds",
    [("3600", 3600), ("45m", 2700), ("24h", 86400), (" 7D ", 604800), ("30s", 30)],
)
def test_parse_lifetime(value, seconds):
    assert parse_lifetime(value) == seconds


@pytest.mark.parametrize("value", ["", "h", "0", "-5m", "1.5h", "24w", "²h"])
def test_parse_lifetime_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_lifetime(value)


def test_manager_uses_configured_expiration(monkeypatch):
    monkeypatch.setattr(settings.supabase, "jwt_secret", "test-secret")
    monkeypatch.setattr(settings.supabase, "jwt_expiration", "2h")

    manager = build_jwt_manager()
    assert manager.token_lifetime_seconds == 7200

    token = manager.generate_token({"sub": "6f1c2e0a-1b7e-4e7b-9a53-1c2d3e4f5a6b"})
    claims = jwt.decode(token, options={"verify_signature": False})
    assert claims["exp"] - claims["iat"] == 7200
    assert manager.verify_token(token)["sub"] == "6f1c2e0a-1b7e-4e7b-9a53-1c2d3e4f5a6b"
