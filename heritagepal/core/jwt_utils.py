import time
import uuid
from typing import Any, Dict, Optional

import jwt

from heritagepal.core.config import settings


class JWTManager:
    """Verifies Supabase Auth access tokens (HS256, shared project secret)."""

    algorithm = "HS256"

    def __init__(
        self,
        secret: str,
        audience: Optional[str] = "authenticated",
        token_lifetime_seconds: int = 3600,
    ):
        self.secret = secret
        self.audience = audience
        self.token_lifetime_seconds = token_lifetime_seconds

    def generate_token(self, user_data: Dict[str, Any]) -> str:
        """Sign a token shaped like Supabase's (used by tooling and tests)."""
        now = int(time.time())
        payload: Dict[str, Any] = {
            "sub": str(user_data["sub"]),
            "email": user_data.get("email"),
            "role": "authenticated",
            "iat": now,
            "exp": now + self.token_lifetime_seconds,
        }
        if self.audience:
            payload["aud"] = self.audience
        for key, value in user_data.items():
            if key not in ["sub", "email"] and value is not None:
                payload[key] = value
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a token; raises ``ValueError`` when invalid."""
        if not self.secret:
            raise ValueError("Invalid token: JWT_SECRET is not configured")
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": bool(self.audience), "require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise ValueError(f"Invalid token: {e}")

    def user_id(self, token: str) -> uuid.UUID:
        claims = self.verify_token(token)
        try:
            return uuid.UUID(str(claims["sub"]))
        except ValueError as e:
            raise ValueError(f"Invalid token: bad subject ({e})")


_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_lifetime(value: str) -> int:
    """Seconds from a lifetime like ``"3600"``, ``"45m"`` or ``"24h"``."""
    raw = value.strip().lower()
    unit = _UNIT_SECONDS.get(raw[-1:])
    digits = raw[:-1] if unit else raw
    if not digits.isascii() or not digits.isdigit() or int(digits) == 0:
        raise ValueError(f"Invalid token lifetime: {value!r}")
    return int(digits) * (unit or 1)


def build_jwt_manager() -> JWTManager:
    return JWTManager(
        secret=settings.supabase.jwt_secret,
        audience=settings.supabase.jwt_audience or None,
        token_lifetime_seconds=parse_lifetime(settings.supabase.jwt_expiration),
    )
