from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from heritagepal.apis.schemas import AccountRead


class AdminLoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminLoginResponse(AccountRead):
    token: str
