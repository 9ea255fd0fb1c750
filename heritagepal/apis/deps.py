from __future__ import annotations

import re
from typing import Annotated, Optional, Union

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritagepal.core.db.base import get_session
from heritagepal.core.db.schemas.users import Admin, User
from heritagepal.core.db_services import UserService
from heritagepal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)
from heritagepal.core.jwt_utils import JWTManager
from heritagepal.core.logging import get_logger
from heritagepal.core.supabase_auth import SupabaseAuthClient
from heritagepal.core.upload_manager import UploadFileManager
from heritagepal.modules.generation.service import TextGenerator


logger = get_logger(__name__)

Account = Union[Admin, User]


def get_generator(request: Request) -> TextGenerator:
    return request.app.state.generator


def get_auth_client(request: Request) -> SupabaseAuthClient:
    return request.app.state.auth_client


def get_jwt_manager(request: Request) -> JWTManager:
    return request.app.state.jwt_manager


def get_upload_manager(request: Request) -> UploadFileManager:
    return request.app.state.upload_manager


def get_session_maker(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_maker


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        return token or None
    return None


async def _resolve(token: str, jwt_manager: JWTManager, session: AsyncSession) -> Account:
    try:
        user_id = jwt_manager.user_id(token)
    except ValueError as e:
        raise AuthenticationError(f"Authentication failed: {e}") from e
    account = await UserService(session).find_account(user_id)
    if account is None:
        logger.warning("Token subject %s has no admin or user record", user_id)
        raise AuthenticationError("User record not found in database")
    return account


async def current_user(
    authorization: Optional[str] = Header(default=None),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    session: AsyncSession = Depends(get_session),
) -> Account:
    """Resolve the admin or user behind the bearer token (admins first)."""
    token = _bearer(authorization)
    if not token:
        raise AuthenticationError("Not authorized, no token provided")
    return await _resolve(token, jwt_manager, session)


async def optional_user(
    authorization: Optional[str] = Header(default=None),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    session: AsyncSession = Depends(get_session),
) -> Optional[Account]:
    """Like ``current_user`` but anonymous (or unverifiable) callers get ``None``."""
    token = _bearer(authorization)
    if not token:
        return None
    try:
        return await _resolve(token, jwt_manager, session)
    except AuthenticationError as e:
        logger.info("Ignoring bearer token on public route: %s", e.message)
        return None


async def admin_user(user: Account = Depends(current_user)) -> Admin:
    if not isinstance(user, Admin) or user.role != "admin":
        raise AuthorizationError("Not authorized as an admin")
    return user


CurrentUser = Annotated[Account, Depends(current_user)]
OptionalUser = Annotated[Optional[Account], Depends(optional_user)]
AdminUser = Annotated[Admin, Depends(admin_user)]


_LEVEL_RE = re.compile(r"-?[0-9]+")


def require_grade_level(raw: object) -> int:
    """Parse a grade level 1-6 from a query or body value."""
    level: Optional[int] = None
    if isinstance(raw, bool):
        level = None
    elif isinstance(raw, int):
        level = raw
    elif isinstance(raw, float) and raw.is_integer():
        level = int(raw)
    elif isinstance(raw, str) and _LEVEL_RE.fullmatch(raw.strip()):
        level = int(raw.strip())
    if level is None or not 1 <= level <= 6:
        raise ValidationError("Valid grade level (1-6) is required")
    return level


def parse_level(raw: object) -> Optional[int]:
    """Lenient grade level parse; ``None`` when absent or not a number."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None
