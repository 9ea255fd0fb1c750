from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import CurrentUser, get_auth_client
from heritagepal.apis.schemas import AccountRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import UserService
from heritagepal.core.exceptions import AuthorizationError, ValidationError
from heritagepal.core.logging import get_logger
from heritagepal.core.supabase_auth import SupabaseAuthClient
from .schemas import AdminLoginRequest, AdminLoginResponse


router = APIRouter()
logger = get_logger(__name__)


@router.post(
    f"{settings.app.api_prefix}/auth/login",
    response_model=AdminLoginResponse,
    tags=["auth"],
)
async def admin_login(
    req: AdminLoginRequest,
    session: AsyncSession = Depends(get_session),
    auth: SupabaseAuthClient = Depends(get_auth_client),
) -> AdminLoginResponse:
    if not req.email or not req.password:
        raise ValidationError("Please provide email and password")
    auth_session = await auth.sign_in(req.email, req.password)
    admin = await UserService(session).get_admin(auth_session.user.id)
    if admin is None:
        logger.warning("Account %s signed in but has no admin record", auth_session.user.id)
        raise AuthorizationError(
            "Not authorized as an admin. Please contact system administrator."
        )
    logger.info("Admin login for %s", admin.email)
    return AdminLoginResponse(
        **AccountRead.model_validate(admin).model_dump(), token=auth_session.access_token
    )


@router.get(
    f"{settings.app.api_prefix}/auth/profile",
    response_model=AccountRead,
    tags=["auth"],
)
async def profile(user: CurrentUser) -> AccountRead:
    return AccountRead.model_validate(user)
