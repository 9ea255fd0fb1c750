import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritagepal.core.config import settings
from heritagepal.core.db.base import build_engine, build_session_maker
from heritagepal.core.exceptions import register_exception_handlers
from heritagepal.core.jwt_utils import JWTManager, build_jwt_manager
from heritagepal.core.logging import get_logger, request_id_var, setup_logging
from heritagepal.core.supabase_auth import SupabaseAuthClient, build_auth_client
from heritagepal.core.upload_manager import UploadFileManager, build_upload_manager
from heritagepal.modules.generation import GenerationService, TextGenerator
from heritagepal.apis.admin.main import router as admin_router
from heritagepal.apis.auth.main import router as auth_router
from heritagepal.apis.chat.main import router as chat_router
from heritagepal.apis.content.main import router as content_router
from heritagepal.apis.flashcards.main import router as flashcards_router
from heritagepal.apis.grades.main import router as grades_router
from heritagepal.apis.quizzes.main import router as quizzes_router
from heritagepal.apis.topics.main import router as topics_router
from heritagepal.apis.users.main import router as users_router


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    engine = None
    if getattr(state, "session_maker", None) is None:
        engine = build_engine()
        state.session_maker = build_session_maker(engine)
    if getattr(state, "generator", None) is None:
        state.generator = GenerationService()
    if getattr(state, "auth_client", None) is None:
        state.auth_client = build_auth_client()
    if getattr(state, "jwt_manager", None) is None:
        state.jwt_manager = build_jwt_manager()
    if getattr(state, "upload_manager", None) is None:
        state.upload_manager = build_upload_manager()
    logger.info("%s %s started (mode=%s)", settings.app.name, settings.app.version, settings.app.mode)
    try:
        yield
    finally:
        await state.auth_client.aclose()
        if engine is not None:
            await engine.dispose()


def create_app(
    *,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    generator: Optional[TextGenerator] = None,
    auth_client: Optional[SupabaseAuthClient] = None,
    jwt_manager: Optional[JWTManager] = None,
    upload_manager: Optional[UploadFileManager] = None,
) -> FastAPI:
    setup_logging(settings.app.log_level)
    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )
    app.state.session_maker = session_maker
    app.state.generator = generator
    app.state.auth_client = auth_client
    app.state.jwt_manager = jwt_manager
    app.state.upload_manager = upload_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(content_router)
    app.include_router(quizzes_router)
    app.include_router(flashcards_router)
    app.include_router(chat_router)
    app.include_router(topics_router)
    app.include_router(grades_router)
    app.include_router(admin_router)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "message": f"{settings.app.name} API is running"}

    return app


app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        print(f"An error occurred when starting the server: {e}.")
