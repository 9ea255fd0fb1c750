from __future__ import annotations

from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import (
    CurrentUser,
    get_auth_client,
    get_generator,
    require_grade_level,
)
from heritagepal.apis.schemas import AccountRead, GradeRead, MessageResponse, TopicRef
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import (
    CatalogService,
    ChatService,
    FlashcardService,
    LearningSessionService,
    QuizService,
    UserService,
)
from heritagepal.core.exceptions import HeritagePalError, ValidationError
from heritagepal.core.logging import get_logger
from heritagepal.core.supabase_auth import SupabaseAuthClient
from heritagepal.modules.generation import LearningSetGenerator, TextGenerator
from .schemas import (
    ActivityResponse,
    AssignGradeRequest,
    AssignGradeResponse,
    AuthResponse,
    ChatActivity,
    FlashcardActivity,
    LearningHistoryItem,
    LearningSessionCreated,
    LearningSessionRequest,
    LoginRequest,
    ProfileResponse,
    QuizResultRead,
    RegisterRequest,
    TopicViewActivity,
    UserGradeRead,
)


router = APIRouter()
logger = get_logger(__name__)


def _ref(row: Any) -> TopicRef | None:
    return TopicRef(id=row.id, title=row.title) if row is not None else None


@router.post(
    f"{settings.app.api_prefix}/users/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
)
async def register(
    req: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
    auth: SupabaseAuthClient = Depends(get_auth_client),
) -> AuthResponse:
    """Create the auth account and its users row, then sign in.

    An already registered email signs in instead and answers 200.
    """
    if not req.name or not req.email or not req.password:
        raise ValidationError("Please add all fields")
    users = UserService(session)

    created = await auth.create_user(req.email, req.password, req.name)
    if created is None:
        auth_session = await auth.sign_in(req.email, req.password)
        user, _ = await users.ensure_user(
            user_id=auth_session.user.id, email=req.email, name=req.name
        )
        response.status_code = status.HTTP_200_OK
        return AuthResponse(user=AccountRead.model_validate(user), token=auth_session.access_token)

    try:
        user, _ = await users.ensure_user(user_id=created.id, email=req.email, name=req.name)
    except HeritagePalError:
        logger.error("Removing auth account %s after users row insert failed", created.id)
        await auth.delete_user(created.id)
        raise
    auth_session = await auth.sign_in(req.email, req.password)
    logger.info("Registered user %s", user.id)
    return AuthResponse(user=AccountRead.model_validate(user), token=auth_session.access_token)


@router.post(
    f"{settings.app.api_prefix}/users/login",
    response_model=AuthResponse,
    tags=["users"],
)
async def login(
    req: LoginRequest,
    session: AsyncSession = Depends(get_session),
    auth: SupabaseAuthClient = Depends(get_auth_client),
) -> AuthResponse:
    if not req.email or not req.password:
        raise ValidationError("Please add all fields")
    auth_session = await auth.sign_in(req.email, req.password)
    name = auth_session.user.name or req.email.split("@")[0]
    user, created = await UserService(session).ensure_user(
        user_id=auth_session.user.id, email=req.email, name=name
    )
    if created:
        logger.info("Created missing users row for %s on login", user.id)
    return AuthResponse(user=AccountRead.model_validate(user), token=auth_session.access_token)


@router.get(
    f"{settings.app.api_prefix}/users/profile",
    response_model=ProfileResponse,
    tags=["users"],
)
async def profile(
    user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> ProfileResponse:
    grades = await UserService(session).grades_of(user.id)
    return ProfileResponse(
        **AccountRead.model_validate(user).model_dump(),
        grades=[GradeRead.model_validate(g) for g in grades],
    )


@router.post(
    f"{settings.app.api_prefix}/users/learning-session",
    response_model=LearningSessionCreated,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
)
async def create_learning_session(
    req: LearningSessionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> LearningSessionCreated:
    """Generate a learning set for a topic and save it for the current user."""
    if not req.topic_id:
        raise ValidationError("Topic ID is required")
    level = require_grade_level(req.grade)

    topic = await CatalogService(session).get_topic(req.topic_id)
    learning_set = await LearningSetGenerator(generator).generate(
        topic.id, topic.title, topic.content, level
    )
    record = await LearningSessionService(session).persist(
        learning_set, user_id=user.id, topic_id=topic.id, grade=level
    )
    return LearningSessionCreated(
        session_id=record.id,
        content_id=record.content_id,
        quiz_id=record.quiz_id,
        flashcard_set_id=record.flashcard_set_id,
        topic=topic.title,
        grade=level,
    )


async def _learning_history(user_id: Any, session: AsyncSession) -> list[LearningHistoryItem]:
    rows = await LearningSessionService(session).history(user_id)
    return [
        LearningHistoryItem(
            id=r.id,
            created_at=r.created_at,
            grade=r.grade,
            topics=_ref(r.topic),
            educational_content=_ref(r.content),
            quizzes=_ref(r.quiz),
            flashcard_sets=_ref(r.flashcard_set),
        )
        for r in rows
    ]


@router.get(
    f"{settings.app.api_prefix}/users/learning-history",
    response_model=list[LearningHistoryItem],
    tags=["users"],
)
async def learning_history(
    user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> list[LearningHistoryItem]:
    return await _learning_history(user.id, session)


@router.get(
    f"{settings.app.api_prefix}/users/learning-sessions",
    response_model=list[LearningHistoryItem],
    tags=["users"],
)
async def learning_sessions(
    user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> list[LearningHistoryItem]:
    return await _learning_history(user.id, session)


async def _or_empty(session: AsyncSession, what: str, load: Callable[[], Awaitable[list]]) -> list:
    try:
        return await load()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Error retrieving %s: %s", what, e)
        return []


@router.get(
    f"{settings.app.api_prefix}/users/activity",
    response_model=ActivityResponse,
    tags=["users"],
)
async def activity(
    user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> ActivityResponse:
    """Quiz results, flashcard sessions, chats and topic views; failing parts are empty."""

    async def quizzes() -> list[QuizResultRead]:
        rows = await QuizService(session).results_for_user(user.id)
        return [
            QuizResultRead.model_validate(r).model_copy(
                update={"quiz_title": q.title if q is not None else None}
            )
            for r, q in rows
        ]

    async def flashcards() -> list[FlashcardActivity]:
        rows = await FlashcardService(session).history(user.id)
        return [
            FlashcardActivity.model_validate(s).model_copy(update={"topic_title": t})
            for s, t in rows
        ]

    async def chats() -> list[ChatActivity]:
        rows = await ChatService(session).sessions_for_user(user.id)
        return [ChatActivity.model_validate(s) for s in rows]

    async def topics() -> list[TopicViewActivity]:
        rows = await UserService(session).topic_views(user.id)
        return [
            TopicViewActivity.model_validate(v).model_copy(update={"topic_title": t})
            for v, t in rows
        ]

    return ActivityResponse(
        quizzes=await _or_empty(session, "quiz results", quizzes),
        flashcards=await _or_empty(session, "flashcard history", flashcards),
        chats=await _or_empty(session, "chat history", chats),
        topics=await _or_empty(session, "topic history", topics),
        grades=await _or_empty(
            session, "user grades", lambda: UserService(session).grade_ids_of(user.id)
        ),
    )


@router.post(
    f"{settings.app.api_prefix}/users/{{user_id}}/grades",
    response_model=AssignGradeResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
)
async def assign_grade(
    user_id: str,
    req: AssignGradeRequest,
    response: Response,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> AssignGradeResponse:
    if not req.grade_id:
        raise ValidationError("Invalid data: grade_id is required", errors=["grade_id is required"])
    link = await UserService(session).assign_grade(user_id, req.grade_id)
    if link is None:
        response.status_code = status.HTTP_200_OK
        return AssignGradeResponse(message="User is already assigned to this grade")
    return AssignGradeResponse(
        message="Grade assigned successfully", assignment=UserGradeRead.model_validate(link)
    )


@router.delete(
    f"{settings.app.api_prefix}/users/{{user_id}}/grades/{{grade_id}}",
    response_model=MessageResponse,
    tags=["users"],
)
async def remove_grade(
    user_id: str,
    grade_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await UserService(session).remove_grade(user_id, grade_id)
    return MessageResponse(message="Grade removed successfully")


@router.get(
    f"{settings.app.api_prefix}/users/{{user_id}}/grades",
    response_model=list[GradeRead],
    tags=["users"],
)
async def user_grades(
    user_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> list[GradeRead]:
    users = UserService(session)
    target = await users.get_user(user_id)
    return [GradeRead.model_validate(g) for g in await users.grades_of(target.id)]
