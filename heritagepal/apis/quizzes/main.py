from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritagepal.apis.deps import OptionalUser, get_generator, get_session_maker
from heritagepal.apis.schemas import QuizRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import (
    CatalogService,
    ContentService,
    QuizService,
    record_quiz_result,
)
from heritagepal.core.exceptions import NotFoundError, ValidationError
from heritagepal.core.logging import get_logger
from heritagepal.modules.generation import QuizQuestion, TextGenerator
from heritagepal.modules.generation.fallbacks import fallback_quiz
from heritagepal.modules.generation.parsing import parse_json_array, validate_items
from heritagepal.modules.generation.prompts import practice_exam_prompt
from heritagepal.modules.quiz.scoring import QuizScore
from .schemas import (
    PracticeExamRead,
    PracticeExamRequest,
    QuizSummary,
    SubmitAnswersRequest,
)


router = APIRouter()
logger = get_logger(__name__)

PRACTICE_CONTEXT_ROWS = 10
PRACTICE_CONTEXT_CHARS = 1000
PRACTICE_DEFAULT_COUNT = 15


@router.get(
    f"{settings.app.api_prefix}/quizzes",
    response_model=list[QuizSummary],
    tags=["quizzes"],
)
async def list_quizzes(
    grade: Optional[int] = Query(default=None),
    topic: Optional[str] = Query(default=None),
    difficulty: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> list[QuizSummary]:
    quizzes = await QuizService(session).list_quizzes(
        grade=grade, topic=topic, difficulty=difficulty
    )
    return [QuizSummary.model_validate(q) for q in quizzes]


@router.get(
    f"{settings.app.api_prefix}/quizzes/topics",
    response_model=list[str],
    tags=["quizzes"],
)
async def quiz_topics(session: AsyncSession = Depends(get_session)) -> list[str]:
    return await QuizService(session).topics()


@router.post(
    f"{settings.app.api_prefix}/quizzes/practice-exam",
    response_model=PracticeExamRead,
    status_code=status.HTTP_201_CREATED,
    tags=["quizzes"],
)
async def practice_exam(
    req: PracticeExamRequest,
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> PracticeExamRead:
    if req.grade in (None, ""):
        raise ValidationError("Grade is required")
    try:
        level = int(str(req.grade).strip())
    except ValueError:
        raise NotFoundError("Grade not found")

    catalog = CatalogService(session)
    grade = await catalog.get_grade_by_level(level)
    topic_ids = await catalog.topic_ids_for_grade(grade.id)
    rows = await ContentService(session).for_topics(topic_ids, limit=PRACTICE_CONTEXT_ROWS)
    if not rows:
        raise NotFoundError("No content found for this grade")

    topics = await catalog.topics_by_ids(topic_ids)
    if req.topics:
        wanted = set(req.topics)
        rows = [c for c in rows if str(c.topic_id) in wanted]
    context = ""
    for c in rows:
        topic = topics.get(c.topic_id) if c.topic_id else None
        body = (c.processed_content or "")[:PRACTICE_CONTEXT_CHARS] or "No content available"
        context += (
            f"Topic: {topic.title if topic else 'Unknown Topic'}\n"
            f"Title: {c.title}\nContent: {body}\n\n"
        )

    questions = await _exam_questions(
        generator, context, level, req.questionCount or PRACTICE_DEFAULT_COUNT
    )
    exam = await QuizService(session).create_practice_exam(
        grade_id=grade.id,
        level=level,
        questions=[q.model_dump() for q in questions],
    )
    return PracticeExamRead.model_validate(exam)


async def _exam_questions(
    generator: TextGenerator, context: str, level: int, count: int
) -> list[QuizQuestion]:
    try:
        text = await generator.generate(practice_exam_prompt(context, level, count))
    except Exception as e:
        logger.error("Error generating practice exam for grade %s: %s", level, e)
        return fallback_quiz()
    items, reason = validate_items(parse_json_array(text), QuizQuestion)
    if items is None:
        logger.warning("Practice exam output unusable (%s); using fallback", reason)
        return fallback_quiz()
    return items


@router.get(
    f"{settings.app.api_prefix}/quizzes/{{quiz_id}}",
    response_model=QuizRead,
    tags=["quizzes"],
)
async def get_quiz(quiz_id: str, session: AsyncSession = Depends(get_session)) -> QuizRead:
    return QuizRead.model_validate(await QuizService(session).get(quiz_id))


@router.post(
    f"{settings.app.api_prefix}/quizzes/{{quiz_id}}/submit",
    response_model=QuizScore,
    tags=["quizzes"],
)
async def submit_quiz(
    quiz_id: str,
    req: SubmitAnswersRequest,
    background: BackgroundTasks,
    user: OptionalUser,
    session: AsyncSession = Depends(get_session),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> QuizScore:
    """Score submitted answers; the result row is written after the response."""
    if not isinstance(req.answers, list):
        raise ValidationError("Please provide an array of answers")
    quiz, score = await QuizService(session).submit(quiz_id, req.answers)

    user_id = user.id if user is not None else None
    if req.sessionId or user_id:
        background.add_task(
            record_quiz_result,
            session_maker,
            quiz_id=quiz.id,
            session_id=req.sessionId,
            user_id=user_id,
            score=score,
        )
    return score
