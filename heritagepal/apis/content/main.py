from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import get_generator, parse_level, require_grade_level
from heritagepal.apis.schemas import ContentRead, TopicRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import CatalogService, ContentService
from heritagepal.core.exceptions import NotFoundError, ValidationError
from heritagepal.core.logging import get_logger
from heritagepal.modules.generation import LearningSetGenerator, TextGenerator
from heritagepal.modules.generation.prompts import summary_prompt
from .schemas import (
    GeneratedLearningSetResponse,
    GradeContentItem,
    SummaryRequest,
    SummaryResponse,
    TopicContentResponse,
    TopicListItem,
)


router = APIRouter()
logger = get_logger(__name__)

SUMMARY_CONTEXT_ROWS = 5
SUMMARY_CONTEXT_CHARS = 2000


@router.get(
    f"{settings.app.api_prefix}/content/topics",
    response_model=list[TopicListItem],
    tags=["content"],
)
async def list_topics(session: AsyncSession = Depends(get_session)) -> list[TopicListItem]:
    catalog = CatalogService(session)
    try:
        topics = await catalog.list_topics(order_by_title=True)
        levels = await catalog.grade_levels_by_topic()
    except SQLAlchemyError as e:
        logger.error("Error fetching topics, returning empty list: %s", e)
        return []
    return [
        TopicListItem(
            id=t.id,
            title=t.title,
            description=t.description,
            gradeLevel=min(levels[t.id]) if levels.get(t.id) else None,
            allGrades=levels.get(t.id, []),
        )
        for t in topics
    ]


@router.get(
    f"{settings.app.api_prefix}/content/topic/{{topic_id}}",
    response_model=TopicContentResponse,
    tags=["content"],
)
async def topic_content(
    topic_id: str,
    grade: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> TopicContentResponse:
    catalog = CatalogService(session)
    topic = await catalog.get_topic(topic_id)
    if grade:
        level = parse_level(grade)
        if level is None:
            raise NotFoundError("Grade not found")
        await catalog.require_topic_in_grade(topic.id, level)
    content = await ContentService(session).for_topic(topic.id)
    return TopicContentResponse(
        topic=TopicRead.model_validate(topic),
        content=[ContentRead.model_validate(c) for c in content],
    )


@router.get(
    f"{settings.app.api_prefix}/content/grade/{{level}}",
    response_model=list[GradeContentItem],
    tags=["content"],
)
async def grade_content(
    level: str, session: AsyncSession = Depends(get_session)
) -> list[GradeContentItem]:
    catalog = CatalogService(session)
    parsed = parse_level(level)
    if parsed is None:
        raise NotFoundError("Grade not found")
    grade = await catalog.get_grade_by_level(parsed)
    topic_ids = await catalog.topic_ids_for_grade(grade.id)
    if not topic_ids:
        return []
    content = await ContentService(session).for_topics(topic_ids)
    topics = await catalog.topics_by_ids(topic_ids)
    items: list[GradeContentItem] = []
    for row in content:
        item = GradeContentItem.model_validate(row)
        topic = topics.get(row.topic_id) if row.topic_id else None
        if topic is not None:
            item.topic_title = topic.title
        items.append(item)
    return items


@router.post(
    f"{settings.app.api_prefix}/content/summary",
    response_model=SummaryResponse,
    tags=["content"],
)
async def topic_summary(
    req: SummaryRequest,
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> SummaryResponse:
    if not req.topic or req.grade in (None, ""):
        raise ValidationError("Topic and grade are required")
    catalog = CatalogService(session)
    level = parse_level(req.grade)
    if level is None:
        raise NotFoundError("Grade not found")
    grade = await catalog.get_grade_by_level(level)
    topic = await catalog.get_topic(req.topic)
    if not await catalog.is_topic_in_grade(topic.id, grade.id):
        raise NotFoundError("This topic is not available for the specified grade")

    rows = (await ContentService(session).for_topic(topic.id))[:SUMMARY_CONTEXT_ROWS]
    if not rows:
        raise NotFoundError("No content found for this topic and grade")
    context = "".join(
        f"{c.title}: {(c.processed_content or '')[:SUMMARY_CONTEXT_CHARS]}\n\n" for c in rows
    )
    summary = await generator.generate(summary_prompt(topic.title, context, level))
    return SummaryResponse(topic=topic.title, topic_id=topic.id, grade=level, summary=summary)


@router.get(
    f"{settings.app.api_prefix}/content/search",
    response_model=list[ContentRead],
    tags=["content"],
)
async def search_content(
    query: Optional[str] = Query(default=None),
    grade: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> list[ContentRead]:
    if not query or not query.strip():
        raise ValidationError("Search query is required")
    catalog = CatalogService(session)
    topic_ids = None
    if grade:
        level = parse_level(grade)
        found = await catalog.find_grade_by_level(level) if level is not None else None
        if found is None:
            return []
        topic_ids = await catalog.topic_ids_for_grade(found.id)
        if not topic_ids:
            return []
    rows = await ContentService(session).search(query.strip(), topic_ids)
    return [ContentRead.model_validate(c) for c in rows]


@router.get(
    f"{settings.app.api_prefix}/content/generate",
    response_model=GeneratedLearningSetResponse,
    status_code=status.HTTP_200_OK,
    tags=["content"],
)
async def generate_learning_set(
    topic_id: Optional[str] = Query(default=None),
    grade: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> GeneratedLearningSetResponse:
    """Generate summary, quiz and flashcards for a topic without saving them."""
    if not topic_id:
        raise ValidationError("Topic ID is required")
    level = require_grade_level(grade)

    topic = await CatalogService(session).get_topic(topic_id)
    learning_set = await LearningSetGenerator(generator).generate(
        topic.id, topic.title, topic.content, level
    )
    return GeneratedLearningSetResponse(
        topic=topic.title,
        grade=level,
        timestamp=datetime.now(timezone.utc),
        educational_content=learning_set.educational_content,
        quiz=learning_set.quiz,
        flashcard_set=learning_set.flashcard_set,
    )
