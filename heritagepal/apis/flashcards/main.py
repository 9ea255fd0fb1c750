from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import CurrentUser, OptionalUser, get_generator, parse_level
from heritagepal.apis.schemas import FlashcardSetRead, TopicRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import CatalogService, FlashcardService
from heritagepal.core.exceptions import NotFoundError, ValidationError
from heritagepal.core.logging import get_logger
from heritagepal.modules.generation import TextGenerator, TopicFlashcard
from heritagepal.modules.generation.fallbacks import fallback_topic_flashcards
from heritagepal.modules.generation.parsing import parse_json_array, validate_items
from heritagepal.modules.generation.prompts import topic_flashcards_prompt
from .schemas import (
    FlashcardSessionRead,
    FlashcardSetWithTopic,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
)


router = APIRouter()
logger = get_logger(__name__)

CONTEXT_TOPICS = 10
CONTEXT_CHARS = 1000
DEFAULT_CARD_COUNT = 10


@router.get(
    f"{settings.app.api_prefix}/flashcards",
    response_model=list[FlashcardSetRead],
    tags=["flashcards"],
)
async def list_flashcards(
    grade: Optional[int] = Query(default=None),
    topic: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> list[FlashcardSetRead]:
    rows = await FlashcardService(session).list_sets(grade=grade, topic_id=topic)
    return [FlashcardSetRead.model_validate(s) for s, _ in rows]


@router.get(
    f"{settings.app.api_prefix}/flashcards/sets",
    response_model=list[FlashcardSetWithTopic],
    tags=["flashcards"],
)
async def list_flashcard_sets(
    grade: Optional[int] = Query(default=None),
    topic: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> list[FlashcardSetWithTopic]:
    rows = await FlashcardService(session).list_sets(grade=grade, topic_id=topic)
    items = []
    for fs, title in rows:
        item = FlashcardSetWithTopic.model_validate(fs)
        item.topic_title = title
        items.append(item)
    return items


@router.get(
    f"{settings.app.api_prefix}/flashcards/topics",
    response_model=list[TopicRead],
    tags=["flashcards"],
)
async def flashcard_topics(session: AsyncSession = Depends(get_session)) -> list[TopicRead]:
    topics = await FlashcardService(session).topics_with_sets()
    return [TopicRead.model_validate(t) for t in topics]


@router.get(
    f"{settings.app.api_prefix}/flashcards/set/{{set_id}}",
    response_model=FlashcardSetRead,
    tags=["flashcards"],
)
async def get_flashcard_set(
    set_id: str, session: AsyncSession = Depends(get_session)
) -> FlashcardSetRead:
    return FlashcardSetRead.model_validate(await FlashcardService(session).get(set_id))


@router.post(
    f"{settings.app.api_prefix}/flashcards/generate",
    response_model=GenerateFlashcardsResponse,
    tags=["flashcards"],
)
async def generate_flashcards(
    req: GenerateFlashcardsRequest,
    user: OptionalUser,
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> GenerateFlashcardsResponse:
    if not req.topic and req.grade in (None, ""):
        raise ValidationError("Please provide either a topic or grade")
    level = parse_level(req.grade)

    topics = await CatalogService(session).topics_by_title(req.topic, limit=CONTEXT_TOPICS)
    if not topics:
        raise NotFoundError("No content found for this topic or grade")
    context = "".join(
        f"Topic: {t.title}\nContent: {(t.content or '')[:CONTEXT_CHARS] or 'No content available'}\n\n"
        for t in topics
    )

    cards = await _topic_cards(generator, context, level, req.count or DEFAULT_CARD_COUNT)
    session_id = str(uuid.uuid4())
    primary = topics[0]

    saved = None
    if user is not None:
        saved = await FlashcardService(session).save_generated(
            user_id=user.id,
            session_id=session_id,
            topic=primary,
            grade=level,
            cards=[c.model_dump() for c in cards],
        )

    return GenerateFlashcardsResponse(
        sessionId=session_id,
        topicTitle=primary.title,
        grade=level,
        flashcards=cards,
        saved=saved is not None,
        flashcardSetId=saved.id if saved is not None else None,
    )


async def _topic_cards(
    generator: TextGenerator, context: str, level: Optional[int], count: int
) -> list[TopicFlashcard]:
    try:
        text = await generator.generate(topic_flashcards_prompt(context, level, count))
    except Exception as e:
        logger.error("Error generating flashcards: %s", e)
        return fallback_topic_flashcards()
    items, reason = validate_items(parse_json_array(text), TopicFlashcard)
    if items is None:
        logger.warning("Flashcard output unusable (%s); using fallback", reason)
        return fallback_topic_flashcards()
    return items


@router.get(
    f"{settings.app.api_prefix}/flashcards/history",
    response_model=list[FlashcardSessionRead],
    tags=["flashcards"],
)
async def flashcard_history(
    user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> list[FlashcardSessionRead]:
    rows = await FlashcardService(session).history(user.id)
    items = []
    for fs, title in rows:
        item = FlashcardSessionRead.model_validate(fs)
        item.topic_title = title
        items.append(item)
    return items
