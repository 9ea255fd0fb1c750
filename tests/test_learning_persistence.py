import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from heritagepal.core.db.schemas import (
    EducationalContent,
    FlashcardSet,
    Quiz,
    Topic,
    UserLearningSession,
)
from heritagepal.core.db_services import LearningSessionService
from heritagepal.core.exceptions import PersistenceError
from heritagepal.modules.generation import LearningSetGenerator

from conftest import learning_set_generator


async def _learning_set(topic_id):
    return await LearningSetGenerator(learning_set_generator()).generate(
        topic_id, "Rivers of Guyana", "content", 3
    )


async def _count(session, model):
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def _seed_topic(session):
    topic = Topic(title="Rivers of Guyana", content="content")
    session.add(topic)
    await session.commit()
    return topic


async def test_persist_links_all_artifacts(session_maker):
    user_id = uuid.uuid4()
    async with session_maker() as session:
        topic = await _seed_topic(session)
        record = await LearningSessionService(session).persist(
            await _learning_set(topic.id), user_id=user_id, topic_id=topic.id, grade=3
        )

    async with session_maker() as session:
        stored = await session.get(UserLearningSession, record.id)
        assert stored.user_id == user_id
        assert stored.grade == 3
        content = await session.get(EducationalContent, stored.content_id)
        quiz = await session.get(Quiz, stored.quiz_id)
        cards = await session.get(FlashcardSet, stored.flashcard_set_id)
        assert content.is_ai_generated and content.user_id == user_id
        assert quiz.difficulty == "medium"
        assert cards.flashcards[0]["term"] == "Essequibo"


@pytest.mark.parametrize(
    "failing_flush, artifact",
    [(1, "educational content"), (2, "quiz"), (3, "flashcard set"), (4, "learning session")],
)
async def test_failed_insert_rolls_back_every_row(session_maker, monkeypatch, failing_flush, artifact):
    """Earlier behaviour left the rows saved before the failure in place; now nothing survives."""
    async with session_maker() as session:
        topic = await _seed_topic(session)
        learning_set = await _learning_set(topic.id)

        calls = 0
        real_flush = session.flush

        async def flaky_flush(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == failing_flush:
                raise SQLAlchemyError("disk full")
            return await real_flush(*args, **kwargs)

        monkeypatch.setattr(session, "flush", flaky_flush)
        with pytest.raises(PersistenceError) as info:
            await LearningSessionService(session).persist(
                learning_set, user_id=uuid.uuid4(), topic_id=topic.id, grade=3
            )
        assert info.value.artifact == artifact
        assert info.value.message == f"Failed to save {artifact}"

    async with session_maker() as session:
        for model in (EducationalContent, Quiz, FlashcardSet, UserLearningSession):
            assert await _count(session, model) == 0
