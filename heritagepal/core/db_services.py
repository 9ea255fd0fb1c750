"""Database service classes for catalog, content, quiz, flashcard, chat and user data."""

from __future__ import annotations

import json
import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from heritagepal.core.db.schemas.catalog import Grade, GradeTopic, Topic
from heritagepal.core.db.schemas.chat import ChatMessage, UserChatSession
from heritagepal.core.db.schemas.content import EducationalContent
from heritagepal.core.db.schemas.flashcards import FlashcardSession, FlashcardSet
from heritagepal.core.db.schemas.learning import UserLearningSession
from heritagepal.core.db.schemas.quiz import PracticeExam, Quiz, QuizResult
from heritagepal.core.db.schemas.users import Admin, User, UserGrade, UserTopicHistory
from heritagepal.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
)
from heritagepal.core.logging import get_logger
from heritagepal.modules.generation.models import LearningSet
from heritagepal.modules.quiz.scoring import QuizScore, decode_questions, score_answers


logger = get_logger(__name__)


def as_uuid(value: Any) -> Optional[uuid.UUID]:
    """Parse an id from a path, query or body value; ``None`` when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


def require_uuid(value: Any, message: str) -> uuid.UUID:
    parsed = as_uuid(value)
    if parsed is None:
        raise NotFoundError(message)
    return parsed


class CatalogService:
    """Grades, topics and the grade/topic assignments between them."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Grades
    async def list_grades(self) -> list[Grade]:
        rows = await self.session.execute(select(Grade).order_by(Grade.level.asc()))
        return list(rows.scalars().all())

    async def get_grade(self, grade_id: Any) -> Grade:
        gid = require_uuid(grade_id, "Grade not found")
        grade = await self.session.get(Grade, gid)
        if grade is None:
            raise NotFoundError("Grade not found")
        return grade

    async def find_grade_by_level(self, level: int) -> Optional[Grade]:
        rows = await self.session.execute(select(Grade).where(Grade.level == level))
        return rows.scalar_one_or_none()

    async def get_grade_by_level(self, level: int) -> Grade:
        grade = await self.find_grade_by_level(level)
        if grade is None:
            raise NotFoundError("Grade not found")
        return grade

    async def create_grade(
        self, *, level: int, name: str, description: Optional[str] = None
    ) -> Grade:
        if await self.find_grade_by_level(level) is not None:
            raise ConflictError(f"Grade with level {level} already exists")
        grade = Grade(level=level, name=name.strip(), description=description)
        self.session.add(grade)
        await self.session.commit()
        return grade

    async def update_grade(
        self, grade_id: Any, *, level: int, name: str, description: Optional[str] = None
    ) -> Grade:
        grade = await self.get_grade(grade_id)
        if level != grade.level:
            other = await self.find_grade_by_level(level)
            if other is not None and other.id != grade.id:
                raise ConflictError(f"Another grade with level {level} already exists")
        grade.level = level
        grade.name = name.strip()
        grade.description = description
        await self.session.commit()
        return grade

    async def delete_grade(self, grade_id: Any) -> None:
        grade = await self.get_grade(grade_id)
        await self.session.execute(delete(GradeTopic).where(GradeTopic.grade_id == grade.id))
        await self.session.execute(delete(UserGrade).where(UserGrade.grade_id == grade.id))
        await self.session.delete(grade)
        await self.session.commit()

    # Topics
    async def list_topics(self, order_by_title: bool = False) -> list[Topic]:
        order = Topic.title.asc() if order_by_title else Topic.created_at.desc()
        rows = await self.session.execute(select(Topic).order_by(order))
        return list(rows.scalars().all())

    async def find_topic(self, topic_id: Any) -> Optional[Topic]:
        tid = as_uuid(topic_id)
        if tid is None:
            return None
        return await self.session.get(Topic, tid)

    async def get_topic(self, topic_id: Any) -> Topic:
        topic = await self.find_topic(topic_id)
        if topic is None:
            raise NotFoundError("Topic not found")
        return topic

    async def topics_by_title(self, title: Optional[str], limit: int = 10) -> list[Topic]:
        stmt = select(Topic)
        if title:
            stmt = stmt.where(Topic.title == title)
        rows = await self.session.execute(stmt.order_by(Topic.created_at.desc()).limit(limit))
        return list(rows.scalars().all())

    async def topics_by_ids(self, ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Topic]:
        ids = list(ids)
        if not ids:
            return {}
        rows = await self.session.execute(select(Topic).where(Topic.id.in_(ids)))
        return {t.id: t for t in rows.scalars().all()}

    async def grade_levels_by_topic(self) -> dict[uuid.UUID, list[int]]:
        rows = await self.session.execute(
            select(GradeTopic.topic_id, Grade.level)
            .join(Grade, Grade.id == GradeTopic.grade_id)
            .order_by(Grade.level.asc())
        )
        levels: dict[uuid.UUID, list[int]] = {}
        for topic_id, level in rows.all():
            levels.setdefault(topic_id, []).append(level)
        return levels

    async def topic_ids_for_grade(self, grade_id: uuid.UUID) -> list[uuid.UUID]:
        rows = await self.session.execute(
            select(GradeTopic.topic_id).where(GradeTopic.grade_id == grade_id)
        )
        return list(rows.scalars().all())

    async def topics_for_grade(self, grade_id: Any) -> list[Topic]:
        grade = await self.get_grade(grade_id)
        rows = await self.session.execute(
            select(Topic)
            .join(GradeTopic, GradeTopic.topic_id == Topic.id)
            .where(GradeTopic.grade_id == grade.id)
            .order_by(Topic.title.asc())
        )
        return list(rows.scalars().all())

    async def grades_for_topic(self, topic_id: uuid.UUID) -> list[Grade]:
        rows = await self.session.execute(
            select(Grade)
            .join(GradeTopic, GradeTopic.grade_id == Grade.id)
            .where(GradeTopic.topic_id == topic_id)
            .order_by(Grade.level.asc())
        )
        return list(rows.scalars().all())

    async def is_topic_in_grade(self, topic_id: uuid.UUID, grade_id: uuid.UUID) -> bool:
        rows = await self.session.execute(
            select(GradeTopic.id).where(
                GradeTopic.topic_id == topic_id, GradeTopic.grade_id == grade_id
            )
        )
        return rows.first() is not None

    async def require_topic_in_grade(self, topic_id: uuid.UUID, level: int) -> Grade:
        grade = await self.get_grade_by_level(level)
        if not await self.is_topic_in_grade(topic_id, grade.id):
            raise NotFoundError("This topic is not available for the specified grade")
        return grade

    async def create_topic(
        self,
        *,
        title: str,
        content: str,
        description: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        grade_ids: Optional[list[Any]] = None,
    ) -> Topic:
        topic = Topic(
            title=title.strip(),
            content=content,
            description=description or None,
            created_by=created_by,
        )
        self.session.add(topic)
        await self.session.flush()
        if grade_ids:
            await self._link_grades(topic.id, grade_ids)
        await self.session.commit()
        return topic

    async def update_topic(
        self,
        topic_id: Any,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
        description: Optional[str] = None,
        description_set: bool = False,
        grade_ids: Optional[list[Any]] = None,
    ) -> Topic:
        topic = await self.get_topic(topic_id)
        if title:
            topic.title = title.strip()
        if content:
            topic.content = content
        if description_set:
            topic.description = description
        if grade_ids is not None:
            await self.session.execute(delete(GradeTopic).where(GradeTopic.topic_id == topic.id))
            await self._link_grades(topic.id, grade_ids)
        await self.session.commit()
        return topic

    async def delete_topic(self, topic_id: Any) -> None:
        topic = await self.get_topic(topic_id)
        await self.session.execute(delete(GradeTopic).where(GradeTopic.topic_id == topic.id))
        await self.session.delete(topic)
        await self.session.commit()

    async def replace_topic_grades(self, topic_id: Any, grade_ids: list[Any]) -> list[GradeTopic]:
        topic = await self.get_topic(topic_id)
        await self.session.execute(delete(GradeTopic).where(GradeTopic.topic_id == topic.id))
        links = await self._link_grades(topic.id, grade_ids)
        await self.session.commit()
        return links

    async def _link_grades(self, topic_id: uuid.UUID, grade_ids: list[Any]) -> list[GradeTopic]:
        links: list[GradeTopic] = []
        seen: set[uuid.UUID] = set()
        for raw in grade_ids:
            grade = await self.get_grade(raw)
            if grade.id in seen:
                continue
            seen.add(grade.id)
            link = GradeTopic(grade_id=grade.id, topic_id=topic_id)
            self.session.add(link)
            links.append(link)
        await self.session.flush()
        return links

    async def assign_topic(self, grade_id: Any, topic_id: Any) -> GradeTopic:
        grade = await self.get_grade(grade_id)
        topic = await self.get_topic(topic_id)
        if await self.is_topic_in_grade(topic.id, grade.id):
            raise ConflictError("Topic is already assigned to this grade")
        link = GradeTopic(grade_id=grade.id, topic_id=topic.id)
        self.session.add(link)
        await self.session.commit()
        return link

    async def unassign_topic(self, grade_id: Any, topic_id: Any) -> None:
        gid = require_uuid(grade_id, "Topic is not assigned to this grade")
        tid = require_uuid(topic_id, "Topic is not assigned to this grade")
        if not await self.is_topic_in_grade(tid, gid):
            raise NotFoundError("Topic is not assigned to this grade")
        await self.session.execute(
            delete(GradeTopic).where(GradeTopic.grade_id == gid, GradeTopic.topic_id == tid)
        )
        await self.session.commit()


class ContentService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def for_topic(self, topic_id: uuid.UUID) -> list[EducationalContent]:
        rows = await self.session.execute(
            select(EducationalContent)
            .where(EducationalContent.topic_id == topic_id)
            .order_by(EducationalContent.created_at.desc())
        )
        return list(rows.scalars().all())

    async def for_topics(
        self, topic_ids: list[uuid.UUID], limit: Optional[int] = None
    ) -> list[EducationalContent]:
        if not topic_ids:
            return []
        stmt = (
            select(EducationalContent)
            .where(EducationalContent.topic_id.in_(topic_ids))
            .order_by(EducationalContent.created_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        rows = await self.session.execute(stmt)
        return list(rows.scalars().all())

    async def recent(self, grade: Optional[int] = None, limit: int = 5) -> list[EducationalContent]:
        stmt = select(EducationalContent)
        if grade is not None:
            stmt = stmt.where(EducationalContent.grade == grade)
        rows = await self.session.execute(
            stmt.order_by(EducationalContent.created_at.desc()).limit(limit)
        )
        return list(rows.scalars().all())

    async def search(
        self, query: str, topic_ids: Optional[list[uuid.UUID]] = None
    ) -> list[EducationalContent]:
        pattern = f"%{query}%"
        stmt = select(EducationalContent).where(
            or_(
                EducationalContent.title.ilike(pattern),
                EducationalContent.description.ilike(pattern),
                EducationalContent.processed_content.ilike(pattern),
            )
        )
        if topic_ids:
            stmt = stmt.where(EducationalContent.topic_id.in_(topic_ids))
        rows = await self.session.execute(stmt.order_by(EducationalContent.created_at.desc()))
        return list(rows.scalars().all())

    async def list_all(self) -> list[EducationalContent]:
        rows = await self.session.execute(
            select(EducationalContent).order_by(EducationalContent.created_at.desc())
        )
        return list(rows.scalars().all())

    async def get(self, content_id: Any) -> EducationalContent:
        cid = require_uuid(content_id, "Content not found")
        content = await self.session.get(EducationalContent, cid)
        if content is None:
            raise NotFoundError("Content not found")
        return content

    async def create(self, **fields: Any) -> EducationalContent:
        content = EducationalContent(**fields)
        self.session.add(content)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("content", cause=e) from e
        return content

    async def update(self, content_id: Any, changes: dict[str, Any]) -> EducationalContent:
        content = await self.get(content_id)
        for key, value in changes.items():
            setattr(content, key, value)
        await self.session.commit()
        return content

    async def delete(self, content_id: Any) -> EducationalContent:
        content = await self.get(content_id)
        await self.session.delete(content)
        await self.session.commit()
        return content


class QuizService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_quizzes(
        self,
        *,
        grade: Optional[int] = None,
        topic: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> list[Quiz]:
        stmt = select(Quiz)
        if grade is not None:
            stmt = stmt.where(Quiz.grade == grade)
        if topic:
            tid = as_uuid(topic)
            stmt = stmt.where(Quiz.topic_id == tid) if tid else stmt.where(Quiz.topic == topic)
        if difficulty:
            stmt = stmt.where(Quiz.difficulty == difficulty)
        rows = await self.session.execute(stmt.order_by(Quiz.created_at.desc()))
        return list(rows.scalars().all())

    async def topics(self) -> list[str]:
        rows = await self.session.execute(
            select(Quiz.topic).where(Quiz.topic.is_not(None)).distinct().order_by(Quiz.topic)
        )
        return [t for t in rows.scalars().all() if t]

    async def get(self, quiz_id: Any) -> Quiz:
        qid = require_uuid(quiz_id, "Quiz not found")
        quiz = await self.session.get(Quiz, qid)
        if quiz is None:
            raise NotFoundError("Quiz not found")
        return quiz

    async def submit(self, quiz_id: Any, answers: list[Any]) -> tuple[Quiz, QuizScore]:
        """Score ``answers`` against the stored quiz; nothing is written here."""
        quiz = await self.get(quiz_id)
        questions = decode_questions(quiz.questions)
        return quiz, score_answers(questions, answers)

    async def create(self, **fields: Any) -> Quiz:
        quiz = Quiz(**fields)
        self.session.add(quiz)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("quiz", cause=e) from e
        return quiz

    async def create_practice_exam(
        self, *, grade_id: uuid.UUID, level: int, questions: list[dict[str, Any]]
    ) -> PracticeExam:
        exam = PracticeExam(
            title=f"Grade {level} Practice Exam",
            description=f"Comprehensive practice exam for grade {level} Social Studies",
            grade_id=grade_id,
            questions=json.dumps(questions),
        )
        self.session.add(exam)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("practice exam", cause=e) from e
        return exam

    async def results_for_user(self, user_id: uuid.UUID) -> list[tuple[QuizResult, Optional[Quiz]]]:
        rows = await self.session.execute(
            select(QuizResult, Quiz)
            .outerjoin(Quiz, Quiz.id == QuizResult.quiz_id)
            .where(QuizResult.user_id == user_id)
            .order_by(QuizResult.created_at.desc())
        )
        return [(r, q) for r, q in rows.all()]


async def record_quiz_result(
    session_maker: async_sessionmaker[AsyncSession],
    *,
    quiz_id: uuid.UUID,
    session_id: Optional[str],
    user_id: Optional[uuid.UUID],
    score: QuizScore,
) -> None:
    """Insert a quiz_results row after the response has been sent.

    Failures are logged only; the learner already has their score.
    """
    try:
        async with session_maker() as session:
            session.add(
                QuizResult(
                    quiz_id=quiz_id,
                    session_id=session_id,
                    user_id=user_id,
                    score=score.percentage,
                    correct_count=score.correct_count,
                    total_questions=score.total_questions,
                )
            )
            await session.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to record quiz result for quiz %s: %s", quiz_id, e)


class FlashcardService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_sets(
        self, *, grade: Optional[int] = None, topic_id: Optional[str] = None
    ) -> list[tuple[FlashcardSet, Optional[str]]]:
        stmt = select(FlashcardSet, Topic.title).outerjoin(Topic, Topic.id == FlashcardSet.topic_id)
        if grade is not None:
            stmt = stmt.where(FlashcardSet.grade == grade)
        if topic_id:
            tid = as_uuid(topic_id)
            if tid is None:
                return []
            stmt = stmt.where(FlashcardSet.topic_id == tid)
        rows = await self.session.execute(stmt.order_by(FlashcardSet.created_at.desc()))
        return [(s, title) for s, title in rows.all()]

    async def topics_with_sets(self) -> list[Topic]:
        rows = await self.session.execute(
            select(Topic)
            .where(Topic.id.in_(select(FlashcardSet.topic_id).where(FlashcardSet.topic_id.is_not(None))))
            .order_by(Topic.title.asc())
        )
        return list(rows.scalars().all())

    async def get(self, set_id: Any) -> FlashcardSet:
        sid = require_uuid(set_id, "Flashcard set not found")
        fs = await self.session.get(FlashcardSet, sid)
        if fs is None:
            raise NotFoundError("Flashcard set not found")
        return fs

    async def save_generated(
        self,
        *,
        user_id: uuid.UUID,
        session_id: str,
        topic: Topic,
        grade: Optional[int],
        cards: list[dict[str, Any]],
    ) -> Optional[FlashcardSet]:
        """Store a generated set and its session; returns ``None`` if that fails."""
        fs = FlashcardSet(
            title=f"{topic.title} Flashcards",
            description=f"Flashcards about {topic.title} for grade {grade or 'all'} students",
            topic_id=topic.id,
            grade=grade,
            flashcards=cards,
            user_id=user_id,
            is_ai_generated=True,
        )
        try:
            self.session.add(fs)
            self.session.add(
                FlashcardSession(
                    user_id=user_id,
                    session_id=session_id,
                    topic_id=topic.id,
                    flashcard_count=len(cards),
                )
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to store flashcard set for user %s: %s", user_id, e)
            return None
        return fs

    async def history(self, user_id: uuid.UUID) -> list[tuple[FlashcardSession, Optional[str]]]:
        rows = await self.session.execute(
            select(FlashcardSession, Topic.title)
            .outerjoin(Topic, Topic.id == FlashcardSession.topic_id)
            .where(FlashcardSession.user_id == user_id)
            .order_by(FlashcardSession.created_at.desc())
        )
        return [(s, title) for s, title in rows.all()]


class ChatService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _best_effort(self, row: Any, what: str) -> bool:
        try:
            self.session.add(row)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to store %s: %s", what, e)
            return False
        return True

    async def store_message(self, session_id: str, role: str, content: str) -> bool:
        return await self._best_effort(
            ChatMessage(session_id=session_id, role=role, content=content), "chat message"
        )

    async def link_session(self, user_id: uuid.UUID, session_id: str, message: str) -> bool:
        return await self._best_effort(
            UserChatSession(user_id=user_id, session_id=session_id, topic=message[:50]),
            "chat session link",
        )

    async def recent_messages(self, session_id: str, limit: int = 5) -> list[ChatMessage]:
        """Last ``limit`` messages of a session, oldest first."""
        rows = await self.session.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at.desc())
            .limit(limit)
        )
        return list(reversed(rows.scalars().all()))

    async def history(self, session_id: str) -> list[ChatMessage]:
        rows = await self.session.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at.asc())
        )
        return list(rows.scalars().all())

    async def sessions_for_user(self, user_id: uuid.UUID) -> list[UserChatSession]:
        rows = await self.session.execute(
            select(UserChatSession)
            .where(UserChatSession.user_id == user_id)
            .order_by(UserChatSession.created_at.desc())
        )
        return list(rows.scalars().all())


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_account(self, user_id: uuid.UUID) -> Optional[Admin | User]:
        """Admins take precedence over users with the same id."""
        admin = await self.session.get(Admin, user_id)
        if admin is not None:
            return admin
        return await self.session.get(User, user_id)

    async def get_admin(self, user_id: uuid.UUID) -> Optional[Admin]:
        return await self.session.get(Admin, user_id)

    async def get_user(self, user_id: Any) -> User:
        uid = require_uuid(user_id, "User not found")
        user = await self.session.get(User, uid)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def ensure_user(self, *, user_id: uuid.UUID, email: str, name: str) -> tuple[User, bool]:
        """Return the users row for an auth account, creating it when missing."""
        user = await self.session.get(User, user_id)
        if user is not None:
            return user, False
        user = User(id=user_id, email=email.lower(), name=name, role="user")
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("A user with this email already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("user record", cause=e) from e
        return user, True

    async def grades_of(self, user_id: uuid.UUID) -> list[Grade]:
        rows = await self.session.execute(
            select(Grade)
            .join(UserGrade, UserGrade.grade_id == Grade.id)
            .where(UserGrade.user_id == user_id)
            .order_by(Grade.level.asc())
        )
        return list(rows.scalars().all())

    async def grade_ids_of(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        rows = await self.session.execute(
            select(UserGrade.grade_id).where(UserGrade.user_id == user_id)
        )
        return list(rows.scalars().all())

    async def assign_grade(self, user_id: Any, grade_id: Any) -> Optional[UserGrade]:
        """Link a grade to a user; ``None`` when the link already exists."""
        user = await self.get_user(user_id)
        grade = await CatalogService(self.session).get_grade(grade_id)
        rows = await self.session.execute(
            select(UserGrade).where(UserGrade.user_id == user.id, UserGrade.grade_id == grade.id)
        )
        if rows.scalar_one_or_none() is not None:
            return None
        link = UserGrade(user_id=user.id, grade_id=grade.id)
        self.session.add(link)
        await self.session.commit()
        return link

    async def remove_grade(self, user_id: Any, grade_id: Any) -> None:
        uid = require_uuid(user_id, "User is not assigned to this grade")
        gid = require_uuid(grade_id, "User is not assigned to this grade")
        result = await self.session.execute(
            delete(UserGrade).where(UserGrade.user_id == uid, UserGrade.grade_id == gid)
        )
        if not result.rowcount:
            await self.session.rollback()
            raise NotFoundError("User is not assigned to this grade")
        await self.session.commit()

    async def record_topic_view(self, user_id: uuid.UUID, topic_id: Any, *, is_admin: bool) -> None:
        catalog = CatalogService(self.session)
        topic = await catalog.get_topic(topic_id)
        grade_ids = await self.grade_ids_of(user_id)
        if grade_ids and not is_admin:
            rows = await self.session.execute(
                select(func.count())
                .select_from(GradeTopic)
                .where(GradeTopic.topic_id == topic.id, GradeTopic.grade_id.in_(grade_ids))
            )
            if not rows.scalar_one():
                raise AuthorizationError("You do not have access to this topic")
        self.session.add(UserTopicHistory(user_id=user_id, topic_id=topic.id))
        await self.session.commit()

    async def topic_views(self, user_id: uuid.UUID) -> list[tuple[UserTopicHistory, Optional[str]]]:
        rows = await self.session.execute(
            select(UserTopicHistory, Topic.title)
            .outerjoin(Topic, Topic.id == UserTopicHistory.topic_id)
            .where(UserTopicHistory.user_id == user_id)
            .order_by(UserTopicHistory.viewed_at.desc())
        )
        return [(v, title) for v, title in rows.all()]


class LearningSessionService:
    """Persists a generated learning set and the session row linking it to a user.

    The four inserts share one transaction: either all rows are committed or
    none are, so a session never points at a partial set.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _insert(self, artifact: str, row: Any) -> None:
        try:
            self.session.add(row)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to save %s, rolling back learning session: %s", artifact, e)
            await self.session.rollback()
            raise PersistenceError(artifact, cause=e) from e

    async def persist(
        self,
        learning_set: LearningSet,
        *,
        user_id: uuid.UUID,
        topic_id: uuid.UUID,
        grade: int,
    ) -> UserLearningSession:
        summary = learning_set.educational_content
        content = EducationalContent(
            **summary.model_dump(),
            user_id=user_id,
            is_ai_generated=True,
        )
        await self._insert("educational content", content)

        quiz_draft = learning_set.quiz
        quiz = Quiz(
            title=quiz_draft.title,
            description=quiz_draft.description,
            topic_id=quiz_draft.topic_id,
            grade=quiz_draft.grade,
            difficulty=quiz_draft.difficulty,
            questions=json.dumps([q.model_dump() for q in quiz_draft.questions]),
            user_id=user_id,
            is_ai_generated=True,
        )
        await self._insert("quiz", quiz)

        cards = learning_set.flashcard_set
        flashcard_set = FlashcardSet(
            title=cards.title,
            description=cards.description,
            topic_id=cards.topic_id,
            grade=cards.grade,
            flashcards=[c.model_dump() for c in cards.flashcards],
            user_id=user_id,
            is_ai_generated=True,
        )
        await self._insert("flashcard set", flashcard_set)

        record = UserLearningSession(
            user_id=user_id,
            topic_id=topic_id,
            grade=grade,
            content_id=content.id,
            quiz_id=quiz.id,
            flashcard_set_id=flashcard_set.id,
        )
        await self._insert("learning session", record)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit of learning session failed: %s", e)
            await self.session.rollback()
            raise PersistenceError("learning session", cause=e) from e
        logger.info(
            "Saved learning session %s for user %s (topic %s, grade %s)",
            record.id,
            user_id,
            topic_id,
            grade,
        )
        return record

    async def history(self, user_id: uuid.UUID) -> list[UserLearningSession]:
        rows = await self.session.execute(
            select(UserLearningSession)
            .options(
                selectinload(UserLearningSession.topic),
                selectinload(UserLearningSession.content),
                selectinload(UserLearningSession.quiz),
                selectinload(UserLearningSession.flashcard_set),
            )
            .where(UserLearningSession.user_id == user_id)
            .order_by(UserLearningSession.created_at.desc())
        )
        return list(rows.scalars().all())


__all__ = [
    "as_uuid",
    "require_uuid",
    "CatalogService",
    "ContentService",
    "QuizService",
    "record_quiz_result",
    "FlashcardService",
    "ChatService",
    "UserService",
    "LearningSessionService",
]
