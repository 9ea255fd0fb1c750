from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from heritagepal.core.db.base import Base, utcnow
from .catalog import Topic
from .content import EducationalContent
from .flashcards import FlashcardSet
from .quiz import Quiz


class UserLearningSession(Base):
    """Links one persisted learning set (content, quiz, flashcards) to a user."""

    __tablename__ = "user_learning_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    topic_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    content_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("educational_content.id", ondelete="CASCADE"), nullable=False
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )
    flashcard_set_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("flashcard_sets.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    topic: Mapped["Topic"] = relationship("Topic", lazy="raise")
    content: Mapped["EducationalContent"] = relationship(
        "EducationalContent", lazy="raise"
    )
    quiz: Mapped["Quiz"] = relationship("Quiz", lazy="raise")
    flashcard_set: Mapped["FlashcardSet"] = relationship("FlashcardSet", lazy="raise")


__all__ = ["UserLearningSession"]
