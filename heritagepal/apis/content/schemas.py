from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from heritagepal.apis.schemas import ContentRead, TopicRead
from heritagepal.modules.generation.models import (
    ContentDraft,
    FlashcardSetDraft,
    QuizDraft,
)


class TopicListItem(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    gradeLevel: Optional[int] = None
    allGrades: list[int] = Field(default_factory=list)


class TopicContentResponse(BaseModel):
    topic: TopicRead
    content: list[ContentRead]


class GradeContentItem(ContentRead):
    topic_title: str = "Unknown Topic"


class SummaryRequest(BaseModel):
    topic: Optional[str] = None
    grade: Optional[int | str] = None


class SummaryResponse(BaseModel):
    topic: str
    topic_id: uuid.UUID
    grade: int
    summary: str


class GeneratedLearningSetResponse(BaseModel):
    topic: str
    grade: int
    timestamp: datetime
    educational_content: ContentDraft
    quiz: QuizDraft
    flashcard_set: FlashcardSetDraft
