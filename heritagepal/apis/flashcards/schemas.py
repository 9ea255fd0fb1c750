from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from heritagepal.apis.schemas import FlashcardSetRead
from heritagepal.modules.generation import TopicFlashcard


class FlashcardSetWithTopic(FlashcardSetRead):
    topic_title: Optional[str] = None


class GenerateFlashcardsRequest(BaseModel):
    topic: Optional[str] = None
    grade: Optional[int | str] = None
    count: Optional[int] = Field(default=None, ge=1, le=50)


class GenerateFlashcardsResponse(BaseModel):
    sessionId: str
    topicTitle: str
    grade: Optional[int] = None
    flashcards: list[TopicFlashcard]
    saved: bool
    flashcardSetId: Optional[uuid.UUID] = None


class FlashcardSessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: str
    topic_id: Optional[uuid.UUID] = None
    topic_title: Optional[str] = None
    flashcard_count: int
    created_at: Optional[datetime] = None
