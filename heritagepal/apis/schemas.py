"""Read models for store rows shared by several routers."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class GradeRead(_Row):
    id: uuid.UUID
    level: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TopicRead(_Row):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TopicRef(_Row):
    id: uuid.UUID
    title: str


class ContentRead(_Row):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None
    topic: Optional[str] = None
    grade: Optional[int] = None
    source: Optional[str] = None
    raw_content: Optional[str] = None
    processed_content: Optional[str] = None
    content_type: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    file_original_name: Optional[str] = None
    file_size: Optional[int] = None
    file_mime_type: Optional[str] = None
    uploaded_by: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    is_ai_generated: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuizRead(_Row):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None
    topic: Optional[str] = None
    content_id: Optional[uuid.UUID] = None
    grade: Optional[int] = None
    difficulty: Optional[str] = None
    questions: str = Field(description="JSON-encoded question list")
    user_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    is_ai_generated: bool = False
    created_at: Optional[datetime] = None


class FlashcardSetRead(_Row):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None
    grade: Optional[int] = None
    flashcards: list[dict[str, Any]] = Field(default_factory=list)
    user_id: Optional[uuid.UUID] = None
    is_ai_generated: bool = False
    created_at: Optional[datetime] = None


class AccountRead(_Row):
    id: uuid.UUID
    name: str
    email: str
    role: str


class MessageResponse(BaseModel):
    message: str


class GradeTopicRead(_Row):
    id: uuid.UUID
    grade_id: uuid.UUID
    topic_id: uuid.UUID
    created_at: Optional[datetime] = None
