from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuizSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None
    topic: Optional[str] = None
    grade: Optional[int] = None
    difficulty: Optional[str] = None
    created_at: Optional[datetime] = None


class PracticeExamRequest(BaseModel):
    grade: Optional[int | str] = None
    topics: Optional[list[str]] = None
    questionCount: Optional[int] = Field(default=None, ge=1, le=50)


class PracticeExamRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    grade_id: uuid.UUID
    questions: str
    created_at: Optional[datetime] = None


class SubmitAnswersRequest(BaseModel):
    answers: Optional[Any] = None
    sessionId: Optional[str] = None
