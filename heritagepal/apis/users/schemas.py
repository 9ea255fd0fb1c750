from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritagepal.apis.schemas import AccountRead, GradeRead, TopicRef


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AuthResponse(BaseModel):
    user: AccountRead
    token: str


class ProfileResponse(AccountRead):
    grades: list[GradeRead] = Field(default_factory=list)


class LearningSessionRequest(BaseModel):
    topic_id: Optional[str] = None
    grade: Any = None


class LearningSessionCreated(BaseModel):
    session_id: uuid.UUID
    content_id: uuid.UUID
    quiz_id: uuid.UUID
    flashcard_set_id: uuid.UUID
    topic: str
    grade: int


class LearningHistoryItem(BaseModel):
    id: uuid.UUID
    created_at: Optional[datetime] = None
    grade: int
    topics: Optional[TopicRef] = None
    educational_content: Optional[TopicRef] = None
    quizzes: Optional[TopicRef] = None
    flashcard_sets: Optional[TopicRef] = None


class QuizResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quiz_id: uuid.UUID
    session_id: Optional[str] = None
    score: int
    correct_count: int
    total_questions: int
    created_at: Optional[datetime] = None
    quiz_title: Optional[str] = None


class FlashcardActivity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: str
    topic_id: Optional[uuid.UUID] = None
    flashcard_count: int
    created_at: Optional[datetime] = None
    topic_title: Optional[str] = None


class ChatActivity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    session_id: str
    topic: str
    created_at: Optional[datetime] = None


class TopicViewActivity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    topic_id: uuid.UUID
    viewed_at: Optional[datetime] = None
    topic_title: Optional[str] = None


class ActivityResponse(BaseModel):
    quizzes: list[QuizResultRead] = Field(default_factory=list)
    flashcards: list[FlashcardActivity] = Field(default_factory=list)
    chats: list[ChatActivity] = Field(default_factory=list)
    topics: list[TopicViewActivity] = Field(default_factory=list)
    grades: list[uuid.UUID] = Field(default_factory=list)


class AssignGradeRequest(BaseModel):
    grade_id: Optional[str] = None


class UserGradeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    grade_id: uuid.UUID
    created_at: Optional[datetime] = None


class AssignGradeResponse(BaseModel):
    message: str
    assignment: Optional[UserGradeRead] = None
