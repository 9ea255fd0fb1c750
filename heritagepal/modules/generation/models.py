from __future__ import annotations

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


Difficulty = Literal["easy", "medium", "challenging"]


class QuizQuestion(BaseModel):
    """A single multiple-choice question as produced by the model."""

    question_text: str = Field(min_length=1)
    options: list[str] = Field(min_length=4, max_length=4)
    correct_answer: int = Field(ge=0, le=3)
    explanation: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None

    @field_validator("options")
    @classmethod
    def _strip_options(cls, v: list[str]) -> list[str]:
        return [str(o).strip() for o in v]


class Flashcard(BaseModel):
    term: str = Field(min_length=1)
    definition: str = Field(min_length=1)
    example: Optional[str] = None
    topic: Optional[str] = None
    grade: Optional[int] = None


class TopicFlashcard(BaseModel):
    """Front/back card used by the topic flashcard generator."""

    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    topic: Optional[str] = None


class ContentDraft(BaseModel):
    title: str
    description: str
    topic_id: uuid.UUID
    grade: int
    source: str = "AI-Generated"
    raw_content: str = ""
    processed_content: str


class QuizDraft(BaseModel):
    title: str
    description: str
    topic_id: uuid.UUID
    grade: int
    difficulty: Difficulty = "medium"
    questions: list[QuizQuestion]
    used_fallback: bool = Field(default=False, exclude=True)


class FlashcardSetDraft(BaseModel):
    title: str
    description: str
    topic_id: uuid.UUID
    grade: int
    flashcards: list[Flashcard]
    used_fallback: bool = Field(default=False, exclude=True)


class LearningSet(BaseModel):
    """Summary, quiz and flashcards generated for one topic and grade."""

    educational_content: ContentDraft
    quiz: QuizDraft
    flashcard_set: FlashcardSetDraft


__all__ = [
    "Difficulty",
    "QuizQuestion",
    "Flashcard",
    "TopicFlashcard",
    "ContentDraft",
    "QuizDraft",
    "FlashcardSetDraft",
    "LearningSet",
]
