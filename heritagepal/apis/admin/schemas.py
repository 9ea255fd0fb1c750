from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from heritagepal.modules.generation.models import Difficulty


class ContentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    grade: Optional[int | str] = None
    topic: Optional[str] = None
    contentType: Optional[str] = None


class GenerateQuizRequest(BaseModel):
    difficulty: Optional[Difficulty] = None
    questionCount: Optional[int] = Field(default=None, ge=1, le=50)
