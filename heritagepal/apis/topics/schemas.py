from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from heritagepal.apis.schemas import GradeRead, GradeTopicRead, TopicRead


class TopicWithGrades(TopicRead):
    grades: list[GradeRead] = Field(default_factory=list)


class TopicCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    grade_ids: Optional[list[Any]] = None


class TopicUpdate(TopicCreate):
    pass


class TopicGradesRequest(BaseModel):
    grade_ids: Optional[list[Any]] = None


class TopicGradesResponse(BaseModel):
    message: str
    assignments: list[GradeTopicRead]
