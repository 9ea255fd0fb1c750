from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from heritagepal.apis.schemas import GradeRead, GradeTopicRead


class GradeWrite(BaseModel):
    level: Any = None
    name: Optional[str] = None
    description: Optional[str] = None

    def problems(self) -> list[str]:
        problems = []
        if self.level is None:
            problems.append("Grade level is required")
        elif isinstance(self.level, bool) or not isinstance(self.level, int) or not 1 <= self.level <= 6:
            problems.append("Grade level must be an integer between 1 and 6")
        if not self.name or not self.name.strip():
            problems.append("Grade name is required")
        return problems


class GradeResponse(BaseModel):
    message: str
    grade: GradeRead


class TopicAssignmentRequest(BaseModel):
    grade_id: Optional[str] = None
    topic_id: Optional[str] = None


class TopicAssignmentResponse(BaseModel):
    message: str
    assignment: GradeTopicRead
