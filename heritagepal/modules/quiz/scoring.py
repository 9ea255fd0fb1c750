"""Quiz answer scoring.

Pure functions only; loading the quiz and recording results lives in
``heritagepal.core.db_services.QuizService``.
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from heritagepal.core.exceptions import CorruptDataError


QUESTION_NOT_FOUND = "Question not found"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionResult(_CamelModel):
    question: Optional[str] = None
    user_answer: Optional[int] = None
    correct_answer: Any = None
    is_correct: bool
    explanation: Optional[str] = None


class MissingQuestion(_CamelModel):
    position: int
    error: str = QUESTION_NOT_FOUND


class QuizScore(_CamelModel):
    total_questions: int
    correct_count: int
    percentage: int
    results: list[Union[QuestionResult, MissingQuestion]]


def decode_questions(raw: Any) -> list[dict[str, Any]]:
    """Decode the stored ``questions`` column, raising ``CorruptDataError``."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise CorruptDataError(
                "Error parsing quiz questions", debug_info={"cause": str(e)}
            ) from e
    if not isinstance(raw, list) or not all(isinstance(q, dict) for q in raw):
        raise CorruptDataError("Error parsing quiz questions")
    return raw


def coerce_answer(value: Any) -> Optional[int]:
    """Read a submitted answer as an option index; anything else is ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _optional_text(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


def percentage(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    # round half up
    return math.floor(correct * 100 / total + 0.5)


def score_answers(questions: list[dict[str, Any]], answers: list[Any]) -> QuizScore:
    """Compare answers to questions by position.

    Positions past the last question yield a ``MissingQuestion`` entry; the
    percentage is always relative to the number of questions in the quiz.
    """
    correct = 0
    results: list[Union[QuestionResult, MissingQuestion]] = []
    for i, raw_answer in enumerate(answers):
        if i >= len(questions):
            results.append(MissingQuestion(position=i))
            continue
        question = questions[i]
        answer = coerce_answer(raw_answer)
        expected = question.get("correct_answer")
        is_correct = answer is not None and answer == coerce_answer(expected)
        if is_correct:
            correct += 1
        results.append(
            QuestionResult(
                question=_optional_text(question.get("question_text")),
                user_answer=answer,
                correct_answer=expected,
                is_correct=is_correct,
                explanation=_optional_text(question.get("explanation")),
            )
        )

    return QuizScore(
        total_questions=len(questions),
        correct_count=correct,
        percentage=percentage(correct, len(questions)),
        results=results,
    )


__all__ = [
    "QUESTION_NOT_FOUND",
    "QuestionResult",
    "MissingQuestion",
    "QuizScore",
    "decode_questions",
    "coerce_answer",
    "percentage",
    "score_answers",
]
