"""Builds a learning set (summary, quiz, flashcards) for one topic and grade."""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional

from heritagepal.core.exceptions import GenerationError
from heritagepal.core.logging import get_logger
from heritagepal.modules.generation import prompts
from heritagepal.modules.generation.fallbacks import (
    EMPTY_SUMMARY_NOTICE,
    fallback_flashcards,
    fallback_quiz,
)
from heritagepal.modules.generation.models import (
    ContentDraft,
    Flashcard,
    FlashcardSetDraft,
    LearningSet,
    QuizDraft,
    QuizQuestion,
)
from heritagepal.modules.generation.parsing import parse_json_array, validate_items
from heritagepal.modules.generation.service import TextGenerator


logger = get_logger(__name__)

RAW_CONTENT_LIMIT = 1000
LEARNING_SET_DIFFICULTY = "medium"
LEARNING_SET_QUIZ_COUNT = 10
LEARNING_SET_FLASHCARD_COUNT = 8


class LearningSetGenerator:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def generate(
        self,
        topic_id: uuid.UUID,
        topic_title: Optional[str],
        topic_content: Optional[str],
        grade: int,
    ) -> LearningSet:
        """Run the three generation calls concurrently and assemble the set.

        Unusable quiz or flashcard output is replaced by the canned fallback;
        a failing generation call raises ``GenerationError``.
        """
        title = (topic_title or "").strip() or prompts.UNKNOWN_TITLE
        content = topic_content or ""

        results = await asyncio.gather(
            self.generator.generate(prompts.summary_prompt(title, content, grade)),
            self.generator.generate(
                prompts.quiz_prompt(
                    title,
                    content,
                    grade,
                    LEARNING_SET_DIFFICULTY,
                    LEARNING_SET_QUIZ_COUNT,
                )
            ),
            self.generator.generate(
                prompts.flashcards_prompt(
                    title, content, grade, LEARNING_SET_FLASHCARD_COUNT
                )
            ),
            return_exceptions=True,
        )
        for outcome in results:
            if isinstance(outcome, (GenerationError, asyncio.CancelledError)):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.error("Learning set generation failed for topic %s: %s", topic_id, outcome)
                raise GenerationError(debug_info={"cause": repr(outcome)}) from outcome
        summary_text, quiz_text, flashcards_text = results

        summary = str(summary_text or "").strip()
        if not summary:
            logger.warning("Empty summary for topic %s; using notice text", topic_id)
            summary = EMPTY_SUMMARY_NOTICE

        questions, quiz_fallback = self._quiz_questions(quiz_text, topic_id)
        cards, cards_fallback = self._flashcards(flashcards_text, topic_id, grade)

        return LearningSet(
            educational_content=ContentDraft(
                title=f"{title} - Summary",
                description=f"A summary of {title} for grade {grade}",
                topic_id=topic_id,
                grade=grade,
                raw_content=content[:RAW_CONTENT_LIMIT],
                processed_content=summary,
            ),
            quiz=QuizDraft(
                title=f"{title} - Quiz",
                description=f"A quiz about {title} for grade {grade}",
                topic_id=topic_id,
                grade=grade,
                difficulty=LEARNING_SET_DIFFICULTY,
                questions=questions,
                used_fallback=quiz_fallback,
            ),
            flashcard_set=FlashcardSetDraft(
                title=f"{title} - Flashcards",
                description=f"Flashcards for learning {title} concepts",
                topic_id=topic_id,
                grade=grade,
                flashcards=cards,
                used_fallback=cards_fallback,
            ),
        )

    def _quiz_questions(
        self, text: str, topic_id: uuid.UUID
    ) -> tuple[list[QuizQuestion], bool]:
        items, reason = validate_items(parse_json_array(text), QuizQuestion)
        if items is None:
            logger.warning("Quiz output unusable for topic %s (%s); using fallback", topic_id, reason)
            return fallback_quiz(), True
        return items, False

    def _flashcards(
        self, text: str, topic_id: uuid.UUID, grade: int
    ) -> tuple[list[Flashcard], bool]:
        items, reason = validate_items(parse_json_array(text), Flashcard)
        if items is None:
            logger.warning(
                "Flashcard output unusable for topic %s (%s); using fallback", topic_id, reason
            )
            return fallback_flashcards(grade), True
        return items, False


__all__ = ["LearningSetGenerator", "RAW_CONTENT_LIMIT"]
