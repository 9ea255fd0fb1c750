"""Canned content served when generated output cannot be used."""

from __future__ import annotations

from typing import Optional

from heritagepal.modules.generation.models import Flashcard, QuizQuestion, TopicFlashcard


FALLBACK_QUIZ_QUESTIONS: tuple[dict, ...] = (
    {
        "question_text": "What is the capital city of Guyana?",
        "options": ["Georgetown", "Linden", "New Amsterdam", "Bartica"],
        "correct_answer": 0,
        "topic": "Geography",
        "difficulty": "easy",
    },
    {
        "question_text": "Which of these countries does NOT border Guyana?",
        "options": ["Brazil", "Venezuela", "Suriname", "Colombia"],
        "correct_answer": 3,
        "topic": "Geography",
        "difficulty": "medium",
    },
)

# (front, back, topic)
FALLBACK_FLASHCARDS: tuple[tuple[str, str, str], ...] = (
    ("What is the capital of Guyana?", "Georgetown", "Geography"),
    (
        "What are the colors of the Guyanese flag?",
        "Green, yellow, red, black, and white",
        "National Symbols",
    ),
    ("What is the largest river in Guyana?", "The Essequibo River", "Geography"),
)

CHAT_APOLOGY = (
    "I'm sorry, I'm currently having trouble connecting to my knowledge base. "
    "This could be due to a configuration issue or high demand. Please try again "
    "later or contact the administrator if this problem persists."
)

EMPTY_SUMMARY_NOTICE = (
    "A summary could not be generated for this topic right now. "
    "Please review the topic content directly."
)


def fallback_quiz() -> list[QuizQuestion]:
    return [QuizQuestion(**q) for q in FALLBACK_QUIZ_QUESTIONS]


def fallback_flashcards(grade: Optional[int] = None) -> list[Flashcard]:
    return [
        Flashcard(term=front, definition=back, topic=topic, grade=grade)
        for front, back, topic in FALLBACK_FLASHCARDS
    ]


def fallback_topic_flashcards() -> list[TopicFlashcard]:
    return [
        TopicFlashcard(front=front, back=back, topic=topic)
        for front, back, topic in FALLBACK_FLASHCARDS
    ]
