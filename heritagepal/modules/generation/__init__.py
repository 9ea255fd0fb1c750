"""Generation module exports."""

from .models import Flashcard, LearningSet, QuizQuestion, TopicFlashcard
from .orchestrator import LearningSetGenerator
from .parsing import ParseResult, parse_json_array
from .service import GenerationService, TextGenerator

__all__ = [
    "Flashcard",
    "LearningSet",
    "QuizQuestion",
    "TopicFlashcard",
    "LearningSetGenerator",
    "ParseResult",
    "parse_json_array",
    "GenerationService",
    "TextGenerator",
]
