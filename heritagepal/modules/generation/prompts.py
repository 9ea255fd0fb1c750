"""Prompt templates for every generative feature.

All builders are pure and tolerate ``None`` for any argument so a partially
populated topic row never breaks a request.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


NO_CONTENT = "No specific content provided."
UNKNOWN_TITLE = "unknown"
ANY_GRADE = "any grade"
DEFAULT_DIFFICULTY = "medium"
DEFAULT_QUIZ_COUNT = 10
DEFAULT_FLASHCARD_COUNT = 8
ANALYSIS_CONTENT_LIMIT = 15000


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def _grade(grade: Any) -> str:
    g = _text(grade, "")
    return f"grade {g}" if g else ANY_GRADE


def _count(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def summary_prompt(title: Optional[str], content: Optional[str], grade: Any) -> str:
    topic = _text(title, UNKNOWN_TITLE)
    audience = _grade(grade)
    return (
        f'Create an educational summary about "{topic}" for Guyanese {audience} '
        "Social Studies students.\n\n"
        "Based on the following educational content:\n"
        f"{_text(content, NO_CONTENT)}\n\n"
        "Create a well-structured summary with these sections:\n"
        "1. Introduction: Brief explanation of what this topic is about\n"
        "2. Key Points: The most important facts and concepts (4-6 bullet points)\n"
        "3. Important Vocabulary: Key terms and definitions (3-5 terms)\n"
        "4. Summary: A concise paragraph summarizing the topic\n\n"
        f"Make the language appropriate for {audience} students. Keep your response "
        "focused on the factual content related to Guyanese Social Studies."
    )


def quiz_prompt(
    title: Optional[str],
    content: Optional[str],
    grade: Any,
    difficulty: Optional[str] = DEFAULT_DIFFICULTY,
    count: Any = DEFAULT_QUIZ_COUNT,
) -> str:
    topic = _text(title, UNKNOWN_TITLE)
    audience = _grade(grade)
    level = _text(difficulty, DEFAULT_DIFFICULTY)
    n = _count(count, DEFAULT_QUIZ_COUNT)
    return (
        f'Generate {n} multiple-choice questions about "{topic}" for Guyanese '
        f"{audience} Social Studies students.\n\n"
        "Based on the following educational content:\n"
        f"{_text(content, NO_CONTENT)}\n\n"
        f"The questions should be at {level} difficulty level.\n\n"
        "Return ONLY a JSON array (no code fences, no commentary) where each "
        "question has:\n"
        "- question_text: the question (string)\n"
        "- options: array of exactly 4 possible answers (strings)\n"
        "- correct_answer: the index of the correct option (integer 0-3)\n"
        "- explanation: brief explanation of why the answer is correct (string)\n"
        f'- topic: "{topic}"\n'
        f'- difficulty: "{level}"\n\n'
        f"Make questions appropriate for {audience} students. Focus on factual "
        "knowledge related to Guyanese Social Studies."
    )


def flashcards_prompt(
    title: Optional[str],
    content: Optional[str],
    grade: Any,
    count: Any = DEFAULT_FLASHCARD_COUNT,
) -> str:
    topic = _text(title, UNKNOWN_TITLE)
    audience = _grade(grade)
    n = _count(count, DEFAULT_FLASHCARD_COUNT)
    grade_field = _text(grade, "null")
    return (
        f'Generate {n} flashcards about "{topic}" for Guyanese {audience} '
        "Social Studies students.\n\n"
        "Based on the following educational content:\n"
        f"{_text(content, NO_CONTENT)}\n\n"
        "Return ONLY a JSON array (no code fences, no commentary) where each "
        "flashcard has:\n"
        "- term: the term or concept, front of card (string)\n"
        "- definition: the definition or explanation, back of card (string)\n"
        "- example: a brief example to illustrate the concept (string, optional)\n"
        f'- topic: "{topic}"\n'
        f"- grade: {grade_field}\n\n"
        f"Focus on key terms, concepts, and facts that are important for {audience} "
        f'students to understand about "{topic}".'
    )


CHAT_PERSONA = (
    "You are HeritagePal, an educational AI tutor designed specifically for "
    "Guyanese primary school students (grades 1-6) studying Social Studies. "
    "You should respond in a friendly, encouraging, and age-appropriate manner.\n\n"
    "Your knowledge is based on the Guyanese Social Studies curriculum. Only "
    "provide information that is factually accurate and relevant to the Guyanese "
    "context. If you're not sure about something, admit that you don't know "
    "rather than making up information.\n\n"
    "When explaining concepts, use simple language appropriate for the student's "
    "grade level. For younger students (grades 1-3), use very simple explanations "
    "with short sentences. For older students (grades 4-6), you can use more "
    "complex vocabulary and longer explanations."
)


def chat_prompt(
    message: Optional[str],
    history: Optional[Iterable[tuple[str, str]]] = None,
    context: Optional[str] = None,
    grade: Any = None,
) -> str:
    """Render the tutor prompt; ``history`` is ``(role, content)`` oldest first."""
    lines = []
    for role, text in history or ():
        speaker = "Student" if role == "user" else "HeritagePal"
        lines.append(f"{speaker}: {text}")
    conversation = "\n".join(lines) or "This is the start of the conversation."
    return (
        f"{CHAT_PERSONA}\n\n"
        f"Recent conversation history:\n{conversation}\n\n"
        f"Relevant educational content:\n{_text(context, NO_CONTENT)}\n\n"
        f"Student's grade level: {_text(grade, 'unknown')}\n\n"
        f"Student's question: {_text(message, '')}\n\n"
        "Your response:"
    )


def practice_exam_prompt(context: Optional[str], grade: Any, count: Any = 15) -> str:
    audience = _grade(grade)
    n = _count(count, 15)
    return (
        "Generate a comprehensive practice exam for Guyanese Social Studies for "
        f"{audience} students.\n\n"
        "Based on the following educational content:\n"
        f"{_text(context, NO_CONTENT)}\n\n"
        f"Create a well-rounded practice exam with {n} multiple-choice questions "
        "covering the topics provided. Include a mix of difficulty levels "
        f"appropriate for {audience}.\n\n"
        "Return ONLY a JSON array where each question has:\n"
        "- question_text: the question\n"
        "- options: array of 4 possible answers\n"
        "- correct_answer: the index of the correct option (0-3)\n"
        "- topic: the topic this question relates to\n"
        '- difficulty: "easy", "medium", or "challenging"'
    )


def content_analysis_prompt(
    title: Optional[str], grade: Any, topic: Optional[str], content: Optional[str]
) -> str:
    body = _text(content, NO_CONTENT)[:ANALYSIS_CONTENT_LIMIT]
    audience = _grade(grade)
    return (
        "Analyze the following educational content for Guyanese Social Studies:\n\n"
        f"Title: {_text(title, UNKNOWN_TITLE)}\n"
        f"Grade: {_text(grade, 'unknown')}\n"
        f"Topic: {_text(topic, UNKNOWN_TITLE)}\n\n"
        f"Content:\n{body}\n\n"
        "Extract and organize the key concepts, facts, terms, and questions that "
        f"would be appropriate for primary school students in {audience}. "
        "Structure the response as JSON with these fields:\n"
        "- key_concepts: array of main ideas\n"
        "- important_facts: array of factual information\n"
        "- vocabulary: array of terms with definitions\n"
        "- potential_questions: array of questions for quizzes"
    )


def topic_flashcards_prompt(context: Optional[str], grade: Any, count: Any = 10) -> str:
    n = _count(count, 10)
    audience = _grade(grade)
    return (
        "Generate educational flashcards for Guyanese primary school students "
        "studying Social Studies.\n\n"
        f"Based on the following content:\n{_text(context, NO_CONTENT)}\n\n"
        f"Create {n} flashcards that are appropriate for {audience} students. "
        "Each flashcard should have a question on the front and the answer on the "
        "back. Make the flashcards educational, accurate, and relevant to Guyanese "
        "Social Studies.\n\n"
        "Return ONLY a JSON array where each flashcard has:\n"
        "- front: the question or term\n"
        "- back: the answer or definition\n"
        "- topic: the specific topic this relates to"
    )


def content_quiz_prompt(
    title: Optional[str],
    grade: Any,
    topic: Optional[str],
    processed_content: Optional[str],
    difficulty: Optional[str] = DEFAULT_DIFFICULTY,
    count: Any = DEFAULT_QUIZ_COUNT,
) -> str:
    n = _count(count, DEFAULT_QUIZ_COUNT)
    level = _text(difficulty, DEFAULT_DIFFICULTY)
    return (
        "Using the following educational content for Guyanese Social Studies:\n\n"
        f"Title: {_text(title, UNKNOWN_TITLE)}\n"
        f"Grade: {_text(grade, 'unknown')}\n"
        f"Topic: {_text(topic, UNKNOWN_TITLE)}\n\n"
        f"Processed Content:\n{_text(processed_content, NO_CONTENT)}\n\n"
        f"Generate a quiz with {n} multiple-choice questions about this content. "
        f"The difficulty level should be {level} for {_grade(grade)} students.\n\n"
        "Return ONLY a JSON array where each question has:\n"
        "- question_text: the question\n"
        "- options: array of 4 possible answers\n"
        "- correct_answer: the index of the correct option (0-3)\n"
        "- explanation: brief explanation of the answer"
    )


__all__ = [
    "NO_CONTENT",
    "summary_prompt",
    "quiz_prompt",
    "flashcards_prompt",
    "chat_prompt",
    "practice_exam_prompt",
    "content_analysis_prompt",
    "topic_flashcards_prompt",
    "content_quiz_prompt",
]
