from heritagepal.modules.generation import prompts


def test_summary_prompt_names_topic_and_grade():
    text = prompts.summary_prompt("Rivers of Guyana", "Essequibo facts", 3)
    assert '"Rivers of Guyana"' in text
    assert "grade 3" in text
    assert "Essequibo facts" in text


def test_missing_inputs_fall_back_to_placeholders():
    text = prompts.summary_prompt(None, None, None)
    assert '"unknown"' in text
    assert "any grade" in text
    assert prompts.NO_CONTENT in text


def test_quiz_prompt_uses_count_and_difficulty():
    text = prompts.quiz_prompt("Rivers", "c", 4, "challenging", 7)
    assert "Generate 7 multiple-choice questions" in text
    assert "challenging difficulty" in text


def test_non_numeric_count_uses_default():
    text = prompts.flashcards_prompt("Rivers", "c", 2, count="lots")
    assert f"Generate {prompts.DEFAULT_FLASHCARD_COUNT} flashcards" in text


def test_chat_prompt_renders_history_oldest_first():
    text = prompts.chat_prompt(
        "Why is it called the land of many waters?",
        [("user", "Hi"), ("assistant", "Hello! What shall we learn?")],
        context=None,
        grade=2,
    )
    assert text.index("Student: Hi") < text.index("HeritagePal: Hello!")
    assert "Student's grade level: 2" in text
    assert text.rstrip().endswith("Your response:")


def test_content_analysis_prompt_truncates_long_files():
    body = "x" * (prompts.ANALYSIS_CONTENT_LIMIT + 500)
    text = prompts.content_analysis_prompt("Notes", 5, "History", body)
    assert "x" * prompts.ANALYSIS_CONTENT_LIMIT in text
    assert "x" * (prompts.ANALYSIS_CONTENT_LIMIT + 1) not in text
