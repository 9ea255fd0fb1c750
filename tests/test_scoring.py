import json

import pytest
from sqlalchemy import select, text

from heritagepal.core.db.schemas import Quiz, QuizResult
from heritagepal.core.exceptions import CorruptDataError
from heritagepal.modules.quiz.scoring import (
    QUESTION_NOT_FOUND,
    MissingQuestion,
    decode_questions,
    percentage,
    score_answers,
)

from conftest import QUIZ_JSON


QUESTIONS = json.loads(QUIZ_JSON)


def test_scores_by_position():
    score = score_answers(QUESTIONS, [0, 2])
    assert score.total_questions == 2
    assert score.correct_count == 1
    assert score.percentage == 50
    first, second = score.results
    assert first.is_correct and first.question == "Which river is the longest in Guyana?"
    assert first.explanation == "The Essequibo is the longest river."
    assert not second.is_correct and second.user_answer == 2 and second.correct_answer == 1


def test_numeric_strings_count_as_answers():
    score = score_answers(QUESTIONS, ["0", " 1 "])
    assert score.correct_count == 2
    assert score.percentage == 100


def test_unreadable_answers_are_wrong():
    score = score_answers(QUESTIONS, [True, "first"])
    assert score.correct_count == 0
    assert [r.user_answer for r in score.results] == [None, None]


def test_extra_answers_report_missing_questions():
    score = score_answers(QUESTIONS, [0, 1, 3])
    assert score.correct_count == 2
    assert score.percentage == 100
    extra = score.results[2]
    assert isinstance(extra, MissingQuestion)
    assert extra.error == QUESTION_NOT_FOUND


def test_percentage_with_no_questions_is_zero():
    score = score_answers([], [1])
    assert score.percentage == 0
    assert score.total_questions == 0


def test_percentage_rounds_half_up():
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13


def test_scoring_is_repeatable():
    assert score_answers(QUESTIONS, [0, 1]) == score_answers(QUESTIONS, [0, 1])


@pytest.mark.parametrize("raw", ["not json", json.dumps({"a": 1}), json.dumps([1, 2])])
def test_corrupt_questions_raise(raw):
    with pytest.raises(CorruptDataError):
        decode_questions(raw)


def test_submit_returns_camel_case_score(client, catalog):
    resp = client.post(f"/api/quizzes/{catalog['quiz']}/submit", json={"answers": [0, 0]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalQuestions"] == 2
    assert body["correctCount"] == 1
    assert body["percentage"] == 50
    assert body["results"][0]["isCorrect"] is True
    assert body["results"][1]["userAnswer"] == 0


def test_submit_records_result_for_session(client, catalog, run_db):
    resp = client.post(
        f"/api/quizzes/{catalog['quiz']}/submit",
        json={"answers": [0, 1], "sessionId": "browser-123"},
    )
    assert resp.status_code == 200

    async def results(session):
        return (await session.execute(select(QuizResult))).scalars().all()

    rows = run_db(results)
    assert len(rows) == 1
    assert rows[0].session_id == "browser-123"
    assert rows[0].score == 100
    assert rows[0].total_questions == 2


def test_failed_result_write_keeps_the_score(client, catalog, run_db):
    async def drop_results(session):
        await session.execute(text("DROP TABLE quiz_results"))

    run_db(drop_results)

    resp = client.post(
        f"/api/quizzes/{catalog['quiz']}/submit",
        json={"answers": [0, 1], "sessionId": "browser-123"},
    )
    assert resp.status_code == 200
    assert resp.json()["percentage"] == 100
    assert resp.json()["correctCount"] == 2


def test_anonymous_submit_without_session_records_nothing(client, catalog, run_db):
    client.post(f"/api/quizzes/{catalog['quiz']}/submit", json={"answers": [0, 1]})

    async def results(session):
        return (await session.execute(select(QuizResult))).scalars().all()

    assert run_db(results) == []


def test_submit_requires_a_list(client, catalog):
    resp = client.post(f"/api/quizzes/{catalog['quiz']}/submit", json={"answers": "0,1"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please provide an array of answers"


@pytest.mark.parametrize("quiz_id", ["not-a-uuid", "6f1c2e0a-1b7e-4e7b-9a53-1c2d3e4f5a6b"])
def test_submit_unknown_quiz(client, catalog, quiz_id):
    resp = client.post(f"/api/quizzes/{quiz_id}/submit", json={"answers": [0]})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Quiz not found"


def test_submit_against_corrupt_quiz(client, catalog, run_db):
    async def corrupt(session):
        quiz = await session.get(Quiz, catalog["quiz"])
        quiz.questions = "{{ not json"

    run_db(corrupt)
    resp = client.post(f"/api/quizzes/{catalog['quiz']}/submit", json={"answers": [0]})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Error parsing quiz questions"
