import json

from conftest import QUIZ_JSON, FakeGenerator


PRACTICE = "comprehensive practice exam"
TOPIC_CARDS = "Generate educational flashcards"


def test_quiz_listing_and_lookup(client, catalog):
    quizzes = client.get("/api/quizzes", params={"grade": 3}).json()
    assert [q["title"] for q in quizzes] == ["Rivers Quiz"]
    assert client.get("/api/quizzes", params={"grade": 4}).json() == []
    assert client.get("/api/quizzes/topics").json() == ["Rivers of Guyana"]

    quiz = client.get(f"/api/quizzes/{catalog['quiz']}").json()
    assert json.loads(quiz["questions"])[0]["correct_answer"] == 0


def test_practice_exam_from_generated_questions(client, catalog):
    gen = FakeGenerator([(PRACTICE, QUIZ_JSON)])
    client.app.state.generator = gen
    resp = client.post("/api/quizzes/practice-exam", json={"grade": 3, "questionCount": 2})
    assert resp.status_code == 201
    exam = resp.json()
    assert exam["title"] == "Grade 3 Practice Exam"
    assert exam["grade_id"] == str(catalog["grade3"])
    assert len(json.loads(exam["questions"])) == 2
    assert "Topic: Rivers of Guyana\nTitle: Rivers overview" in gen.prompts[0]


def test_practice_exam_falls_back_on_bad_output(client, catalog):
    client.app.state.generator = FakeGenerator([(PRACTICE, "I could not do that")])
    resp = client.post("/api/quizzes/practice-exam", json={"grade": "3"})
    assert resp.status_code == 201
    questions = json.loads(resp.json()["questions"])
    assert questions[0]["question_text"] == "What is the capital city of Guyana?"


def test_practice_exam_errors(client, catalog):
    assert client.post("/api/quizzes/practice-exam", json={}).json()["detail"] == "Grade is required"
    assert client.post("/api/quizzes/practice-exam", json={"grade": 6}).status_code == 404
    empty = client.post("/api/quizzes/practice-exam", json={"grade": 4})
    assert empty.status_code == 404
    assert empty.json()["detail"] == "No content found for this grade"


def test_generated_flashcards_for_anonymous_user_are_not_saved(client, catalog):
    cards = json.dumps([{"front": "Longest river?", "back": "Essequibo", "topic": "Rivers"}])
    client.app.state.generator = FakeGenerator([(TOPIC_CARDS, cards)])
    resp = client.post("/api/flashcards/generate", json={"topic": "Rivers of Guyana", "grade": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert body["topicTitle"] == "Rivers of Guyana"
    assert body["flashcards"] == [{"front": "Longest river?", "back": "Essequibo", "topic": "Rivers"}]
    assert body["saved"] is False and body["flashcardSetId"] is None


def test_generated_flashcards_saved_for_signed_in_user(client, catalog, bearer):
    client.app.state.generator = FakeGenerator([(TOPIC_CARDS, "not json")])
    headers = bearer(catalog["user"])
    resp = client.post("/api/flashcards/generate", json={"topic": "Rivers of Guyana"}, headers=headers)
    body = resp.json()
    assert body["saved"] is True
    assert body["flashcards"][0]["front"] == "What is the capital of Guyana?"

    stored = client.get(f"/api/flashcards/set/{body['flashcardSetId']}").json()
    assert stored["title"] == "Rivers of Guyana Flashcards"
    assert len(stored["flashcards"]) == 3

    history = client.get("/api/flashcards/history", headers=headers).json()
    assert [(h["session_id"], h["flashcard_count"], h["topic_title"]) for h in history] == [
        (body["sessionId"], 3, "Rivers of Guyana")
    ]
    assert [t["title"] for t in client.get("/api/flashcards/topics").json()] == ["Rivers of Guyana"]


def test_flashcard_generation_needs_topic_or_grade(client, catalog):
    resp = client.post("/api/flashcards/generate", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please provide either a topic or grade"
    unknown = client.post("/api/flashcards/generate", json={"topic": "Volcanoes"})
    assert unknown.status_code == 404
