import uuid

import pytest

from heritagepal.core.exceptions import GenerationError

from conftest import QUIZ, learning_set_generator


def test_topics_report_their_grades(client, catalog):
    topics = client.get("/api/content/topics").json()
    assert [t["title"] for t in topics] == ["National Symbols", "Rivers of Guyana"]
    symbols, rivers = topics
    assert rivers["gradeLevel"] == 3 and rivers["allGrades"] == [3]
    assert symbols["gradeLevel"] is None and symbols["allGrades"] == []


def test_topic_content_checks_grade_assignment(client, catalog):
    ok = client.get(f"/api/content/topic/{catalog['rivers']}", params={"grade": 3})
    assert ok.status_code == 200
    assert [c["title"] for c in ok.json()["content"]] == ["Rivers overview"]

    wrong = client.get(f"/api/content/topic/{catalog['rivers']}", params={"grade": 4})
    assert wrong.status_code == 404
    assert wrong.json()["detail"] == "This topic is not available for the specified grade"


def test_grade_content_names_topics(client, catalog):
    items = client.get("/api/content/grade/3").json()
    assert [(i["title"], i["topic_title"]) for i in items] == [("Rivers overview", "Rivers of Guyana")]
    assert client.get("/api/content/grade/4").json() == []
    assert client.get("/api/content/grade/9").status_code == 404


def test_summary_uses_stored_content(client, catalog, generator):
    resp = client.post("/api/content/summary", json={"topic": str(catalog["rivers"]), "grade": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert body == {
        "topic": "Rivers of Guyana",
        "topic_id": str(catalog["rivers"]),
        "grade": 3,
        "summary": "Rivers of Guyana summary.",
    }
    assert "Rivers overview: The Essequibo, Demerara and Berbice" in generator.prompts[0]


@pytest.mark.parametrize(
    "payload, status, detail",
    [
        ({"grade": 3}, 400, "Topic and grade are required"),
        ({"topic": "x", "grade": 9}, 404, "Grade not found"),
        ({"topic": str(uuid.uuid4()), "grade": 3}, 404, "Topic not found"),
    ],
)
def test_summary_errors(client, catalog, generator, payload, status, detail):
    resp = client.post("/api/content/summary", json=payload)
    assert resp.status_code == status
    assert resp.json()["detail"] == detail
    assert generator.prompts == []


def test_summary_for_unassigned_topic(client, catalog):
    resp = client.post("/api/content/summary", json={"topic": str(catalog["symbols"]), "grade": 3})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "This topic is not available for the specified grade"


def test_search_matches_text_and_filters_by_grade(client, catalog):
    assert [c["title"] for c in client.get("/api/content/search", params={"query": "demerara"}).json()] == [
        "Rivers overview"
    ]
    assert client.get("/api/content/search", params={"query": "demerara", "grade": 4}).json() == []
    missing = client.get("/api/content/search", params={"query": "  "})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Search query is required"


def test_generate_returns_unsaved_learning_set(client, catalog, generator):
    resp = client.get("/api/content/generate", params={"topic_id": str(catalog["rivers"]), "grade": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert body["topic"] == "Rivers of Guyana"
    assert body["grade"] == 3
    assert body["timestamp"]
    assert body["educational_content"]["processed_content"] == "Rivers of Guyana summary."
    assert len(body["quiz"]["questions"]) == 2
    assert body["flashcard_set"]["flashcards"][0]["term"] == "Essequibo"
    assert "used_fallback" not in body["quiz"]
    assert len(generator.prompts) == 3


@pytest.mark.parametrize("grade", [None, "7", "0", "three", "2.5", "²", "--3"])
def test_generate_rejects_bad_grade_before_generating(client, catalog, generator, grade):
    params = {"topic_id": str(catalog["rivers"])}
    if grade is not None:
        params["grade"] = grade
    resp = client.get("/api/content/generate", params=params)
    assert resp.status_code == 400
    assert "grade" in resp.json()["detail"].lower()
    assert generator.prompts == []


def test_generate_needs_topic(client, catalog, generator):
    missing = client.get("/api/content/generate", params={"grade": 3})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Topic ID is required"

    unknown = client.get("/api/content/generate", params={"topic_id": str(uuid.uuid4()), "grade": 3})
    assert unknown.status_code == 404
    assert generator.prompts == []


def test_generation_outage_is_bad_gateway(client, catalog):
    client.app.state.generator = learning_set_generator(**{QUIZ: GenerationError()})
    resp = client.get("/api/content/generate", params={"topic_id": str(catalog["rivers"]), "grade": 3})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Content generation failed"
