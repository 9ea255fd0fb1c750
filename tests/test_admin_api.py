import json

import pytest

from conftest import QUIZ, FakeGenerator, learning_set_generator


ANALYSIS = "Analyze the following educational content"


@pytest.fixture
def admin_headers(bearer, catalog):
    return bearer(catalog["admin"])


def _form(**overrides):
    data = {"title": "Rivers handout", "grade": "3", "topic": "Rivers of Guyana", "contentType": "notes"}
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def _stored(upload_manager):
    if not upload_manager.base_dir.exists():
        return []
    return list(upload_manager.base_dir.iterdir())


def test_upload_stores_file_and_analysis(client, catalog, admin_headers, upload_manager):
    gen = FakeGenerator([(ANALYSIS, '{"key_concepts": ["rivers"]}')])
    client.app.state.generator = gen
    resp = client.post(
        "/api/admin/content",
        data=_form(topic=str(catalog["rivers"])),
        files={"file": ("rivers.txt", b"The Essequibo is the longest river.", "text/plain")},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["processed_content"] == '{"key_concepts": ["rivers"]}'
    assert body["topic_id"] == str(catalog["rivers"])
    assert body["topic"] == "Rivers of Guyana"
    assert body["file_original_name"] == "rivers.txt"
    assert body["file_size"] == 35
    assert body["uploaded_by"] == str(catalog["admin"])
    assert "The Essequibo is the longest river." in gen.prompts[0]
    assert len(_stored(upload_manager)) == 1


def test_upload_rejects_unknown_extension(client, catalog, admin_headers, upload_manager):
    resp = client.post(
        "/api/admin/content",
        data=_form(),
        files={"file": ("script.exe", b"MZ", "application/octet-stream")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Unsupported file type")
    assert _stored(upload_manager) == []


def test_oversized_upload_leaves_no_file(client, catalog, admin_headers, upload_manager, generator):
    resp = client.post(
        "/api/admin/content",
        data=_form(),
        files={"file": ("big.txt", b"x" * 2048, "text/plain")},
        headers=admin_headers,
    )
    assert resp.status_code == 413
    assert _stored(upload_manager) == []
    assert generator.prompts == []


def test_failed_analysis_removes_file(client, catalog, admin_headers, upload_manager):
    client.app.state.generator = FakeGenerator(default=RuntimeError("model offline"))
    with pytest.raises(RuntimeError):
        client.post(
            "/api/admin/content",
            data=_form(),
            files={"file": ("rivers.txt", b"text", "text/plain")},
            headers=admin_headers,
        )
    assert _stored(upload_manager) == []


@pytest.mark.parametrize(
    "form, files, detail",
    [
        (_form(), None, "Please upload a file"),
        (_form(contentType=None), {"file": ("a.txt", b"a", "text/plain")}, "Please provide title, grade, topic, and content type"),
        (_form(grade="8"), {"file": ("a.txt", b"a", "text/plain")}, "Valid grade level (1-6) is required"),
    ],
)
def test_upload_validation(client, catalog, admin_headers, upload_manager, form, files, detail):
    resp = client.post("/api/admin/content", data=form, files=files, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == detail
    assert _stored(upload_manager) == []


def test_upload_is_admin_only(client, catalog, bearer):
    resp = client.post(
        "/api/admin/content",
        data=_form(),
        files={"file": ("a.txt", b"a", "text/plain")},
        headers=bearer(catalog["user"]),
    )
    assert resp.status_code == 403


def test_update_and_delete_content(client, catalog, admin_headers):
    path = f"/api/admin/content/{catalog['content']}"
    updated = client.put(path, json={"title": "Rivers and falls", "grade": "4"}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["title"] == "Rivers and falls"
    assert updated.json()["grade"] == 4

    assert client.delete(path, headers=admin_headers).json() == {"message": "Content deleted successfully"}
    assert client.get(path, headers=admin_headers).status_code == 404


def test_generate_quiz_from_content(client, catalog, admin_headers, generator):
    resp = client.post(
        f"/api/admin/content/{catalog['content']}/generate-quiz",
        json={"difficulty": "easy", "questionCount": 2},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    quiz = resp.json()
    assert quiz["title"] == "Rivers overview Quiz"
    assert quiz["difficulty"] == "easy"
    assert quiz["content_id"] == str(catalog["content"])
    assert len(json.loads(quiz["questions"])) == 2
    assert "Generate a quiz with 2 multiple-choice questions" in generator.prompts[0]


def test_unparseable_generated_quiz_is_bad_gateway(client, catalog, admin_headers):
    client.app.state.generator = learning_set_generator(**{QUIZ: "Sorry, I cannot help."})
    resp = client.post(
        f"/api/admin/content/{catalog['content']}/generate-quiz",
        json={},
        headers=admin_headers,
    )
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Generated quiz could not be parsed"


def test_invalid_difficulty(client, catalog, admin_headers):
    resp = client.post(
        f"/api/admin/content/{catalog['content']}/generate-quiz",
        json={"difficulty": "impossible"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
