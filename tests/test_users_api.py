import json
import uuid

import httpx
import pytest
from sqlalchemy import func, select

from heritagepal.core.db.schemas import EducationalContent, User, UserLearningSession


NEW_ID = uuid.uuid4()


def _count(run_db, model):
    async def count(session):
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()

    return run_db(count)


def _token_route(user_id, email, name=None):
    def handler(request):
        meta = {"name": name} if name else {}
        return httpx.Response(
            200,
            json={"access_token": f"token-{user_id}", "user": {"id": str(user_id), "email": email, "user_metadata": meta}},
        )

    return handler


def test_learning_session_is_saved_and_listed(client, catalog, bearer, generator):
    headers = bearer(catalog["user"])
    resp = client.post(
        "/api/users/learning-session",
        json={"topic_id": str(catalog["rivers"]), "grade": "3"},
        headers=headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["topic"] == "Rivers of Guyana" and body["grade"] == 3
    for key in ("session_id", "content_id", "quiz_id", "flashcard_set_id"):
        uuid.UUID(body[key])
    assert len(generator.prompts) == 3

    history = client.get("/api/users/learning-history", headers=headers).json()
    assert len(history) == 1
    item = history[0]
    assert item["id"] == body["session_id"]
    assert item["grade"] == 3
    assert item["topics"]["title"] == "Rivers of Guyana"
    assert item["quizzes"] == {"id": body["quiz_id"], "title": "Rivers of Guyana - Quiz"}
    assert client.get("/api/users/learning-sessions", headers=headers).json() == history


@pytest.mark.parametrize("grade", [None, 0, 7, "abc", True, "²"])
def test_learning_session_rejects_bad_grade(client, catalog, bearer, generator, run_db, grade):
    resp = client.post(
        "/api/users/learning-session",
        json={"topic_id": str(catalog["rivers"]), "grade": grade},
        headers=bearer(catalog["user"]),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Valid grade level (1-6) is required"
    assert generator.prompts == []
    assert _count(run_db, UserLearningSession) == 0


def test_learning_session_needs_login(client, catalog, generator):
    resp = client.post("/api/users/learning-session", json={"topic_id": str(catalog["rivers"]), "grade": 3})
    assert resp.status_code == 401
    assert generator.prompts == []


def test_expired_or_forged_token_is_rejected(client, catalog):
    resp = client.get("/api/users/profile", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.json()["detail"].startswith("Authentication failed")


def test_unknown_topic_for_learning_session(client, catalog, bearer, generator):
    resp = client.post(
        "/api/users/learning-session",
        json={"topic_id": str(uuid.uuid4()), "grade": 3},
        headers=bearer(catalog["user"]),
    )
    assert resp.status_code == 404
    assert generator.prompts == []


def test_register_creates_account(client, catalog, auth_routes, run_db):
    created = {}

    def admin_users(request):
        created.update(json.loads(request.read()))
        return httpx.Response(200, json={"id": str(NEW_ID), "email": "new@example.com"})

    auth_routes[("POST", "/auth/v1/admin/users")] = admin_users
    auth_routes[("POST", "/auth/v1/token")] = _token_route(NEW_ID, "new@example.com", "New Student")

    resp = client.post(
        "/api/users/register",
        json={"name": "New Student", "email": "New@Example.com", "password": "secret"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token"] == f"token-{NEW_ID}"
    assert body["user"] == {"id": str(NEW_ID), "name": "New Student", "email": "new@example.com", "role": "user"}
    assert created["user_metadata"] == {"name": "New Student"}
    assert _count(run_db, User) == 2


def test_register_existing_account_signs_in(client, catalog, auth_routes):
    auth_routes[("POST", "/auth/v1/admin/users")] = lambda r: httpx.Response(422, json={"msg": "exists"})
    auth_routes[("POST", "/auth/v1/token")] = _token_route(catalog["user"], "student@example.com")

    resp = client.post(
        "/api/users/register",
        json={"name": "Student", "email": "student@example.com", "password": "secret"},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == str(catalog["user"])


def test_register_removes_auth_account_when_profile_insert_fails(client, catalog, auth_routes):
    deleted = []
    auth_routes[("POST", "/auth/v1/admin/users")] = lambda r: httpx.Response(
        200, json={"id": str(NEW_ID), "email": "student@example.com"}
    )

    def delete_user(request):
        deleted.append(request.url.path)
        return httpx.Response(200, json={})

    auth_routes[("DELETE", f"/auth/v1/admin/users/{NEW_ID}")] = delete_user

    resp = client.post(
        "/api/users/register",
        json={"name": "Copy", "email": "student@example.com", "password": "secret"},
    )
    assert resp.status_code == 409
    assert deleted == [f"/auth/v1/admin/users/{NEW_ID}"]


def test_register_requires_every_field(client, catalog):
    resp = client.post("/api/users/register", json={"email": "a@example.com"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please add all fields"


def test_login_creates_missing_profile(client, catalog, auth_routes, run_db):
    auth_routes[("POST", "/auth/v1/token")] = _token_route(NEW_ID, "fresh@example.com")
    resp = client.post("/api/users/login", json={"email": "fresh@example.com", "password": "secret"})
    assert resp.status_code == 200
    assert resp.json()["user"]["name"] == "fresh"
    assert _count(run_db, User) == 2


def test_login_with_bad_password(client, catalog, auth_routes):
    auth_routes[("POST", "/auth/v1/token")] = lambda r: httpx.Response(
        400, json={"error_description": "Invalid login credentials"}
    )
    resp = client.post("/api/users/login", json={"email": "student@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication failed: Invalid login credentials"


def test_profile_lists_assigned_grades(client, catalog, bearer):
    headers = bearer(catalog["user"])
    first = client.post(f"/api/users/{catalog['user']}/grades", json={"grade_id": str(catalog["grade4"])}, headers=headers)
    assert first.status_code == 201
    assert first.json()["assignment"]["grade_id"] == str(catalog["grade4"])

    again = client.post(f"/api/users/{catalog['user']}/grades", json={"grade_id": str(catalog["grade4"])}, headers=headers)
    assert again.status_code == 200
    assert again.json() == {"message": "User is already assigned to this grade"}

    profile = client.get("/api/users/profile", headers=headers).json()
    assert profile["email"] == "student@example.com"
    assert [g["level"] for g in profile["grades"]] == [4]

    removed = client.delete(f"/api/users/{catalog['user']}/grades/{catalog['grade4']}", headers=headers)
    assert removed.status_code == 200
    assert client.get(f"/api/users/{catalog['user']}/grades", headers=headers).json() == []
    gone = client.delete(f"/api/users/{catalog['user']}/grades/{catalog['grade4']}", headers=headers)
    assert gone.status_code == 404


def test_activity_collects_each_kind(client, catalog, bearer):
    headers = bearer(catalog["user"])
    client.post(f"/api/quizzes/{catalog['quiz']}/submit", json={"answers": [0, 1]}, headers=headers)
    client.post(f"/api/topics/{catalog['rivers']}/view", headers=headers)

    activity = client.get("/api/users/activity", headers=headers).json()
    assert [q["quiz_title"] for q in activity["quizzes"]] == ["Rivers Quiz"]
    assert activity["quizzes"][0]["score"] == 100
    assert [t["topic_title"] for t in activity["topics"]] == ["Rivers of Guyana"]
    assert activity["flashcards"] == [] and activity["chats"] == [] and activity["grades"] == []


def test_generated_content_belongs_to_user(client, catalog, bearer, run_db):
    client.post(
        "/api/users/learning-session",
        json={"topic_id": str(catalog["rivers"]), "grade": 3},
        headers=bearer(catalog["user"]),
    )

    async def generated(session):
        rows = await session.execute(select(EducationalContent).where(EducationalContent.is_ai_generated))
        return rows.scalars().all()

    rows = run_db(generated)
    assert [(r.user_id, r.grade) for r in rows] == [(catalog["user"], 3)]
