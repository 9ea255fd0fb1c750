import asyncio
import json
import uuid
from typing import Any, Awaitable, Callable, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from heritagepal.core.db import schemas  # noqa: F401
from heritagepal.core.db.base import Base, build_engine, build_session_maker
from heritagepal.core.db.schemas import (
    Admin,
    EducationalContent,
    Grade,
    GradeTopic,
    Quiz,
    Topic,
    User,
)
from heritagepal.core.jwt_utils import JWTManager
from heritagepal.core.supabase_auth import SupabaseAuthClient
from heritagepal.core.upload_manager import UploadFileManager
from main import create_app


JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

SUMMARY = "Create an educational summary"
QUIZ = "multiple-choice questions about"
FLASHCARDS = "flashcards about"

QUIZ_JSON = json.dumps(
    [
        {
            "question_text": "Which river is the longest in Guyana?",
            "options": ["Essequibo", "Demerara", "Berbice", "Corentyne"],
            "correct_answer": 0,
            "explanation": "The Essequibo is the longest river.",
        },
        {
            "question_text": "Kaieteur Falls is on which river?",
            "options": ["Mazaruni", "Potaro", "Rupununi", "Cuyuni"],
            "correct_answer": 1,
        },
    ]
)
FLASHCARDS_JSON = json.dumps(
    [
        {"term": "Essequibo", "definition": "Longest river in Guyana"},
        {"term": "Kaieteur", "definition": "A tall single-drop waterfall", "example": "Potaro River"},
    ]
)


class FakeGenerator:
    """Answers prompts by fragment match and records every prompt it saw.

    ``replies`` is a list of ``(fragment, reply)``; a reply that is an
    exception is raised instead of returned.
    """

    def __init__(self, replies: Optional[list[tuple[str, Any]]] = None, default: Any = ""):
        self.replies = list(replies or [])
        self.default = default
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.default
        for fragment, candidate in self.replies:
            if fragment in prompt:
                reply = candidate
                break
        if isinstance(reply, BaseException):
            raise reply
        return reply


def learning_set_generator(**overrides: Any) -> FakeGenerator:
    replies = {SUMMARY: "Rivers of Guyana summary.", QUIZ: QUIZ_JSON, FLASHCARDS: FLASHCARDS_JSON}
    replies.update({k: v for k, v in overrides.items()})
    return FakeGenerator(list(replies.items()))


@pytest.fixture
def session_maker(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'heritagepal.db'}", poolclass=NullPool)

    async def create_all():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_all())
    yield build_session_maker(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_maker) -> Callable[[Callable[[AsyncSession], Awaitable[Any]]], Any]:
    """Run ``fn(session)`` to completion in a fresh session and loop."""

    def run(fn):
        async def go():
            async with session_maker() as session:
                result = await fn(session)
                await session.commit()
                return result

        return asyncio.run(go())

    return run


@pytest.fixture
def catalog(run_db) -> dict[str, uuid.UUID]:
    """Grades 3 and 4, a grade-3 topic with content, an unassigned topic, a user and an admin."""
    ids = {
        "grade3": uuid.uuid4(),
        "grade4": uuid.uuid4(),
        "rivers": uuid.uuid4(),
        "symbols": uuid.uuid4(),
        "content": uuid.uuid4(),
        "quiz": uuid.uuid4(),
        "user": uuid.uuid4(),
        "admin": uuid.uuid4(),
    }

    async def seed(session: AsyncSession):
        session.add_all(
            [
                Grade(id=ids["grade3"], level=3, name="Grade 3"),
                Grade(id=ids["grade4"], level=4, name="Grade 4"),
                Topic(
                    id=ids["rivers"],
                    title="Rivers of Guyana",
                    description="Major rivers",
                    content="Guyana means land of many waters. The Essequibo is the longest river.",
                ),
                Topic(id=ids["symbols"], title="National Symbols", content="The Golden Arrowhead."),
                User(id=ids["user"], name="Student", email="student@example.com"),
                Admin(id=ids["admin"], name="Curriculum Admin", email="admin@example.com"),
            ]
        )
        await session.flush()
        session.add(GradeTopic(grade_id=ids["grade3"], topic_id=ids["rivers"]))
        session.add(
            EducationalContent(
                id=ids["content"],
                title="Rivers overview",
                description="Overview of the rivers",
                topic_id=ids["rivers"],
                topic="Rivers of Guyana",
                grade=3,
                processed_content="The Essequibo, Demerara and Berbice are major rivers.",
            )
        )
        session.add(
            Quiz(
                id=ids["quiz"],
                title="Rivers Quiz",
                topic_id=ids["rivers"],
                topic="Rivers of Guyana",
                grade=3,
                questions=QUIZ_JSON,
            )
        )

    run_db(seed)
    return ids


@pytest.fixture
def jwt_manager() -> JWTManager:
    return JWTManager(secret=JWT_SECRET)


@pytest.fixture
def bearer(jwt_manager) -> Callable[[uuid.UUID], dict[str, str]]:
    def make(account_id: uuid.UUID) -> dict[str, str]:
        return {"Authorization": f"Bearer {jwt_manager.generate_token({'sub': account_id})}"}

    return make


@pytest.fixture
def auth_routes() -> dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]]:
    """Handlers for the mocked Supabase Auth API keyed by (method, path)."""
    return {}


@pytest.fixture
def auth_client(auth_routes) -> SupabaseAuthClient:
    def handler(request: httpx.Request) -> httpx.Response:
        route = auth_routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"msg": "not mocked"})
        return route(request)

    return SupabaseAuthClient(
        "https://auth.test/auth/v1",
        anon_key="anon",
        service_key="service",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def generator() -> FakeGenerator:
    return learning_set_generator()


@pytest.fixture
def upload_manager(tmp_path) -> UploadFileManager:
    return UploadFileManager(base_dir=str(tmp_path / "uploads"), max_file_size=1024)


@pytest.fixture
def client(session_maker, generator, auth_client, jwt_manager, upload_manager):
    app = create_app(
        session_maker=session_maker,
        generator=generator,
        auth_client=auth_client,
        jwt_manager=jwt_manager,
        upload_manager=upload_manager,
    )
    with TestClient(app) as c:
        yield c
