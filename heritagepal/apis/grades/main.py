from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import AdminUser
from heritagepal.apis.schemas import GradeRead, GradeTopicRead, MessageResponse, TopicRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import CatalogService
from heritagepal.core.exceptions import ValidationError
from .schemas import (
    GradeResponse,
    GradeWrite,
    TopicAssignmentRequest,
    TopicAssignmentResponse,
)


router = APIRouter()


def _validated(req: GradeWrite) -> None:
    errors = req.problems()
    if errors:
        raise ValidationError("Invalid grade data", errors=errors)


@router.get(
    f"{settings.app.api_prefix}/grades",
    response_model=list[GradeRead],
    tags=["grades"],
)
async def list_grades(session: AsyncSession = Depends(get_session)) -> list[GradeRead]:
    return [GradeRead.model_validate(g) for g in await CatalogService(session).list_grades()]


@router.get(
    f"{settings.app.api_prefix}/grades/{{grade_id}}",
    response_model=GradeRead,
    tags=["grades"],
)
async def get_grade(grade_id: str, session: AsyncSession = Depends(get_session)) -> GradeRead:
    return GradeRead.model_validate(await CatalogService(session).get_grade(grade_id))


@router.get(
    f"{settings.app.api_prefix}/grades/{{grade_id}}/topics",
    response_model=list[TopicRead],
    tags=["grades"],
)
async def grade_topics(grade_id: str, session: AsyncSession = Depends(get_session)) -> list[TopicRead]:
    topics = await CatalogService(session).topics_for_grade(grade_id)
    return [TopicRead.model_validate(t) for t in topics]


@router.post(
    f"{settings.app.api_prefix}/grades",
    response_model=GradeResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["grades"],
)
async def create_grade(
    req: GradeWrite, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> GradeResponse:
    _validated(req)
    grade = await CatalogService(session).create_grade(
        level=req.level, name=req.name, description=req.description
    )
    return GradeResponse(message="Grade created successfully", grade=GradeRead.model_validate(grade))


@router.put(
    f"{settings.app.api_prefix}/grades/{{grade_id}}",
    response_model=GradeResponse,
    tags=["grades"],
)
async def update_grade(
    grade_id: str,
    req: GradeWrite,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> GradeResponse:
    _validated(req)
    grade = await CatalogService(session).update_grade(
        grade_id, level=req.level, name=req.name, description=req.description
    )
    return GradeResponse(message="Grade updated successfully", grade=GradeRead.model_validate(grade))


@router.delete(
    f"{settings.app.api_prefix}/grades/{{grade_id}}",
    response_model=MessageResponse,
    tags=["grades"],
)
async def delete_grade(
    grade_id: str, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await CatalogService(session).delete_grade(grade_id)
    return MessageResponse(message="Grade deleted successfully")


@router.post(
    f"{settings.app.api_prefix}/grades/topic-assignment",
    response_model=TopicAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["grades"],
)
async def assign_topic(
    req: TopicAssignmentRequest, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> TopicAssignmentResponse:
    errors = []
    if not req.grade_id:
        errors.append("Grade ID is required")
    if not req.topic_id:
        errors.append("Topic ID is required")
    if errors:
        raise ValidationError("Invalid assignment data", errors=errors)
    link = await CatalogService(session).assign_topic(req.grade_id, req.topic_id)
    return TopicAssignmentResponse(
        message="Topic assigned to grade successfully",
        assignment=GradeTopicRead.model_validate(link),
    )


@router.delete(
    f"{settings.app.api_prefix}/grades/{{grade_id}}/topics/{{topic_id}}",
    response_model=MessageResponse,
    tags=["grades"],
)
async def unassign_topic(
    grade_id: str,
    topic_id: str,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await CatalogService(session).unassign_topic(grade_id, topic_id)
    return MessageResponse(message="Topic removed from grade successfully")
