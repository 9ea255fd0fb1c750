from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import AdminUser, CurrentUser
from heritagepal.apis.schemas import GradeRead, GradeTopicRead, MessageResponse, TopicRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db.schemas.users import Admin
from heritagepal.core.db_services import CatalogService, UserService
from heritagepal.core.exceptions import ValidationError
from .schemas import (
    TopicCreate,
    TopicGradesRequest,
    TopicGradesResponse,
    TopicUpdate,
    TopicWithGrades,
)


router = APIRouter()


def _topic_errors(req: TopicCreate) -> list[str]:
    errors = []
    if not req.title or not req.title.strip():
        errors.append("Topic title is required")
    if not req.content or not req.content.strip():
        errors.append("Topic content is required")
    return errors


@router.get(
    f"{settings.app.api_prefix}/topics",
    response_model=list[TopicRead],
    tags=["topics"],
)
async def list_topics(
    grade_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> list[TopicRead]:
    catalog = CatalogService(session)
    topics = await catalog.topics_for_grade(grade_id) if grade_id else await catalog.list_topics()
    return [TopicRead.model_validate(t) for t in topics]


@router.get(
    f"{settings.app.api_prefix}/topics/{{topic_id}}",
    response_model=TopicWithGrades,
    tags=["topics"],
)
async def get_topic(topic_id: str, session: AsyncSession = Depends(get_session)) -> TopicWithGrades:
    catalog = CatalogService(session)
    topic = await catalog.get_topic(topic_id)
    grades = await catalog.grades_for_topic(topic.id)
    return TopicWithGrades(
        **TopicRead.model_validate(topic).model_dump(),
        grades=[GradeRead.model_validate(g) for g in grades],
    )


@router.get(
    f"{settings.app.api_prefix}/topics/{{topic_id}}/grades",
    response_model=list[GradeRead],
    tags=["topics"],
)
async def topic_grades(topic_id: str, session: AsyncSession = Depends(get_session)) -> list[GradeRead]:
    catalog = CatalogService(session)
    topic = await catalog.get_topic(topic_id)
    return [GradeRead.model_validate(g) for g in await catalog.grades_for_topic(topic.id)]


@router.post(
    f"{settings.app.api_prefix}/topics/{{topic_id}}/view",
    response_model=MessageResponse,
    tags=["topics"],
)
async def record_view(
    topic_id: str, user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await UserService(session).record_topic_view(
        user.id, topic_id, is_admin=isinstance(user, Admin)
    )
    return MessageResponse(message="Topic view recorded successfully")


@router.post(
    f"{settings.app.api_prefix}/topics",
    response_model=TopicRead,
    status_code=status.HTTP_201_CREATED,
    tags=["topics"],
)
async def create_topic(
    req: TopicCreate, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> TopicRead:
    errors = _topic_errors(req)
    if errors:
        raise ValidationError(f"Invalid topic data: {', '.join(errors)}", errors=errors)
    topic = await CatalogService(session).create_topic(
        title=req.title,
        content=req.content,
        description=req.description,
        created_by=admin.id,
        grade_ids=req.grade_ids,
    )
    return TopicRead.model_validate(topic)


@router.put(
    f"{settings.app.api_prefix}/topics/{{topic_id}}",
    response_model=TopicRead,
    tags=["topics"],
)
async def update_topic(
    topic_id: str,
    req: TopicUpdate,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> TopicRead:
    topic = await CatalogService(session).update_topic(
        topic_id,
        title=req.title,
        content=req.content,
        description=req.description,
        description_set="description" in req.model_fields_set,
        grade_ids=req.grade_ids,
    )
    return TopicRead.model_validate(topic)


@router.delete(
    f"{settings.app.api_prefix}/topics/{{topic_id}}",
    response_model=MessageResponse,
    tags=["topics"],
)
async def delete_topic(
    topic_id: str, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await CatalogService(session).delete_topic(topic_id)
    return MessageResponse(message="Topic deleted successfully")


@router.post(
    f"{settings.app.api_prefix}/topics/{{topic_id}}/grades",
    response_model=TopicGradesResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["topics"],
)
async def assign_grades(
    topic_id: str,
    req: TopicGradesRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> TopicGradesResponse:
    if not req.grade_ids:
        raise ValidationError(
            "Invalid assignment data: At least one grade ID is required",
            errors=["At least one grade ID is required"],
        )
    links = await CatalogService(session).replace_topic_grades(topic_id, req.grade_ids)
    return TopicGradesResponse(
        message="Topic assigned to grades successfully",
        assignments=[GradeTopicRead.model_validate(link) for link in links],
    )
