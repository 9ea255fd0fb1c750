from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import (
    AdminUser,
    get_generator,
    get_upload_manager,
    parse_level,
    require_grade_level,
)
from heritagepal.apis.schemas import ContentRead, MessageResponse, QuizRead
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import CatalogService, ContentService, QuizService
from heritagepal.core.exceptions import GenerationError, ValidationError
from heritagepal.core.logging import get_logger
from heritagepal.core.upload_manager import UploadFileManager
from heritagepal.modules.generation import QuizQuestion, TextGenerator
from heritagepal.modules.generation.parsing import parse_json_array, validate_items
from heritagepal.modules.generation.prompts import (
    DEFAULT_DIFFICULTY,
    DEFAULT_QUIZ_COUNT,
    content_analysis_prompt,
    content_quiz_prompt,
)
from .schemas import ContentUpdate, GenerateQuizRequest


router = APIRouter()
logger = get_logger(__name__)


@router.post(
    f"{settings.app.api_prefix}/admin/content",
    response_model=ContentRead,
    status_code=status.HTTP_201_CREATED,
    tags=["admin"],
)
async def upload_content(
    admin: AdminUser,
    file: Optional[UploadFile] = File(default=None),
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    grade: Optional[str] = Form(default=None),
    topic: Optional[str] = Form(default=None),
    contentType: Optional[str] = Form(default=None),
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
    uploads: UploadFileManager = Depends(get_upload_manager),
) -> ContentRead:
    """Store an uploaded file and its AI analysis as educational content.

    The saved file is removed again if anything after the save fails.
    """
    if file is None or not file.filename:
        raise ValidationError("Please upload a file")
    if not title or not grade or not topic or not contentType:
        raise ValidationError("Please provide title, grade, topic, and content type")
    level = require_grade_level(grade)

    saved = await uploads.save(file)
    try:
        text = await asyncio.to_thread(saved.read_text)
        analysis = await generator.generate(content_analysis_prompt(title, level, topic, text))
        known_topic = await CatalogService(session).find_topic(topic)
        content = await ContentService(session).create(
            title=title,
            description=description or "",
            grade=level,
            topic=known_topic.title if known_topic else topic,
            topic_id=known_topic.id if known_topic else None,
            content_type=contentType,
            file_path=str(saved.path),
            file_name=saved.filename,
            file_original_name=saved.original_name,
            file_size=saved.size,
            file_mime_type=saved.mime_type,
            processed_content=analysis,
            uploaded_by=admin.id,
        )
    except Exception:
        logger.warning("Upload of %s failed, removing %s", saved.original_name, saved.path)
        uploads.remove(saved.path)
        raise
    logger.info("Admin %s uploaded content %s (%s bytes)", admin.id, content.id, saved.size)
    return ContentRead.model_validate(content)


@router.get(
    f"{settings.app.api_prefix}/admin/content",
    response_model=list[ContentRead],
    tags=["admin"],
)
async def list_content(
    admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> list[ContentRead]:
    return [ContentRead.model_validate(c) for c in await ContentService(session).list_all()]


@router.get(
    f"{settings.app.api_prefix}/admin/content/{{content_id}}",
    response_model=ContentRead,
    tags=["admin"],
)
async def get_content(
    content_id: str, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> ContentRead:
    return ContentRead.model_validate(await ContentService(session).get(content_id))


@router.put(
    f"{settings.app.api_prefix}/admin/content/{{content_id}}",
    response_model=ContentRead,
    tags=["admin"],
)
async def update_content(
    content_id: str,
    req: ContentUpdate,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> ContentRead:
    changes: dict[str, Any] = {}
    if req.title:
        changes["title"] = req.title
    if req.description:
        changes["description"] = req.description
    if req.grade not in (None, ""):
        level = parse_level(req.grade)
        if level is None:
            raise ValidationError("Grade must be a number between 1 and 6")
        changes["grade"] = level
    if req.topic:
        changes["topic"] = req.topic
    if req.contentType:
        changes["content_type"] = req.contentType
    content = await ContentService(session).update(content_id, changes)
    return ContentRead.model_validate(content)


@router.delete(
    f"{settings.app.api_prefix}/admin/content/{{content_id}}",
    response_model=MessageResponse,
    tags=["admin"],
)
async def delete_content(
    content_id: str,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
    uploads: UploadFileManager = Depends(get_upload_manager),
) -> MessageResponse:
    content = await ContentService(session).delete(content_id)
    uploads.remove(content.file_path)
    return MessageResponse(message="Content deleted successfully")


@router.post(
    f"{settings.app.api_prefix}/admin/content/{{content_id}}/generate-quiz",
    response_model=QuizRead,
    status_code=status.HTTP_201_CREATED,
    tags=["admin"],
)
async def generate_quiz(
    content_id: str,
    req: GenerateQuizRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> QuizRead:
    content = await ContentService(session).get(content_id)
    difficulty = req.difficulty or DEFAULT_DIFFICULTY
    text = await generator.generate(
        content_quiz_prompt(
            content.title,
            content.grade,
            content.topic,
            content.processed_content,
            difficulty,
            req.questionCount or DEFAULT_QUIZ_COUNT,
        )
    )
    questions, reason = validate_items(parse_json_array(text), QuizQuestion)
    if questions is None:
        logger.error("Quiz output for content %s unusable: %s", content.id, reason)
        raise GenerationError(
            "Generated quiz could not be parsed", debug_info={"reason": reason}
        )

    quiz = await QuizService(session).create(
        title=f"{content.title} Quiz",
        description=f"Quiz generated from {content.title} for grade {content.grade}",
        content_id=content.id,
        topic_id=content.topic_id,
        grade=content.grade,
        topic=content.topic,
        questions=json.dumps([q.model_dump() for q in questions]),
        difficulty=difficulty,
        created_by=admin.id,
        is_ai_generated=True,
    )
    return QuizRead.model_validate(quiz)
