from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ChatRequest(BaseModel):
    message: Optional[str] = None
    sessionId: Optional[str] = None
    grade: Optional[int | str] = None


class ChatResponse(BaseModel):
    message: str
    sessionId: str


class ChatMessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: str
    role: str
    content: str
    created_at: Optional[datetime] = None


class ChatSessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: str
    topic: str
    created_at: Optional[datetime] = None
