from __future__ import annotations

from typing import Any, Iterable, Optional

from heritagepal.core.logging import get_logger
from heritagepal.modules.generation.fallbacks import CHAT_APOLOGY
from heritagepal.modules.generation.prompts import chat_prompt
from heritagepal.modules.generation.service import TextGenerator


logger = get_logger(__name__)


class ChatTutor:
    """Answers student questions; never fails because of the model."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def reply(
        self,
        message: str,
        history: Optional[Iterable[tuple[str, str]]] = None,
        context: Optional[str] = None,
        grade: Any = None,
    ) -> str:
        prompt = chat_prompt(message, history, context, grade)
        try:
            text = await self.generator.generate(prompt)
        except Exception as e:
            logger.error("Chat generation failed, sending apology: %s", e)
            return CHAT_APOLOGY
        text = (text or "").strip()
        if not text:
            logger.warning("Chat generation returned an empty reply, sending apology")
            return CHAT_APOLOGY
        return text


__all__ = ["ChatTutor"]
